"""Tracing and observability data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single observability event about an agent or the runtime."""

    id: str
    event_type: str  # e.g. "agent_started", "message_forwarded"
    actor: str  # who created this event
    data: dict
    timestamp: datetime
