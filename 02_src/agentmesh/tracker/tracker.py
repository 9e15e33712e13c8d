"""Tracker implementation for creating TraceEvents."""

import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Protocol

from ..models import TraceEvent


class ITracker(Protocol):
    """Records lifecycle TraceEvents for observability."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create a TraceEvent."""
        ...


class Tracker:
    """Keeps the most recent TraceEvents in a bounded in-memory buffer."""

    def __init__(self, max_events: int = 1000):
        self._events: deque[TraceEvent] = deque(maxlen=max_events)

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create a TraceEvent and append it to the buffer."""
        self._events.append(
            TraceEvent(
                id=str(uuid.uuid4()),
                event_type=event_type,
                actor=actor,
                data=data,
                timestamp=datetime.now(timezone.utc),
            )
        )

    def get_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events (newest first) with optional filters."""
        result = []
        for event in reversed(self._events):
            if after and event.timestamp <= after:
                continue
            if event_types and event.event_type not in event_types:
                continue
            if actor and event.actor != actor:
                continue
            result.append(event)
            if len(result) >= limit:
                break
        return result

    def clear(self) -> None:
        self._events.clear()
