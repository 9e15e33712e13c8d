"""Message-related data models."""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from ..errors import SerializationError

AgentId = str


class Priority(str, Enum):
    """Message priority. Observability metadata only, never a scheduling input."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    NORMAL = "normal"
    LOW = "low"

    @classmethod
    def parse(cls, value: Any) -> "Priority":
        """Parse a payload priority; unknown or missing values become NORMAL."""
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        return cls.NORMAL

    @property
    def is_urgent(self) -> bool:
        return self in (Priority.CRITICAL, Priority.HIGH)


@dataclass(frozen=True)
class Message:
    """A message exchanged between agents."""

    id: str
    sender: AgentId
    recipient: AgentId
    payload: Any  # structured JSON value
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, sender: AgentId, recipient: AgentId, payload: Any) -> "Message":
        """Build a message with a fresh id and the current timestamp."""
        return cls(
            id=str(uuid.uuid4()),
            sender=sender,
            recipient=recipient,
            payload=payload,
        )

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp.timestamp() * 1000)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from": self.sender,
            "to": self.recipient,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_bytes(self) -> bytes:
        """Encode for the transport."""
        try:
            return json.dumps(self.to_dict()).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode message {self.id}: {e}") from e

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        try:
            timestamp = datetime.fromisoformat(data["timestamp"])
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=timezone.utc)
            return cls(
                id=data["id"],
                sender=data["from"],
                recipient=data["to"],
                payload=data.get("payload"),
                timestamp=timestamp,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Invalid message: {e}") from e

    @classmethod
    def from_bytes(cls, data: bytes) -> "Message":
        """Decode a message received from the transport."""
        try:
            decoded = json.loads(data)
        except (UnicodeDecodeError, ValueError) as e:
            raise SerializationError(f"Invalid message bytes: {e}") from e
        if not isinstance(decoded, dict):
            raise SerializationError("Message must be a JSON object")
        return cls.from_dict(decoded)


# State actions bypass message classification and are applied to the State Store.


@dataclass(frozen=True)
class StoreAction:
    key: str
    value: Any


@dataclass(frozen=True)
class GetAction:
    key: str


@dataclass(frozen=True)
class DeleteAction:
    key: str


@dataclass(frozen=True)
class ClearAction:
    pass


@dataclass(frozen=True)
class ListAction:
    pass


StateAction = Union[StoreAction, GetAction, DeleteAction, ClearAction, ListAction]


def parse_state_action(payload: Any) -> StateAction | None:
    """
    Parse a ``{"state_action": ...}`` payload into a StateAction.

    Returns None when the payload is not a state action or misses a required
    field (``key`` for store/get/delete, ``value`` for store).
    """
    if not isinstance(payload, dict) or "state_action" not in payload:
        return None

    action = str(payload["state_action"]).lower()
    key = payload.get("key")

    if action == "clear":
        return ClearAction()
    if action == "list":
        return ListAction()
    if not isinstance(key, str):
        return None
    if action == "store" and "value" in payload:
        return StoreAction(key=key, value=payload["value"])
    if action == "get":
        return GetAction(key=key)
    if action == "delete":
        return DeleteAction(key=key)
    return None


@dataclass(frozen=True)
class Shutdown:
    """Ends an agent's message loop after saving its state."""

    reason: str = "requested"
