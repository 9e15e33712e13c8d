"""Subject-addressed publish/subscribe transport."""

import asyncio
from typing import Awaitable, Callable, Protocol

from ..logging_config import get_logger
from ..models import AgentId

logger = get_logger(__name__)


SUBJECT_PREFIX = "agent."

SubjectHandler = Callable[[str, bytes], Awaitable[None]]


def agent_subject(agent_id: AgentId) -> str:
    """Subject on which messages for ``agent_id`` are published."""
    return f"{SUBJECT_PREFIX}{agent_id}"


class ITransport(Protocol):
    """Publish side of the inter-node transport."""

    async def publish(self, subject: str, data: bytes) -> None:
        """Publish raw bytes on a subject."""
        ...


class InProcessBus:
    """In-memory pub/sub bus. Runtimes sharing one bus behave like separate nodes."""

    def __init__(self):
        self._subscribers: dict[str, list[SubjectHandler]] = {}
        self._published_count = 0

    @property
    def published_count(self) -> int:
        return self._published_count

    def subscribe(self, subject: str, handler: SubjectHandler) -> None:
        """Subscribe a handler to a subject."""
        self._subscribers.setdefault(subject, []).append(handler)

    def unsubscribe(self, subject: str, handler: SubjectHandler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._subscribers.get(subject, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._subscribers.pop(subject, None)

    def has_subscribers(self, subject: str) -> bool:
        return bool(self._subscribers.get(subject))

    async def publish(self, subject: str, data: bytes) -> None:
        """Deliver data to every subscriber of subject."""
        self._published_count += 1
        handlers = list(self._subscribers.get(subject, []))

        if not handlers:
            logger.debug("No subscribers on subject %s", subject)
            return

        results = await asyncio.gather(
            *[handler(subject, data) for handler in handlers],
            return_exceptions=True,
        )

        for i, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error("Error in handler %s for %s: %s", i, subject, result)

        logger.debug("Published message to subject: %s", subject)
