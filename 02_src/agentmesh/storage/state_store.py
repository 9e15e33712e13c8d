"""Two-tier agent state: ephemeral dictionary with persistent write-through."""

from typing import Any

from ..errors import AgentMeshError
from ..logging_config import get_logger
from ..models import AgentId
from .backends import IStateBackend

logger = get_logger(__name__)


class StateStore:
    """Per-agent key/value state.

    The ephemeral dictionary is the read authority. Every mutation is written
    through to the backend under ``"{agent_id}:{key}"``; the backend is read
    only to repopulate the ephemeral view.
    """

    def __init__(self, agent_id: AgentId, backend: IStateBackend):
        self._agent_id = agent_id
        self._backend = backend
        self._prefix = f"{agent_id}:"
        self._ephemeral: dict[str, Any] = {}

    @property
    def agent_id(self) -> AgentId:
        return self._agent_id

    def _persistent_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def store(self, key: str, value: Any) -> None:
        """Write ephemeral first; a backend failure is raised but does not undo it."""
        self._ephemeral[key] = value
        await self._backend.store(self._persistent_key(key), value)
        logger.debug("Agent %s stored state: %s", self._agent_id, key)

    async def get(self, key: str, default: Any = None) -> Any:
        """Ephemeral hit, else persistent read-through; a backend error counts as a miss."""
        if key in self._ephemeral:
            return self._ephemeral[key]

        try:
            value = await self._backend.retrieve(self._persistent_key(key))
        except AgentMeshError as e:
            logger.warning(
                "Agent %s persistent read of %s failed, treating as miss: %s",
                self._agent_id,
                key,
                e,
            )
            return default

        if value is None:
            return default

        self._ephemeral[key] = value
        return value

    async def delete(self, key: str) -> None:
        """Remove key from both views. Deleting an absent key is not an error."""
        self._ephemeral.pop(key, None)
        await self._backend.delete(self._persistent_key(key))
        logger.debug("Agent %s deleted state: %s", self._agent_id, key)

    async def clear(self) -> None:
        """Wipe this agent's state from both views. Other namespaces are untouched."""
        self._ephemeral.clear()
        for key in await self._backend.list_keys(self._prefix):
            await self._backend.delete(key)
        logger.debug("Cleared all state for agent %s", self._agent_id)

    async def load_all(self) -> int:
        """Populate the ephemeral view from the backend. Used once at startup."""
        loaded = 0
        for persistent_key in await self._backend.list_keys(self._prefix):
            value = await self._backend.retrieve(persistent_key)
            if value is None:
                continue
            self._ephemeral[persistent_key[len(self._prefix) :]] = value
            loaded += 1

        logger.info("Loaded %s state entries for agent %s", loaded, self._agent_id)
        return loaded

    async def save_all(self) -> int:
        """Write every ephemeral entry through to the backend. Used at shutdown."""
        for key, value in list(self._ephemeral.items()):
            await self._backend.store(self._persistent_key(key), value)

        logger.info(
            "Saved %s state entries for agent %s", len(self._ephemeral), self._agent_id
        )
        return len(self._ephemeral)

    def snapshot(self) -> dict[str, Any]:
        """Shallow copy of the ephemeral view."""
        return dict(self._ephemeral)

    def keys(self) -> list[str]:
        return list(self._ephemeral)

    def __contains__(self, key: object) -> bool:
        return key in self._ephemeral

    def __len__(self) -> int:
        return len(self._ephemeral)
