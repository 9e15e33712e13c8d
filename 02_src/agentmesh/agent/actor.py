"""Agent actor: one State Store, one mailbox, one message at a time."""

import asyncio
from typing import Any, Union

from ..errors import AgentMeshError
from ..llm import LLMClient
from ..llm.retry import Sleeper
from ..logging_config import get_agent_logger
from ..models import (
    AgentConfig,
    AgentId,
    AgentStatus,
    Message,
    OperationRecord,
    Shutdown,
    StateAction,
)
from ..processing import LLMTaskExecutor, MessageRouter
from ..storage import IStateBackend, StateStore
from ..tracker import ITracker
from ..transport import ITransport


MailboxItem = Union[Message, StateAction, Shutdown]


class AgentActor:
    """Single-threaded agent state machine.

    ``initializing`` loads persisted state, ``ready`` consumes the mailbox and
    ``terminating`` saves state before the loop exits. Store errors raised by
    a handler are logged and the loop continues; any other exception ends the
    loop and is re-raised so the supervisor can restart the agent.
    """

    def __init__(
        self,
        config: AgentConfig,
        backend: IStateBackend,
        transport: ITransport | None = None,
        llm_client: LLMClient | None = None,
        tracker: ITracker | None = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self._config = config
        self._log = get_agent_logger(__name__, config.id)
        self._store = StateStore(config.id, backend)
        self._executor = (
            LLMTaskExecutor(config.id, self._store, llm_client, tracker, sleep)
            if config.llm_enabled
            else None
        )
        self._router = MessageRouter(
            agent_id=config.id,
            store=self._store,
            executor=self._executor,
            transport=transport if config.transport_enabled else None,
            tracker=tracker,
            sleep=sleep,
        )
        self._mailbox: asyncio.Queue[MailboxItem] = asyncio.Queue()
        self._status = AgentStatus.INITIALIZING
        self._message_count = 0

    @property
    def agent_id(self) -> AgentId:
        return self._config.id

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def status(self) -> AgentStatus:
        return self._status

    @property
    def message_count(self) -> int:
        return self._message_count

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def operations(self) -> list[OperationRecord]:
        if self._executor is None:
            return []
        return self._executor.records

    async def start(self) -> None:
        """Load persisted state. A failure here is a start failure."""
        self._log.info("Initializing agent %s (%s)", self.agent_id, self._config.role.value)
        await self._store.load_all()
        self._status = AgentStatus.READY

    def send(self, item: MailboxItem) -> None:
        """Fire-and-forget delivery into the mailbox."""
        if self._status in (AgentStatus.TERMINATING, AgentStatus.TERMINATED):
            raise RuntimeError(f"Agent {self.agent_id} is {self._status.value}")
        self._mailbox.put_nowait(item)

    def get_full_state(self) -> dict[str, Any]:
        """Snapshot of the ephemeral state; does not wait for in-flight work."""
        return self._store.snapshot()

    async def drain(self) -> None:
        """Wait until every queued item has been handled."""
        await self._mailbox.join()

    async def run(self) -> None:
        """Process mailbox items until Shutdown."""
        if self._status is not AgentStatus.READY:
            raise RuntimeError(f"Agent {self.agent_id} not started")

        try:
            while True:
                item = await self._mailbox.get()
                try:
                    if isinstance(item, Shutdown):
                        self._log.info(
                            "Agent %s received shutdown signal: %s", self.agent_id, item.reason
                        )
                        break
                    await self._handle(item)
                finally:
                    self._mailbox.task_done()
        except BaseException:
            await self._terminate()
            raise

        await self._terminate()

    async def _handle(self, item: MailboxItem) -> None:
        self._message_count += 1
        try:
            if isinstance(item, Message):
                await self._router.route(item)
            else:
                await self._router.apply_state_action(item)
        except AgentMeshError as e:
            self._log.error(
                "Agent %s failed to handle %s: %s",
                self.agent_id,
                type(item).__name__,
                e,
                exc_info=True,
            )

    async def _terminate(self) -> None:
        self._status = AgentStatus.TERMINATING
        try:
            await self._store.save_all()
        except Exception as e:
            self._log.error("Agent %s failed to save state on exit: %s", self.agent_id, e)
        self._status = AgentStatus.TERMINATED
        self._log.info("Agent %s terminated", self.agent_id)
