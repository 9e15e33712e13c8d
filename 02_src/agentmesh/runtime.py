"""Runtime bootstrap and lifecycle management."""

import asyncio
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

from .agent import AgentActor, MailboxItem
from .config import Settings, load_agent_configs
from .errors import SerializationError
from .llm import ILLMProvider, LLMClient, LLMConfig, create_llm_provider
from .llm.retry import Sleeper
from .logging_config import get_logger
from .models import AgentConfig, AgentId, BackendType, Message, OperationRecord
from .storage import FileBackend, InMemoryBackend, IStateBackend, SQLiteBackend
from .supervisor import ChildHandle, Supervisor
from .tracker import Tracker
from .transport import InProcessBus, agent_subject

logger = get_logger(__name__)


class IRuntime(Protocol):
    """Process host: spawn, send, request, terminate."""

    async def start(self) -> None:
        """Initialize components and start configured agents."""
        ...

    async def stop(self) -> None:
        """Shut agents down and release resources."""
        ...

    async def spawn(self, config: AgentConfig) -> AgentActor:
        """Start an additional supervised agent."""
        ...

    def send(self, agent_id: AgentId, item: MailboxItem) -> None:
        """Fire-and-forget delivery to a local agent."""
        ...

    async def request_state(self, agent_id: AgentId) -> dict[str, Any]:
        """Snapshot of an agent's state."""
        ...

    async def terminate(self, agent_id: AgentId) -> None:
        """Shut one agent down."""
        ...


class Runtime:
    """Hosts a population of agents on one node."""

    def __init__(
        self,
        configs: list[AgentConfig] | None = None,
        settings: Settings | None = None,
        llm_provider: ILLMProvider | None = None,
        transport: InProcessBus | None = None,
        sleep: Sleeper = asyncio.sleep,
        max_restarts: int = 3,
        restart_window: float = 60.0,
    ):
        self._settings = settings or Settings.from_env()
        if configs is None:
            configs = load_agent_configs(self._settings.agent_config_path)
        self._configs = configs
        self._llm_provider = llm_provider
        self._sleep = sleep
        self._max_restarts = max_restarts
        self._restart_window = restart_window

        # Components (will be initialized in start())
        self._transport: InProcessBus | None = transport
        self._tracker: Tracker | None = None
        self._llm_client: LLMClient | None = None
        self._memory_backend = InMemoryBackend()
        self._sqlite_backend: SQLiteBackend | None = None
        self._supervisor: Supervisor | None = None
        self._subscriptions: dict[str, Any] = {}

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting runtime")

        # 1. Tracker (no dependencies)
        self._tracker = Tracker()

        # 2. Transport
        if self._transport is None:
            self._transport = InProcessBus()

        # 3. LLM client
        if self._llm_provider is None:
            self._llm_provider = create_llm_provider(
                model=self._settings.llm_model,
                timeout_seconds=self._settings.llm_timeout_seconds,
            )
        self._llm_client = LLMClient(
            self._llm_provider,
            LLMConfig(
                max_tokens=self._settings.llm_max_tokens,
                temperature=self._settings.llm_temperature,
                timeout_seconds=self._settings.llm_timeout_seconds,
                max_retries=self._settings.llm_max_retries,
            ),
        )
        logger.info("LLM provider initialized: %s", self._llm_client.provider_name)

        # 4. Shared backends
        for config in self._configs:
            await self._prepare_backend(config)

        # 5. Supervisor and agents
        self._supervisor = Supervisor(
            configs=self._configs,
            factory=self._create_agent,
            tracker=self._tracker,
            max_restarts=self._max_restarts,
            restart_window=self._restart_window,
        )
        for config in self._configs:
            self._subscribe(config.id)
        await self._supervisor.start()

        logger.info("Runtime started with %s agent(s)", len(self.agent_ids))

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._supervisor:
            await self._supervisor.stop()
        if self._transport:
            for subject, handler in self._subscriptions.items():
                self._transport.unsubscribe(subject, handler)
            self._subscriptions.clear()
        if self._sqlite_backend:
            await self._sqlite_backend.close()
            self._sqlite_backend = None
            logger.info("SQLite backend closed")
        logger.info("Runtime stopped")

    async def spawn(self, config: AgentConfig) -> AgentActor:
        """Start an additional agent and subscribe it to its transport subject."""
        await self._prepare_backend(config)
        actor = await self.supervisor.spawn(config)
        self._subscribe(config.id)
        return actor

    def send(self, agent_id: AgentId, item: MailboxItem) -> None:
        """Fire-and-forget delivery to a local agent."""
        self.supervisor.get(agent_id).send(item)

    async def request_state(self, agent_id: AgentId) -> dict[str, Any]:
        """Snapshot of an agent's ephemeral state."""
        return self.supervisor.get(agent_id).get_full_state()

    def operations(self, agent_id: AgentId) -> list[OperationRecord]:
        return self.supervisor.get(agent_id).operations

    async def terminate(self, agent_id: AgentId) -> None:
        await self.supervisor.terminate(agent_id)

    async def drain(self, agent_id: AgentId) -> None:
        """Wait for an agent's mailbox to empty."""
        await self.supervisor.get(agent_id).drain()

    def _backend_for(self, config: AgentConfig) -> IStateBackend:
        kind = config.backend.kind
        if kind is BackendType.FILE:
            base = Path(config.backend.path) if config.backend.path else self._settings.state_dir
            # Agent ids are opaque strings; one path segment each
            return FileBackend(base / quote(config.id, safe=""))
        if kind is BackendType.SQLITE:
            if self._sqlite_backend is None:
                raise RuntimeError("SQLite backend not initialized")
            return self._sqlite_backend
        return self._memory_backend

    async def _prepare_backend(self, config: AgentConfig) -> None:
        if config.backend.kind is BackendType.SQLITE and self._sqlite_backend is None:
            backend = SQLiteBackend(config.backend.path or self._settings.db_path)
            await backend.init()
            self._sqlite_backend = backend
            logger.info("SQLite backend initialized")

    def _create_agent(self, config: AgentConfig) -> AgentActor:
        return AgentActor(
            config=config,
            backend=self._backend_for(config),
            transport=self._transport,
            llm_client=self._llm_client if config.llm_enabled else None,
            tracker=self._tracker,
            sleep=self._sleep,
        )

    def _subscribe(self, agent_id: AgentId) -> None:
        subject = agent_subject(agent_id)
        if subject in self._subscriptions:
            return
        handler = self._make_inbound_handler(agent_id)
        self.transport.subscribe(subject, handler)
        self._subscriptions[subject] = handler

    def _make_inbound_handler(self, agent_id: AgentId):
        async def handle(subject: str, data: bytes) -> None:
            try:
                message = Message.from_bytes(data)
            except SerializationError as e:
                logger.warning("Dropped undecodable message on %s: %s", subject, e)
                return
            try:
                self.send(agent_id, message)
            except (KeyError, RuntimeError):
                logger.warning(
                    "Agent %s not running; dropped message %s", agent_id, message.id
                )

        return handle

    @property
    def agent_ids(self) -> list[AgentId]:
        if not self._supervisor:
            return []
        return [aid for aid, child in self._supervisor.children.items() if child.alive]

    @property
    def children(self) -> dict[AgentId, ChildHandle]:
        return self.supervisor.children

    @property
    def supervisor(self) -> Supervisor:
        """Get supervisor instance."""
        if not self._supervisor:
            raise RuntimeError("Runtime not started")
        return self._supervisor

    @property
    def transport(self) -> InProcessBus:
        """Get transport instance."""
        if not self._transport:
            raise RuntimeError("Runtime not started")
        return self._transport

    @property
    def tracker(self) -> Tracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Runtime not started")
        return self._tracker
