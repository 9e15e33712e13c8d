"""One-for-one supervision of agent actors."""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from ..agent import AgentActor
from ..errors import CustomError
from ..logging_config import get_logger
from ..models import AgentConfig, AgentId, Shutdown
from ..tracker import ITracker

logger = get_logger(__name__)


AgentFactory = Callable[[AgentConfig], AgentActor]


@dataclass
class ChildHandle:
    """Supervisor bookkeeping for one agent id."""

    config: AgentConfig
    actor: AgentActor | None = None
    task: asyncio.Task | None = None
    restarts: int = 0
    failed: bool = False
    starting: bool = False
    restart_pending: bool = False
    restart_times: deque = field(default_factory=deque)

    @property
    def alive(self) -> bool:
        return self.task is not None and not self.task.done()

    @property
    def busy(self) -> bool:
        """True while the id belongs to a live or (re)starting child."""
        return self.alive or self.starting or self.restart_pending


class Supervisor:
    """Starts agents from their configs and restarts only the one that failed.

    A child that exits abnormally (start failure or an exception out of its
    message loop) is rebuilt from its original config. More than
    ``max_restarts`` restarts within ``restart_window`` seconds leaves the
    child down and marked failed. A normal Shutdown is never restarted.
    """

    def __init__(
        self,
        configs: list[AgentConfig],
        factory: AgentFactory,
        tracker: ITracker | None = None,
        max_restarts: int = 3,
        restart_window: float = 60.0,
        restart_delay: float = 0.0,
    ):
        self._configs = list(configs)
        self._factory = factory
        self._tracker = tracker
        self._max_restarts = max_restarts
        self._restart_window = restart_window
        self._restart_delay = restart_delay
        self._children: dict[AgentId, ChildHandle] = {}
        self._background: set[asyncio.Task] = set()
        self._stopping = False

    @property
    def children(self) -> dict[AgentId, ChildHandle]:
        return dict(self._children)

    async def start(self) -> None:
        """Start every configured agent. A failing agent does not stop its siblings."""
        logger.info("Initializing supervisor with %s agent configs", len(self._configs))
        self._stopping = False
        for config in self._configs:
            try:
                await self.spawn(config)
            except CustomError as e:
                logger.error("Supervisor could not start %s: %s", config.id, e)

    async def spawn(self, config: AgentConfig) -> AgentActor:
        """Start a new supervised agent. Rejects an id that is alive or starting."""
        existing = self._children.get(config.id)
        if existing is not None and existing.busy:
            raise ValueError(f"Agent {config.id} is already running")

        # Registered before the first await so a concurrent spawn sees it
        child = ChildHandle(config=config)
        self._children[config.id] = child
        return await self._start_child(child)

    def get(self, agent_id: AgentId) -> AgentActor:
        """Return the running actor for agent_id."""
        child = self._children.get(agent_id)
        if child is None or child.actor is None or not child.alive:
            raise KeyError(agent_id)
        return child.actor

    def restart_count(self, agent_id: AgentId) -> int:
        return self._children[agent_id].restarts

    async def terminate(self, agent_id: AgentId) -> None:
        """Shut one agent down normally and wait for it to exit."""
        child = self._children.get(agent_id)
        if child is None or not child.alive:
            raise KeyError(agent_id)
        child.actor.send(Shutdown())
        await asyncio.gather(child.task, return_exceptions=True)

    async def stop(self) -> None:
        """Shut every agent down and cancel pending restarts."""
        self._stopping = True
        for task in list(self._background):
            task.cancel()

        tasks = []
        for child in self._children.values():
            if child.alive:
                child.actor.send(Shutdown(reason="supervisor stopping"))
                tasks.append(child.task)

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        logger.info("Supervisor stopped %s agent(s)", len(tasks))

    def _allow_restart(self, child: ChildHandle) -> bool:
        now = asyncio.get_running_loop().time()
        while child.restart_times and now - child.restart_times[0] > self._restart_window:
            child.restart_times.popleft()
        if len(child.restart_times) >= self._max_restarts:
            return False
        child.restart_times.append(now)
        child.restarts += 1
        return True

    async def _start_child(self, child: ChildHandle) -> AgentActor:
        child.starting = True
        try:
            return await self._start_loop(child)
        finally:
            child.starting = False

    async def _start_loop(self, child: ChildHandle) -> AgentActor:
        agent_id = child.config.id
        while True:
            actor = self._factory(child.config)
            try:
                await actor.start()
            except Exception as e:
                logger.error("Agent %s failed to start: %s", agent_id, e, exc_info=True)
                if self._stopping or not self._allow_restart(child):
                    await self._mark_failed(child, f"start failure: {e}")
                    raise CustomError(f"Agent {agent_id} failed to start: {e}") from e
                await self._track("agent_restarted", agent_id, {"reason": str(e)})
                if self._restart_delay:
                    await asyncio.sleep(self._restart_delay)
                continue

            child.actor = actor
            child.failed = False
            child.task = asyncio.create_task(actor.run(), name=f"agent:{agent_id}")
            child.task.add_done_callback(lambda task, c=child: self._on_exit(c, task))
            await self._track(
                "agent_started", agent_id, {"role": child.config.role.value}
            )
            logger.info("Agent %s started", agent_id)
            return actor

    def _on_exit(self, child: ChildHandle, task: asyncio.Task) -> None:
        if task.cancelled():
            return

        error = task.exception()
        if error is None:
            logger.info("Agent %s stopped", child.config.id)
            self._spawn_background(
                self._track("agent_stopped", child.config.id, {})
            )
            return

        logger.error("Agent %s terminated abnormally: %s", child.config.id, error)
        if self._stopping:
            return
        child.restart_pending = True
        self._spawn_background(self._restart(child, error))

    def _spawn_background(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _restart(self, child: ChildHandle, error: BaseException) -> None:
        try:
            if not self._allow_restart(child):
                await self._mark_failed(child, f"restart limit reached: {error}")
                return

            await self._track("agent_restarted", child.config.id, {"reason": str(error)})
            if self._restart_delay:
                await asyncio.sleep(self._restart_delay)
            if self._stopping or self._children.get(child.config.id) is not child:
                return
        finally:
            child.restart_pending = False

        try:
            await self._start_child(child)
        except CustomError as e:
            logger.error("Supervisor gave up on %s: %s", child.config.id, e)

    async def _mark_failed(self, child: ChildHandle, reason: str) -> None:
        child.failed = True
        logger.error("Agent %s marked failed: %s", child.config.id, reason)
        await self._track("agent_failed", child.config.id, {"reason": reason})

    async def _track(self, event_type: str, agent_id: AgentId, data: dict) -> None:
        if self._tracker:
            await self._tracker.track(event_type, "supervisor", {"agent_id": agent_id, **data})
