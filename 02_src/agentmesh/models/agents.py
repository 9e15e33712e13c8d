"""Agent-related data models."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .messages import AgentId


class BackendType(str, Enum):
    """Persistent backend kinds."""

    MEMORY = "memory"
    FILE = "file"
    SQLITE = "sqlite"


class AgentRole(str, Enum):
    """What an agent is for. Informational; dispatch does not depend on it."""

    GENERIC = "generic"
    WEB_SCRAPER = "web_scraper"
    DATA_COLLECTOR = "data_collector"
    DATA_PROCESSOR = "data_processor"
    SUMMARIZER = "summarizer"
    COORDINATOR = "coordinator"
    WORKFLOW_COORDINATOR = "workflow_coordinator"


class AgentStatus(str, Enum):
    """Lifecycle of an agent actor."""

    INITIALIZING = "initializing"
    READY = "ready"
    TERMINATING = "terminating"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class BackendSelection:
    """Which persistent backend an agent uses; ``path`` overrides the default location."""

    kind: BackendType = BackendType.MEMORY
    path: str | None = None


@dataclass(frozen=True)
class AgentConfig:
    """Immutable description of one agent. Changing behavior means re-spawning."""

    id: AgentId
    backend: BackendSelection = field(default_factory=BackendSelection)
    transport_enabled: bool = False
    llm_enabled: bool = False
    role: AgentRole = AgentRole.GENERIC

    @classmethod
    def from_dict(cls, data: dict) -> "AgentConfig":
        backend = data.get("backend") or {}
        if isinstance(backend, str):
            backend = {"kind": backend}
        return cls(
            id=data["id"],
            backend=BackendSelection(
                kind=BackendType(backend.get("kind", BackendType.MEMORY.value)),
                path=backend.get("path"),
            ),
            transport_enabled=bool(data.get("transport_enabled", False)),
            llm_enabled=bool(data.get("llm_enabled", False)),
            role=AgentRole(data.get("role", AgentRole.GENERIC.value)),
        )


class OperationKind(str, Enum):
    """LLM task kinds."""

    SUMMARIZE = "summarize"
    PLAN_WORKFLOW = "plan_workflow"
    REASON = "reason"


class OperationStatus(str, Enum):
    """OperationRecord status; everything but PROCESSING is terminal."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    COMPLETED_FALLBACK = "completed_fallback"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OperationStatus.PROCESSING


@dataclass
class OperationRecord:
    """One LLM task invocation."""

    operation_id: str
    kind: OperationKind
    status: OperationStatus = OperationStatus.PROCESSING
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    attempts: int = 0
    error: str | None = None

    def finish(
        self, status: OperationStatus, attempts: int = 0, error: str | None = None
    ) -> None:
        """Move to a terminal status. A finished record cannot change again."""
        if self.status.is_terminal:
            raise ValueError(f"Operation {self.operation_id} already {self.status.value}")
        if not status.is_terminal:
            raise ValueError("finish() needs a terminal status")
        self.status = status
        self.attempts = attempts
        self.error = error
        self.finished_at = datetime.now(timezone.utc)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["status"] = self.status.value
        data["started_at"] = self.started_at.isoformat()
        data["finished_at"] = self.finished_at.isoformat() if self.finished_at else None
        return data
