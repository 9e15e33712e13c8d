"""Agent Mesh: supervised agent actors with persistent state and LLM tasks."""

from .agent import AgentActor, MailboxItem
from .errors import (
    AgentMeshError,
    CustomError,
    LLMProviderError,
    LLMRateLimitError,
    LLMResponseFormatError,
    LLMTimeoutError,
    SerializationError,
    StorageIOError,
    TransportError,
    WorkflowValidationError,
)
from .llm import ILLMProvider, LLMClient, LLMConfig, MockLLMProvider
from .models import (
    AgentConfig,
    AgentRole,
    BackendSelection,
    BackendType,
    Message,
    OperationRecord,
    OperationStatus,
    Priority,
    Shutdown,
    WorkflowStep,
)
from .processing import LLMTaskExecutor, MessageRouter
from .runtime import IRuntime, Runtime
from .storage import FileBackend, InMemoryBackend, IStateBackend, SQLiteBackend, StateStore
from .supervisor import Supervisor
from .tracker import ITracker, Tracker
from .transport import InProcessBus, ITransport

__all__ = [
    # Runtime
    "Runtime",
    "IRuntime",
    "Supervisor",
    "AgentActor",
    "MailboxItem",
    # Models
    "AgentConfig",
    "AgentRole",
    "BackendSelection",
    "BackendType",
    "Message",
    "Priority",
    "Shutdown",
    "OperationRecord",
    "OperationStatus",
    "WorkflowStep",
    # Components
    "IStateBackend",
    "InMemoryBackend",
    "FileBackend",
    "SQLiteBackend",
    "StateStore",
    "ITransport",
    "InProcessBus",
    "ITracker",
    "Tracker",
    "ILLMProvider",
    "MockLLMProvider",
    "LLMClient",
    "LLMConfig",
    "LLMTaskExecutor",
    "MessageRouter",
    # Errors
    "AgentMeshError",
    "TransportError",
    "SerializationError",
    "StorageIOError",
    "LLMProviderError",
    "LLMTimeoutError",
    "LLMRateLimitError",
    "LLMResponseFormatError",
    "WorkflowValidationError",
    "CustomError",
]
