"""Core data models for Agent Mesh."""

from .messages import (
    AgentId,
    ClearAction,
    DeleteAction,
    GetAction,
    ListAction,
    Message,
    Priority,
    Shutdown,
    StateAction,
    StoreAction,
    parse_state_action,
)
from .agents import (
    AgentConfig,
    AgentRole,
    AgentStatus,
    BackendSelection,
    BackendType,
    OperationKind,
    OperationRecord,
    OperationStatus,
)
from .workflow import WorkflowStep
from .tracing import TraceEvent

__all__ = [
    # Messages
    "AgentId",
    "Message",
    "Priority",
    "Shutdown",
    "StateAction",
    "StoreAction",
    "GetAction",
    "DeleteAction",
    "ClearAction",
    "ListAction",
    "parse_state_action",
    # Agents
    "AgentConfig",
    "AgentRole",
    "AgentStatus",
    "BackendSelection",
    "BackendType",
    "OperationKind",
    "OperationRecord",
    "OperationStatus",
    # Workflow
    "WorkflowStep",
    # Tracing
    "TraceEvent",
]
