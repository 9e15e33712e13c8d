"""Observability API routes."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...runtime import Runtime


class TraceEventResponse(BaseModel):
    """Response model for trace event."""

    id: str
    event_type: str
    actor: str
    data: dict[str, Any]
    timestamp: datetime


class AgentSummary(BaseModel):
    """Response model for one supervised agent."""

    id: str
    role: str
    backend: str
    alive: bool
    failed: bool
    restarts: int
    status: str | None = None
    message_count: int = 0


class OperationResponse(BaseModel):
    """Response model for an LLM operation record."""

    operation_id: str
    kind: str
    status: str
    started_at: datetime
    finished_at: datetime | None = None
    attempts: int
    error: str | None = None


def create_observability_router(runtime: Runtime) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/agents", response_model=list[AgentSummary])
    async def list_agents() -> list[dict]:
        """List supervised agents and their restart bookkeeping."""
        result = []
        for agent_id, child in runtime.children.items():
            actor = child.actor
            result.append(
                {
                    "id": agent_id,
                    "role": child.config.role.value,
                    "backend": child.config.backend.kind.value,
                    "alive": child.alive,
                    "failed": child.failed,
                    "restarts": child.restarts,
                    "status": actor.status.value if actor else None,
                    "message_count": actor.message_count if actor else 0,
                }
            )
        return result

    @router.get("/agents/{agent_id}/state")
    async def get_agent_state(agent_id: str) -> dict[str, Any]:
        """Snapshot of an agent's ephemeral state."""
        try:
            return await runtime.request_state(agent_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found")

    @router.get("/agents/{agent_id}/operations", response_model=list[OperationResponse])
    async def get_agent_operations(agent_id: str) -> list[dict]:
        """LLM operation records kept by an agent."""
        try:
            records = runtime.operations(agent_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found")
        return [record.to_dict() for record in records]

    @router.get("/trace-events", response_model=list[TraceEventResponse])
    async def get_trace_events(
        after: str | None = Query(None, description="ISO timestamp filter"),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(None, description="Filter by event type"),
        actor: str | None = Query(None, description="Filter by actor"),
    ) -> list[dict]:
        """Get trace events with optional filters."""
        after_dt = None
        if after:
            try:
                after_dt = datetime.fromisoformat(after)
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid after timestamp format")
            if after_dt.tzinfo is None:
                after_dt = after_dt.replace(tzinfo=timezone.utc)

        event_types = [event_type] if event_type else None

        try:
            events = runtime.tracker.get_events(
                after=after_dt,
                event_types=event_types,
                actor=actor,
                limit=limit,
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            {
                "id": e.id,
                "event_type": e.event_type,
                "actor": e.actor,
                "data": e.data,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in events
        ]

    return router
