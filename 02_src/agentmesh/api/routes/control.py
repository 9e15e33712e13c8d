"""Control API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...models import AgentConfig
from ...runtime import Runtime


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class SpawnRequest(BaseModel):
    """Request model for spawning an agent."""

    id: str
    backend: str = "memory"
    path: str | None = None
    transport_enabled: bool = False
    llm_enabled: bool = False
    role: str = "generic"


def create_control_router(runtime: Runtime) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/agents", tags=["control"])

    @router.post("", response_model=StatusResponse, status_code=201)
    async def spawn_agent(request: SpawnRequest) -> dict:
        """Spawn an additional supervised agent."""
        try:
            config = AgentConfig.from_dict(
                {
                    "id": request.id,
                    "backend": {"kind": request.backend, "path": request.path},
                    "transport_enabled": request.transport_enabled,
                    "llm_enabled": request.llm_enabled,
                    "role": request.role,
                }
            )
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        try:
            await runtime.spawn(config)
        except ValueError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return {"status": "ok"}

    @router.post("/{agent_id}/shutdown", response_model=StatusResponse)
    async def shutdown_agent(agent_id: str) -> dict:
        """Shut one agent down normally; it is not restarted."""
        try:
            await runtime.terminate(agent_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found")
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"status": "ok"}

    return router
