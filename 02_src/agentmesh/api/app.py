"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..errors import AgentMeshError
from ..logging_config import get_logger
from ..runtime import Runtime
from .routes import control, messaging, observability

logger = get_logger(__name__)


# Global runtime instance
_runtime: Runtime | None = None


def get_runtime() -> Runtime:
    """Get the global runtime instance."""
    global _runtime
    if not _runtime:
        _runtime = Runtime()
    return _runtime


def create_fastapi_app(runtime: Runtime | None = None) -> FastAPI:
    """Create the API around a runtime; the app's lifespan starts and stops it."""
    runtime = runtime or get_runtime()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await runtime.start()
        yield
        await runtime.stop()

    fastapi_app = FastAPI(
        title="Agent Mesh API",
        description="Control and observability API for an Agent Mesh runtime",
        version="0.1.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:5174"],  # Vite default
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @fastapi_app.exception_handler(AgentMeshError)
    async def agent_mesh_error_handler(request: Request, exc: AgentMeshError) -> JSONResponse:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    @fastapi_app.get("/api/health", tags=["observability"])
    async def health() -> dict:
        """Liveness of the runtime and its supervised agents."""
        try:
            children = runtime.children
        except RuntimeError:
            return {"status": "starting", "agents_running": 0, "agents_failed": []}
        return {
            "status": "ok",
            "agents_running": len(runtime.agent_ids),
            "agents_failed": sorted(aid for aid, child in children.items() if child.failed),
        }

    fastapi_app.include_router(messaging.create_messaging_router(runtime))
    fastapi_app.include_router(observability.create_observability_router(runtime))
    fastapi_app.include_router(control.create_control_router(runtime))

    return fastapi_app
