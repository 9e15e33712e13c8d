"""FastAPI control and observability surface."""

from .app import create_fastapi_app, get_runtime

__all__ = ["create_fastapi_app", "get_runtime"]
