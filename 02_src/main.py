"""Main entry point for Agent Mesh."""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from agentmesh.api import create_fastapi_app
from agentmesh.config import Settings
from agentmesh.logging_config import setup_logging
from agentmesh.runtime import Runtime


def main():
    """Run the runtime behind its HTTP API."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    settings = Settings.from_env()
    app = create_fastapi_app(Runtime(settings=settings))

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
