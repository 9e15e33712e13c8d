"""Project-level configuration and path helpers."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .models import AgentConfig, AgentRole, BackendSelection, BackendType

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_STATE_DIR = DATA_DIR / "agent_state"
DEFAULT_DB_PATH = DATA_DIR / "agent_mesh.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def _resolve(env_value: PathLike | None, default: Path) -> Path:
    if not env_value:
        return default
    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if str(env_value) == ":memory:":
        return ":memory:"
    return _resolve(env_value, DEFAULT_DB_PATH)


def resolve_state_path(env_value: PathLike | None = None) -> Path:
    """Resolve STATE_DIR (root of file-backed agent state) to an absolute path."""
    return _resolve(env_value, DEFAULT_STATE_DIR)


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment."""

    llm_model: str = "claude-3-5-sonnet-20241022"
    llm_max_tokens: int = 1000
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 30.0
    llm_max_retries: int = 3
    state_dir: Path = DEFAULT_STATE_DIR
    db_path: PathLike = DEFAULT_DB_PATH
    agent_config_path: Path | None = None
    api_host: str = "localhost"
    api_port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, keeping defaults for unset ones."""
        config_path = os.getenv("AGENT_CONFIG_PATH")
        return cls(
            llm_model=os.getenv("LLM_MODEL", cls.llm_model),
            llm_max_tokens=int(os.getenv("LLM_MAX_TOKENS", cls.llm_max_tokens)),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", cls.llm_temperature)),
            llm_timeout_seconds=float(
                os.getenv("LLM_TIMEOUT_SECONDS", cls.llm_timeout_seconds)
            ),
            llm_max_retries=int(os.getenv("LLM_MAX_RETRIES", cls.llm_max_retries)),
            state_dir=resolve_state_path(os.getenv("STATE_DIR")),
            db_path=resolve_db_path(os.getenv("DATABASE_URL")),
            agent_config_path=_resolve(config_path, PROJECT_ROOT) if config_path else None,
            api_host=os.getenv("API_HOST", cls.api_host),
            api_port=int(os.getenv("API_PORT", cls.api_port)),
        )


def default_agent_configs() -> list[AgentConfig]:
    """Built-in agent population used when no config file is given."""
    return [
        AgentConfig(
            id="workflow_coordinator",
            backend=BackendSelection(BackendType.MEMORY),
            llm_enabled=True,
            role=AgentRole.WORKFLOW_COORDINATOR,
        ),
        AgentConfig(
            id="summarizer",
            backend=BackendSelection(BackendType.FILE),
            llm_enabled=True,
            role=AgentRole.SUMMARIZER,
        ),
        AgentConfig(
            id="data_collector",
            backend=BackendSelection(BackendType.MEMORY),
            role=AgentRole.DATA_COLLECTOR,
        ),
        AgentConfig(
            id="web_scraper_1",
            backend=BackendSelection(BackendType.MEMORY),
            role=AgentRole.WEB_SCRAPER,
        ),
        AgentConfig(
            id="web_scraper_2",
            backend=BackendSelection(BackendType.MEMORY),
            role=AgentRole.WEB_SCRAPER,
        ),
    ]


def load_agent_configs(path: PathLike | None = None) -> list[AgentConfig]:
    """
    Load agent configurations from a JSON file.

    The file holds a list of objects with keys ``id``, ``backend``
    (``{"kind": "memory"|"file"|"sqlite", "path": ...}``), ``transport_enabled``,
    ``llm_enabled`` and ``role``. Without a path the default population is used.
    """
    if path is None:
        return default_agent_configs()

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    return [AgentConfig.from_dict(item) for item in raw]
