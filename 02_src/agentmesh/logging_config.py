"""Structured logging configuration for Agent Mesh."""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, MutableMapping

from .config import DEFAULT_LOG_PATH

# Record attributes promoted to top-level JSON fields when set through ``extra``
CONTEXT_FIELDS = ("agent_id", "operation_id", "message_id", "subject")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with agent-scoped fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class AgentLoggerAdapter(logging.LoggerAdapter):
    """Stamps every record with the owning agent's id."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def setup_logging(
    log_level: str | None = None,
    log_file: str | Path | None = None,
    console: bool = True,
) -> None:
    """
    Configure JSON logging for the runtime.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
                   Defaults to the LOG_LEVEL env var, then INFO.
        log_file: Rotating log file. Defaults to 04_logs/app.log.
        console: Also write records to stdout.
    """
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_path = Path(log_file) if log_file else DEFAULT_LOG_PATH
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handlers: dict[str, dict[str, Any]] = {
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(log_path),
            "maxBytes": 10 * 1024 * 1024,  # 10 MB
            "backupCount": 5,
            "formatter": "json",
            "encoding": "utf-8",
        },
    }
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JSONFormatter}},
            "handlers": handlers,
            "root": {"level": level, "handlers": list(handlers)},
            # SDK request logs are noisy at INFO
            "loggers": {"httpx": {"level": "WARNING"}, "anthropic": {"level": "WARNING"}},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; call with ``__name__``."""
    return logging.getLogger(name)


def get_agent_logger(name: str, agent_id: str) -> AgentLoggerAdapter:
    """Logger whose records carry ``agent_id`` as a top-level JSON field."""
    return AgentLoggerAdapter(logging.getLogger(name), {"agent_id": agent_id})
