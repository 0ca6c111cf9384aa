"""Logging configuration: JSON lines through loguru, stdlib logging routed in."""
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from hotelscout.config import get_settings

# Always present in a record, even when not bound
CONTEXT_FIELDS = ("correlation_id", "session_id", "tool_name", "operation")

# Bound values under these keys never reach a sink
REDACTED_KEYS = {"cookie", "set-cookie", "authorization"}

NOISY_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "httpx", "httpcore", "mcp")


class InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records (uvicorn, httpx, mcp) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure loguru sinks.

    Args:
        level: Minimum level; defaults to ``LOG_LEVEL``.
        log_file: Rotating file sink path; defaults to ``LOG_FILE``. An empty
            string disables the file sink.
    """
    settings = get_settings()
    level = level or settings.LOG_LEVEL
    log_file = settings.LOG_FILE if log_file is None else log_file

    logger.remove()

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            rotation="100 MB",
            retention="30 days",
            compression="zip",
            level=level,
            format=format_record,
            enqueue=True,
            backtrace=True,
            diagnose=settings.DEBUG,
        )

    # stderr only: the MCP stdio transport owns stdout
    logger.add(
        sys.stderr,
        level=level,
        format=format_record,
        enqueue=True,
        backtrace=True,
        diagnose=settings.DEBUG,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = False

    logger.bind(log_file=log_file or None, level=level).info("Logging configured")


def _escape(text: str) -> str:
    # loguru treats the returned format string as a template
    return text.replace("{", "{{").replace("}", "}}")


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: "[redacted]" if str(key).lower() in REDACTED_KEYS else _redact(item)
            for key, item in value.items()
        }
    return value


def format_record(record: Dict[str, Any]) -> str:
    """Render a record as one JSON line, carrying every bound extra."""
    extra = dict(record["extra"])
    log_record: Dict[str, Any] = {
        "timestamp": datetime.fromtimestamp(record["time"].timestamp(), tz=timezone.utc).isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "name": extra.pop("name", record["name"]),
        "function": record["function"],
        "line": record["line"],
    }
    for field in CONTEXT_FIELDS:
        log_record[field] = extra.pop(field, "")
    if extra:
        log_record["extra"] = _redact(extra)

    if record["exception"] is not None:
        exc_type, exc_value, _ = record["exception"]
        log_record["exception"] = {
            "type": exc_type.__name__ if exc_type else "",
            "value": str(exc_value),
        }

    return _escape(json.dumps(log_record, ensure_ascii=False, default=str)) + "\n{exception}"


def get_logger(name: Optional[str] = None):
    """Logger bound to ``name`` (the package name when omitted)."""
    if name is None:
        name = __name__.split(".")[0]
    return logger.bind(name=name)
