"""
Structured logging configuration using loguru.
Provides consistent logging across the application.
"""
import sys
import json
from loguru import logger
from typing import Any, Dict

from pardbscan.config import settings


def serialize_record(record: Dict[str, Any]) -> str:
    """Serialize log record to JSON format."""
    subset = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    # Add extra fields if present
    if record.get("extra"):
        subset["extra"] = record["extra"]

    # Add exception if present
    if record.get("exception"):
        subset["exception"] = str(record["exception"])

    return json.dumps(subset, default=str)


def _json_sink(stream):
    def sink(message) -> None:
        stream.write(serialize_record(message.record) + "\n")
    return sink


def setup_logger() -> None:
    """Configure loguru logger with structured output."""

    # Remove default handler
    logger.remove()

    # Add handler based on format preference
    if settings.LOG_FORMAT == "json":
        logger.add(_json_sink(sys.stderr), level=settings.LOG_LEVEL)
    else:
        logger.add(
            sys.stderr,
            level=settings.LOG_LEVEL,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> | {extra}",
        )

    if settings.LOG_TO_FILE:
        log_dir = settings.PROJECT_ROOT / "logs"
        log_dir.mkdir(exist_ok=True)

        logger.add(
            log_dir / "pardbscan_{time}.log",
            rotation="100 MB",
            retention="10 days",
            level=settings.LOG_LEVEL,
            serialize=settings.LOG_FORMAT == "json",
        )

    logger.debug("Logger initialized", log_level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)


# Initialize logger on import
setup_logger()

# Export configured logger
__all__ = ["logger", "setup_logger", "serialize_record"]
