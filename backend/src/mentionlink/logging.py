"""Structured logging configuration for mentionlink.

Provides JSON-formatted logs for production and human-readable
logs for development.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import get_settings

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        if record.funcName:
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable log formatter for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging() -> None:
    """Configure logging based on settings."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)

    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logger = get_logger(__name__)
    logger.info(
        "Logging initialized",
        extra={
            "environment": settings.environment,
            "log_level": settings.log_level,
            "log_format": settings.log_format,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds context to all log messages."""

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        """Process the logging message and add extra context."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def get_context_logger(name: str, **context: Any) -> LoggerAdapter:
    """Get a logger with additional context.

    Args:
        name: Logger name
        **context: Context fields to add to all log messages

    Returns:
        Logger adapter with context

    Usage:
        logger = get_context_logger(__name__, owner_id="u_123")
        logger.info("Resolving batch")  # Includes owner_id
    """
    return LoggerAdapter(get_logger(name), context)


# =========================
# Convenience functions
# =========================


def log_resolution_event(
    normalized_name: str,
    match_type: str,
    matched_contact: str | None,
    confidence: float,
    candidate_count: int,
) -> None:
    """Log the outcome of resolving one mention.

    Args:
        normalized_name: Normalized mention name
        match_type: EXACT, FUZZY or NONE
        matched_contact: Selected contact ID (if any)
        confidence: Composite confidence of the selection
        candidate_count: Candidates considered (selected plus alternatives)
    """
    logger = get_logger("mentionlink.resolution")
    logger.debug(
        f"Resolution {match_type}: {normalized_name} -> {matched_contact or 'no match'}",
        extra={
            "normalized_name": normalized_name,
            "match_type": match_type,
            "matched_contact": matched_contact,
            "confidence": confidence,
            "candidate_count": candidate_count,
            "event": "mention_resolution",
        },
    )


def log_batch_complete(
    owner_id: str,
    source_contact_id: str,
    total: int,
    counts: dict[str, int],
    persisted: int,
    duration_ms: float,
) -> None:
    """Log completion of a mention batch.

    Args:
        owner_id: Acting user
        source_contact_id: Contact being enriched
        total: Mentions in the batch
        counts: Mentions per match type (plus failures)
        persisted: Audit rows written
        duration_ms: Wall time for the whole batch
    """
    logger = get_logger("mentionlink.resolution")
    logger.info(
        f"Resolved {total} mention(s) for contact {source_contact_id}",
        extra={
            "owner_id": owner_id,
            "source_contact_id": source_contact_id,
            "counts": counts,
            "persisted": persisted,
            "duration_ms": duration_ms,
            "event": "mention_batch_complete",
        },
    )


def log_api_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    user_id: str | None = None,
) -> None:
    """Log an API request.

    Args:
        method: HTTP method
        path: Request path
        status_code: Response status code
        duration_ms: Request duration in milliseconds
        user_id: Authenticated user ID
    """
    logger = get_logger("mentionlink.api")
    logger.info(
        f"{method} {path} - {status_code}",
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "user_id": user_id,
            "event": "api_request",
        },
    )
