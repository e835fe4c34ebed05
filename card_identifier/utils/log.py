"""Structured logging for the identification pipeline."""

import logging
import sys
import time
from typing import Any, Dict, Optional

import structlog

from .config import settings
from .error_handler import CardIdentifierError

_TIMING_KEYS = ("event", "start_time")


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None):
    """Route structlog through stdlib logging on stderr.

    JSON lines by default; ``json_output=False`` (or ``LOG_JSON=false``) renders
    human-readable console lines instead.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    use_json = settings.LOG_JSON if json_output is None else json_output

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)


def _elapsed_ms(context: Dict[str, Any]) -> Optional[int]:
    start = context.get("start_time")
    if start is None:
        return None
    return int((time.time() - start) * 1000)


def _fields(context: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in context.items() if k not in _TIMING_KEYS}


class LoggerMixin:
    """Per-class structured logger plus start/finish timing helpers.

    ``log_start`` returns a context dict that ``log_success`` / ``log_error``
    consume; its fields are repeated on the closing line together with
    ``duration_ms``.
    """

    @property
    def logger(self) -> structlog.BoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger

    def log_start(self, event: str, **kwargs: Any) -> Dict[str, Any]:
        context = {"event": event, "start_time": time.time(), **kwargs}
        self.logger.info(f"{event} started", **kwargs)
        return context

    def log_success(self, context: Dict[str, Any], **kwargs: Any):
        elapsed = _elapsed_ms(context)
        if elapsed is not None:
            kwargs["duration_ms"] = elapsed
        self.logger.info(
            f"{context.get('event', 'operation')} completed", **_fields(context), **kwargs
        )

    def log_error(self, context: Dict[str, Any], error: Exception, **kwargs: Any):
        """Closing line for a failed operation; pipeline errors add their details."""
        elapsed = _elapsed_ms(context)
        if elapsed is not None:
            kwargs["duration_ms"] = elapsed
        if isinstance(error, CardIdentifierError):
            message = error.message
            if error.details:
                kwargs["error_details"] = error.details
        else:
            message = str(error)
        self.logger.error(
            f"{context.get('event', 'operation')} failed",
            **_fields(context),
            error=message,
            error_type=type(error).__name__,
            **kwargs,
        )
