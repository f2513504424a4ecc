"""Logging configuration for bou-responder."""

import json
import logging
import os
import sys
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, cast

LOGGER_NAME = "bou_responder"


class ContextStore:
    """A task-safe store for logging context.

    Each asyncio task runs in a copy of the context it was spawned from, so
    concurrent event handlers never see each other's values.
    """

    def __init__(self) -> None:
        """Initializes the ContextStore."""
        self._context: ContextVar[dict[str, Any]] = ContextVar(
            "bou_responder_log_context", default={}
        )

    def push(self, data: dict[str, Any]) -> Any:
        """Merges data into the current context.

        Args:
            data: The context data to add.

        Returns:
            A token that restores the previous context when popped.
        """
        return self._context.set({**self._context.get(), **data})

    def pop(self, token: Any) -> None:
        """Restores the context that was active before the matching push."""
        self._context.reset(token)

    def get(self) -> dict[str, Any]:
        """Gets the context data.

        Returns:
            The context data.
        """
        return self._context.get()


_context_store = ContextStore()


class ContextFilter(logging.Filter):
    """A logging filter that injects context.

    The ContextStore and the 'extra' kwarg into each log record
    is used for this matter.

    """

    # These are the standard attributes of a LogRecord
    RESERVED_ATTRS = (
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        """Attaches the merged context to a log record.

        Args:
            record: The log record to filter.

        Returns:
            Always True, records are never dropped here.
        """
        task_context = _context_store.get().copy()

        extra_context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self.RESERVED_ATTRS and key not in ("context",)
        }

        # Per-call 'extra' wins over the task context.
        task_context.update(extra_context)
        record.context = task_context

        return True


class BouResponderLogger(logging.Logger):
    """A custom logger class with a 'contextualize' method."""

    @contextmanager
    def contextualize(self, **kwargs: Any) -> Generator[None]:
        """A context manager to add temporary context to logs.

        Example:
            with logger.contextualize(topic="room/status"):
                logger.info("This log will have the topic.")
        """
        token = _context_store.push(kwargs)
        try:
            yield
        finally:
            _context_store.pop(token)


class TextFormatter(logging.Formatter):
    """Formats logs as a human-readable string."""

    def format(self, record: logging.LogRecord) -> str:
        log_message = super().format(record)

        if hasattr(record, "context") and record.context:
            context_text = " ".join(f"{k}={v}" for k, v in record.context.items() if v)
            if context_text:
                log_message += f" | {context_text}"

        return log_message


class JsonFormatter(logging.Formatter):
    """Formats logs as a JSON string."""

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            **getattr(record, "context", {}),
        }

        if record.exc_info:
            log_object["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_object, indent=None, separators=(",", ":"), default=str)


def setup_logger(level: int | None = None, serialize: bool | None = None) -> BouResponderLogger:
    """Enables and configures the bou-responder logger.

    Args:
        level: The log level. Defaults to BOU_RESPONDER_LOG_LEVEL or INFO.
        serialize: Emit JSON lines. Defaults to BOU_RESPONDER_ENABLE_LOG_SERIALIZE.
    """
    if level is None:
        level = int(os.getenv("BOU_RESPONDER_LOG_LEVEL", logging.INFO))
    if serialize is None:
        serialize = bool(int(os.getenv("BOU_RESPONDER_ENABLE_LOG_SERIALIZE", 0)))

    logging.setLoggerClass(BouResponderLogger)
    logger = logging.getLogger(LOGGER_NAME)
    logging.setLoggerClass(logging.Logger)

    if logger.hasHandlers():
        logger.handlers.clear()

    logger.setLevel(level)
    logger.propagate = False

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())

    formatter: logging.Formatter = JsonFormatter()
    if not serialize:
        fmt = (
            "%(asctime)s | %(levelname)-8s "
            "| %(process)d "
            "| %(module)s:%(funcName)s:%(lineno)d "
            "| %(message)s"
        )
        formatter = TextFormatter(fmt, datefmt="%Y-%m-%d %H:%M:%S%z")

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return cast(BouResponderLogger, logger)


logger: BouResponderLogger = setup_logger()
