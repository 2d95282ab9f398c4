"""
Centralized logging configuration with run_id context support using loguru.

This module configures loguru to intercept all standard logging calls and provides
automatic context propagation using contextvars. Every orchestration run (one CI
invocation or one webhook delivery) sets a run_id so its log lines can be grouped.
"""

import json
import logging
import sys
import traceback
from contextvars import ContextVar
from types import FrameType
from typing import Optional

from loguru import logger

from railway_preview.core.config import settings

# Context variable for the current orchestration run
run_id_var: ContextVar[str] = ContextVar("run_id", default="-")


class InterceptHandler(logging.Handler):
    """
    Handler that intercepts standard logging calls and redirects them to loguru.

    Modules keep using logging.getLogger(__name__) and injected loggers; loguru
    only owns the output side.
    """

    def emit(self, record: logging.LogRecord):
        """Intercept standard logging record and pass to loguru."""
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logging call originated
        frame: Optional[FrameType] = sys._getframe(settings.LOGGING_FRAME_DEPTH)
        depth: int = settings.LOGGING_FRAME_DEPTH

        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def context_filter(record):
    """Add run_id from contextvars to log records."""
    run_id = run_id_var.get()
    if run_id and run_id != "-":
        record["extra"]["run_id"] = run_id

    return record


def build_simplified_json_record(record):
    """
    Build a simplified JSON log record from a loguru record.

    Only includes essential fields:
    - timestamp
    - level
    - message
    - logger name
    - run_id (if present)
    - exception (if present)
    """
    log_record = {
        "timestamp": record["time"].strftime("%Y-%m-%d %H:%M:%S"),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
    }

    if "run_id" in record["extra"]:
        log_record["run_id"] = record["extra"]["run_id"]

    if record["exception"]:
        traceback_text = None
        if record["exception"].traceback:
            try:
                traceback_text = "".join(
                    traceback.format_exception(
                        record["exception"].type,
                        record["exception"].value,
                        record["exception"].traceback,
                    )
                ).strip()
            except Exception:
                # Fall back to stringifying the traceback object if formatting fails
                traceback_text = str(record["exception"].traceback)

        log_record["exception"] = {
            "type": (
                record["exception"].type.__name__ if record["exception"].type else None
            ),
            "value": (
                str(record["exception"].value) if record["exception"].value else None
            ),
            "traceback": traceback_text,
        }
    else:
        log_record["exception"] = None

    return log_record


def custom_json_sink(message):
    """Write a loguru message to stderr as simplified JSON."""
    log_record = build_simplified_json_record(message.record)
    sys.stderr.write(json.dumps(log_record) + "\n")


def configure_logging(log_level: Optional[str] = None):
    """
    Configure logging for the application using loguru.

    1. Removes default loguru handler
    2. Adds custom JSON sink (stderr)
    3. Configures context filter to inject run_id from contextvars
    4. Intercepts all standard logging calls to redirect to loguru
    """
    logger.remove()

    level = (log_level or settings.LOG_LEVEL).upper()

    logger.add(
        custom_json_sink,
        level=level,
        backtrace=True,
        diagnose=False,
        filter=context_filter,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # Set logging level for commonly verbose libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger.info("Logging configured successfully with loguru")


def set_run_id(run_id: str):
    """
    Set the run_id for the current context.

    All subsequent logs in this context will automatically include this run_id.
    """
    run_id_var.set(run_id)


def clear_run_id():
    """Clear the run_id from the current context."""
    run_id_var.set("-")


def get_run_id() -> str:
    """Get the current run_id from context."""
    return run_id_var.get()
