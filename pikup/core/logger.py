"""Structured logging with Loguru."""

import contextvars
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from types import FrameType
from typing import Any, Dict, Iterator, Optional

from loguru import logger

from .environment import Environment

# Booking draft currently being processed, attached to every log record
draft_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "draft_id", default=None
)

__all__ = [
    "draft_id_ctx",
    "draft_context",
    "setup_structured_logging",
    "InterceptHandler",
]


def _draft_patcher(record: Dict[str, Any]) -> None:
    """
    Patch log records with the draft id from context.

    Called by Loguru for each log record to inject the draft id from the
    ContextVar into the log's extra fields.
    """
    draft_id = draft_id_ctx.get()
    if draft_id:
        record["extra"]["draft_id"] = draft_id


@contextmanager
def draft_context(draft_id: str) -> Iterator[None]:
    """Attach ``draft_id`` to every log record emitted inside the block."""
    token = draft_id_ctx.set(draft_id)
    try:
        yield
    finally:
        draft_id_ctx.reset(token)


class InterceptHandler(logging.Handler):
    """Redirect standard logging records (tenacity, aiohttp) to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame: Optional[FrameType] = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_structured_logging(
    level: str = "INFO", json_format: bool = True, logs_dir: Optional[Path] = None
) -> None:
    """
    Setup Loguru logging with structured output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON format for the file sink (True for production)
        logs_dir: Directory for log files (defaults to ./logs)
    """
    logger.remove()
    logger.configure(patcher=_draft_patcher)

    logs_dir = logs_dir or Path("logs")
    logs_dir.mkdir(parents=True, exist_ok=True)

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
    logger.add(sys.stdout, format=console_format, level=level, colorize=True)

    if json_format:
        logger.add(
            logs_dir / "pikup.jsonl",
            format="{message}",
            level=level,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            serialize=True,
        )
    else:
        text_format = (
            "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        )
        logger.add(
            logs_dir / "pikup.log",
            format=text_format,
            level=level,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
        )

    # Variable values in tracebacks may contain client secrets: development only
    logger.add(
        logs_dir / "errors_{time:YYYY-MM-DD}.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} - {message}",
        level="ERROR",
        rotation="10 MB",
        retention="90 days",
        backtrace=True,
        diagnose=Environment.is_development(),
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.root.setLevel(getattr(logging, level))
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logger.info(f"Logging initialized (level={level}, json={json_format})")
