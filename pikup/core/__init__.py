"""Core infrastructure: configuration, errors, logging, results and retries."""

from .config import PikupSettings, get_settings, reset_settings
from .environment import Environment
from .logger import draft_context, draft_id_ctx, setup_structured_logging
from .result import Failure, Result, Success, err, ok

__all__ = [
    "PikupSettings",
    "get_settings",
    "reset_settings",
    "Environment",
    "draft_context",
    "draft_id_ctx",
    "setup_structured_logging",
    "Result",
    "Success",
    "Failure",
    "ok",
    "err",
]
