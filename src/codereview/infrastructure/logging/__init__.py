"""Logging infrastructure for codereview."""

from .logger import CodeReviewLogger, get_logger
from .context import LogContext, logging_context

__all__ = ["CodeReviewLogger", "get_logger", "LogContext", "logging_context"]
