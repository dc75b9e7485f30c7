"""
Logging for codereview.

Two outputs share one ``codereview`` logger:

- console: short human-readable lines on stderr, so report output on
  stdout stays machine-readable
- file (optional): one JSON object per line, rotated at midnight and
  kept for ``retention_days``

Records logged through CodeReviewLogger pick up the thread's LogContext
fields (session id, file path) automatically.
"""

import json
import logging
import logging.handlers
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .context import LogContext

ROOT_LOGGER_NAME = "codereview"

# Attributes every LogRecord has; anything else came in through extra
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Render a record and its extra fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
        }

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                payload[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        # Paths and enums in extra are stringified
        return json.dumps(payload, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Console format: ``HH:MM:SS LEVEL message``."""

    def __init__(self):
        super().__init__(fmt="%(asctime)s %(levelname)-7s %(message)s", datefmt="%H:%M:%S")


class CodeReviewLogger:
    """
    Process-wide logger for codereview.

    Use get_instance() rather than the constructor; the first call
    configures handlers and later calls return the same object.

    Example:
        >>> logger = CodeReviewLogger.get_instance(level="DEBUG")
        >>> logger.info("Review started", extra={"files": 12})
    """

    _instance: Optional["CodeReviewLogger"] = None
    _lock: threading.Lock = threading.Lock()

    def __init__(
        self,
        level: str = "INFO",
        log_file: Optional[Path] = None,
        console: bool = True,
        rotation: str = "daily",
        retention_days: int = 30,
    ):
        """
        Configure the ``codereview`` logger.

        Args:
            level: Console log level name
            log_file: JSON log file path, or None for console only
            console: Write human-readable lines to stderr
            rotation: "daily" for midnight rotation, "none" for a plain file
            retention_days: Rotated files to keep
        """
        self.level = level.upper()
        self.log_file = Path(log_file) if log_file else None
        self.logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.logger.setLevel(logging.DEBUG if self.log_file else getattr(logging, self.level))
        self.logger.propagate = False

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        if console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, self.level))
            console_handler.setFormatter(HumanReadableFormatter())
            self.logger.addHandler(console_handler)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            if rotation == "daily":
                file_handler = logging.handlers.TimedRotatingFileHandler(
                    filename=str(self.log_file),
                    when="midnight",
                    interval=1,
                    backupCount=retention_days,
                    encoding="utf-8",
                )
            else:
                file_handler = logging.FileHandler(str(self.log_file), encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(JSONFormatter())
            self.logger.addHandler(file_handler)

    @classmethod
    def get_instance(
        cls,
        level: str = "INFO",
        log_file: Optional[Path] = None,
        console: bool = True,
        rotation: str = "daily",
        retention_days: int = 30,
    ) -> "CodeReviewLogger":
        """
        Return the shared logger, creating it on first use.

        Arguments are only honoured by the call that creates the instance.
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls(
                        level=level,
                        log_file=log_file,
                        console=console,
                        rotation=rotation,
                        retention_days=retention_days,
                    )
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Close handlers and forget the shared instance."""
        with cls._lock:
            if cls._instance is not None:
                for handler in list(cls._instance.logger.handlers):
                    cls._instance.logger.removeHandler(handler)
                    handler.close()
            cls._instance = None

    @staticmethod
    def _with_context(kwargs: Dict[str, Any]) -> Dict[str, Any]:
        context = LogContext.get_context()
        if not context:
            return kwargs
        merged = dict(kwargs)
        # Explicit extra wins over context
        merged["extra"] = {**context, **kwargs.get("extra", {})}
        return merged

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, **self._with_context(kwargs))

    def info(self, message: str, **kwargs):
        self.logger.info(message, **self._with_context(kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, **self._with_context(kwargs))

    def error(self, message: str, **kwargs):
        self.logger.error(message, **self._with_context(kwargs))

    def critical(self, message: str, **kwargs):
        self.logger.critical(message, **self._with_context(kwargs))


def get_logger(name: str) -> logging.Logger:
    """
    Child of the ``codereview`` logger.

    Args:
        name: Dotted suffix, e.g. "git"

    Returns:
        logging.Logger named ``codereview.<name>``
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
