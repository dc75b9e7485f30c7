"""
Per-thread logging context.

Fields stored here (session id, file being reviewed, rule id) are merged
into the ``extra`` of every record logged through CodeReviewLogger on the
same thread. Review workers run in a thread pool, so each worker carries
its own file context without leaking into its neighbours.

Example:
    >>> with logging_context(session_id="review-1a2b"):
    ...     with logging_context(file_path="src/app.js"):
    ...         logger.info("Reviewing file")  # has session_id and file_path
"""

import threading
from contextlib import contextmanager
from copy import deepcopy
from typing import Any, Dict

_MISSING = object()


class LogContext:
    """Thread-local key/value store read by the logger."""

    _local = threading.local()

    @classmethod
    def _fields(cls) -> Dict[str, Any]:
        if not hasattr(cls._local, "fields"):
            cls._local.fields = {}
        return cls._local.fields

    @classmethod
    def get_context(cls) -> Dict[str, Any]:
        """Copy of the current thread's context."""
        return deepcopy(cls._fields())

    @classmethod
    def set(cls, key: str, value: Any) -> None:
        cls._fields()[key] = value

    @classmethod
    def update(cls, fields: Dict[str, Any]) -> None:
        cls._fields().update(fields)

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        return cls._fields().get(key, default)

    @classmethod
    def remove(cls, *keys: str) -> None:
        fields = cls._fields()
        for key in keys:
            fields.pop(key, None)

    @classmethod
    def clear(cls) -> None:
        """Drop every field for the current thread."""
        cls._local.fields = {}


@contextmanager
def logging_context(**fields):
    """
    Set context fields for the duration of a block.

    Values shadowed by the block are restored on exit, so nested blocks
    may reuse a key.

    Args:
        **fields: Context fields, e.g. session_id="review-1a2b"
    """
    previous = {key: LogContext.get(key, _MISSING) for key in fields}
    LogContext.update(fields)
    try:
        yield
    finally:
        for key, value in previous.items():
            if value is _MISSING:
                LogContext.remove(key)
            else:
                LogContext.set(key, value)
