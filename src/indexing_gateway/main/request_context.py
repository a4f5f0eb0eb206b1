"""Per-request logging context kept in a contextvar.

Values stored here (correlation id, the tenant's service account, method and
path) are merged into every log record by ``ContextJSONFormatter``. Worker
threads started by the batch dispatcher run inside a copy of the caller's
context, so their log lines carry the same values.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator


_request_context: ContextVar[Dict[str, Any]] = ContextVar("request_context", default={})


def get_request_context() -> Dict[str, Any]:
    """Return a copy of the current request context."""
    context = _request_context.get()
    return dict(context) if context else {}


def set_request_context(**values: Any) -> Dict[str, Any]:
    """Merge provided values into the stored context.

    Passing ``None`` removes the key.
    """
    current = get_request_context()
    for key, value in values.items():
        if value is None:
            current.pop(key, None)
        else:
            current[key] = value
    _request_context.set(current)
    return current


@contextmanager
def request_context(**values: Any) -> Iterator[Dict[str, Any]]:
    """Bind ``values`` for the duration of the block, then restore the previous context."""
    merged = get_request_context()
    merged.update({key: value for key, value in values.items() if value is not None})
    token = _request_context.set(merged)
    try:
        yield get_request_context()
    finally:
        _request_context.reset(token)
