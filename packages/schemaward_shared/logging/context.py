"""Context propagation helpers for structured logging.

Engines bind the catalog object they are working on (schema, table, role,
privilege) once, and every log line emitted inside that scope carries it.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Iterator, Mapping

_LOG_CONTEXT: ContextVar[dict[str, str]] = ContextVar(
    "schemaward_log_context", default={}
)


def get_context() -> dict[str, str]:
    """Return a shallow copy of current logging context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind values into the current context; ``None`` is skipped."""
    rendered = _render(values)
    if rendered:
        _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **rendered})


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the duration of a block, then restore."""
    token = _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **_render(values)})
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def _render(values: Mapping[str, object]) -> dict[str, str]:
    # Privileges and categories log as their SQL/wire value, not Enum repr.
    return {
        str(key): str(value.value) if isinstance(value, Enum) else str(value)
        for key, value in values.items()
        if value is not None
    }
