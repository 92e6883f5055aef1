"""Connection lifecycle helpers for structural changes."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Connection, Engine, text


@contextmanager
def transactional_connection(
    engine: Engine, *, statement_timeout_seconds: float | None = None
) -> Iterator[Connection]:
    """Yield a connection inside one transaction.

    The transaction commits when the block exits cleanly and rolls back on
    any exception, so a failed engine operation leaves no partial change.
    """
    with engine.begin() as conn:
        if statement_timeout_seconds is not None:
            timeout_ms = max(1, int(statement_timeout_seconds * 1000))
            conn.execute(
                text("SELECT set_config('statement_timeout', :timeout_value, true)"),
                {"timeout_value": f"{timeout_ms}ms"},
            )
        yield conn
