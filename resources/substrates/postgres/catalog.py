"""Catalog introspection and statement execution ports.

``CatalogIntrospector`` is the read side the engines consult before changing
anything; ``SchemaWriter`` applies typed statements. ``PostgresCatalog``
implements both on a single SQLAlchemy connection so reads observe the
writes of the same transaction.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import Connection, text
from sqlalchemy.exc import SQLAlchemyError

from packages.schemaward_shared.logging import fields, get_logger, log_context
from resources.substrates.postgres.errors import read_failure, write_failure

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ColumnInfo:
    """One column of a table, in declaration order."""

    name: str
    data_type: str
    ordinal_position: int


class SqlStatement(Protocol):
    """Anything that renders to one SQL statement."""

    def to_sql(self) -> str:
        """Return SQL text."""


class CatalogIntrospector(Protocol):
    """Read-only view of the database catalog."""

    def list_columns(self, schema_name: str, table: str) -> tuple[ColumnInfo, ...]:
        """Return the table's columns by ordinal position; empty if absent."""

    def list_tables(self, schema_name: str) -> tuple[str, ...]:
        """Return the names of the schema's ordinary tables, sorted."""

    def trigger_exists(self, schema_name: str, table: str, trigger_name: str) -> bool:
        """Return True when the named trigger exists on the table."""

    def role_exists(self, role: str) -> bool:
        """Return True when a role with this name exists."""

    def has_any_column_privilege(
        self, role: str, schema_name: str, table: str, privilege: str
    ) -> bool:
        """Return True when ``role`` holds ``privilege`` on any column."""

    def current_setting(self, name: str) -> str | None:
        """Return a session setting, or ``None`` when it is not set."""


class SchemaWriter(Protocol):
    """Applies structural statements."""

    def execute(self, statement: SqlStatement) -> None:
        """Execute one statement."""

    def transaction(self) -> AbstractContextManager[None]:
        """Return a scope whose statements apply all-or-nothing."""


class PostgresCatalog:
    """Catalog introspection and statement execution over one connection."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def list_columns(self, schema_name: str, table: str) -> tuple[ColumnInfo, ...]:
        rows = self._read(
            "list_columns",
            "SELECT column_name, data_type, ordinal_position "
            "FROM information_schema.columns "
            "WHERE table_schema = :schema_name AND table_name = :table_name "
            "ORDER BY ordinal_position",
            {"schema_name": schema_name, "table_name": table},
        )
        return tuple(
            ColumnInfo(
                name=str(row[0]),
                data_type=str(row[1]),
                ordinal_position=int(row[2]),
            )
            for row in rows
        )

    def list_tables(self, schema_name: str) -> tuple[str, ...]:
        rows = self._read(
            "list_tables",
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = :schema_name AND table_type = 'BASE TABLE' "
            "ORDER BY table_name",
            {"schema_name": schema_name},
        )
        return tuple(str(row[0]) for row in rows)

    def trigger_exists(self, schema_name: str, table: str, trigger_name: str) -> bool:
        rows = self._read(
            "trigger_exists",
            "SELECT 1 FROM information_schema.triggers "
            "WHERE event_object_schema = :schema_name "
            "AND event_object_table = :table_name "
            "AND trigger_name = :trigger_name "
            "LIMIT 1",
            {
                "schema_name": schema_name,
                "table_name": table,
                "trigger_name": trigger_name,
            },
        )
        return len(rows) > 0

    def role_exists(self, role: str) -> bool:
        rows = self._read(
            "role_exists",
            "SELECT 1 FROM pg_catalog.pg_roles WHERE rolname = :role_name",
            {"role_name": role},
        )
        return len(rows) > 0

    def has_any_column_privilege(
        self, role: str, schema_name: str, table: str, privilege: str
    ) -> bool:
        rows = self._read(
            "has_any_column_privilege",
            "SELECT has_any_column_privilege("
            ":role_name, format('%I.%I', :schema_name, :table_name), :privilege)",
            {
                "role_name": role,
                "schema_name": schema_name,
                "table_name": table,
                "privilege": privilege,
            },
        )
        return bool(rows and rows[0][0])

    def current_setting(self, name: str) -> str | None:
        rows = self._read(
            "current_setting",
            "SELECT current_setting(:setting_name, true)",
            {"setting_name": name},
        )
        if not rows or rows[0][0] is None:
            return None
        value = str(rows[0][0])
        # Postgres reports a custom setting reset within the session as "".
        return value if value != "" else None

    def execute(self, statement: SqlStatement) -> None:
        kind = getattr(statement, "kind", type(statement).__name__)
        with log_context({fields.STATEMENT_KIND: kind}):
            _LOGGER.debug("executing statement")
        try:
            # Rendered literals may contain ":" or "%"; bypass paramstyle parsing.
            self._connection.exec_driver_sql(
                statement.to_sql(), execution_options={"no_parameters": True}
            )
        except SQLAlchemyError as exc:
            raise write_failure(exc, statement_kind=kind) from exc

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Open a transaction, or a savepoint when one is already open."""
        if self._connection.in_transaction():
            with self._connection.begin_nested():
                yield
            return
        with self._connection.begin():
            yield

    def _read(
        self, operation: str, sql: str, params: dict[str, str]
    ) -> list[tuple[object, ...]]:
        """Run one catalog query and return its rows as tuples."""
        try:
            result = self._connection.execute(text(sql), params)
            return [tuple(row) for row in result.fetchall()]
        except SQLAlchemyError as exc:
            raise read_failure(exc, operation=operation) from exc
