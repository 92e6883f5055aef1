"""Audit trigger engine: one last-updated trigger per table."""

from __future__ import annotations

from typing import Final

from packages.schemaward_shared.logging import fields, get_logger, log_context
from resources.substrates.postgres.catalog import CatalogIntrospector, SchemaWriter
from services.schema.ddl import (
    CommentOn,
    CreateOrReplaceTriggerFunction,
    CreateTrigger,
)
from services.schema.domain_registry import require_identifier
from services.schema.table_settings.domain import LAST_UPDATED_AT_COLUMN, TableRef

_LOGGER = get_logger(__name__)

TRIGGER_PURPOSE: Final[str] = "trigger_set_last_updated_at"
TRIGGER_ORDINAL: Final[int] = 1
FUNCTION_COMMENT: Final[str] = (
    "Trigger function setting last_updated_at to the current wall-clock time."
)


def update_trigger_name(table: str) -> str:
    """Return ``<table>_001_trigger_set_last_updated_at``.

    The ordinal keeps trigger firing order stable when more triggers are added
    to the same table later.
    """
    name = f"{table}_{TRIGGER_ORDINAL:03d}_{TRIGGER_PURPOSE}"
    return require_identifier(name, field_name="trigger")


class AuditTriggerEngine:
    """Installs the shared trigger function and per-table update triggers."""

    def __init__(
        self,
        *,
        catalog: CatalogIntrospector,
        writer: SchemaWriter,
        function_schema: str = "universal",
        function_name: str = TRIGGER_PURPOSE,
    ) -> None:
        self._catalog = catalog
        self._writer = writer
        self._function_schema = require_identifier(function_schema, field_name="schema")
        self._function_name = require_identifier(function_name, field_name="function")

    def ensure_trigger_function(self) -> None:
        """Create or replace the shared trigger function."""
        self._writer.execute(
            CreateOrReplaceTriggerFunction(
                self._function_schema, self._function_name, LAST_UPDATED_AT_COLUMN
            )
        )
        self._writer.execute(
            CommentOn(
                "FUNCTION",
                (self._function_schema, self._function_name),
                FUNCTION_COMMENT,
            )
        )

    def ensure_update_trigger(self, table: TableRef) -> bool:
        """Install the table's update trigger; return True when it was created."""
        name = update_trigger_name(table.table)
        with log_context({fields.TRIGGER: name}):
            if self._catalog.trigger_exists(table.schema_name, table.table, name):
                _LOGGER.debug("update trigger already present")
                return False
            with self._writer.transaction():
                self.ensure_trigger_function()
                self._writer.execute(
                    CreateTrigger(
                        table.schema_name,
                        table.table,
                        name,
                        self._function_schema,
                        self._function_name,
                    )
                )
            _LOGGER.info("update trigger created")
        return True
