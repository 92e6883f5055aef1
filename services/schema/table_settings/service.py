"""Authoritative in-process Python API for table settings augmentation."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.schemaward_shared.config import SchemawardSettings
from resources.substrates.postgres.catalog import CatalogIntrospector, SchemaWriter
from services.schema.role_policy import ColumnPolicy
from services.schema.table_settings.domain import (
    AppliedSettings,
    ResolvedTableSettings,
    TableRef,
    TableSettingsOverride,
)


class TableSettingsService(ABC):
    """Public API for attaching tenant, source and audit columns to tables."""

    @abstractmethod
    def resolve(
        self, *, override: TableSettingsOverride | None = None
    ) -> ResolvedTableSettings:
        """Return the effective toggles without touching the database."""

    @abstractmethod
    def apply_settings(
        self, *, table: TableRef, override: TableSettingsOverride | None = None
    ) -> AppliedSettings:
        """Idempotently apply the effective toggles to ``table`` in one transaction."""

    @abstractmethod
    def enforce_column_locks(self, *, table: TableRef) -> tuple[ColumnPolicy, ...]:
        """Re-assert locked-role grants for the audit columns ``table`` has.

        Safe to call on any table; one without locked audit columns is left
        untouched.
        """


def build_table_settings_service(
    *,
    settings: SchemawardSettings,
    catalog: CatalogIntrospector,
    writer: SchemaWriter,
    include_session_settings: bool = True,
) -> TableSettingsService:
    """Build the default augmentation engine over one catalog connection."""
    from services.schema.table_settings.implementation import (
        DefaultTableSettingsService,
    )

    return DefaultTableSettingsService.from_settings(
        settings=settings,
        catalog=catalog,
        writer=writer,
        include_session_settings=include_session_settings,
    )
