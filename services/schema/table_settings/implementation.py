"""Table settings augmentation engine."""

from __future__ import annotations

from packages.schemaward_shared.config import (
    ForeignKeyTarget,
    ReferenceSettings,
    SchemawardSettings,
)
from packages.schemaward_shared.errors import DependencyMissingError
from packages.schemaward_shared.logging import (
    fields,
    get_logger,
    log_context,
    public_api_logged,
)
from resources.substrates.postgres.catalog import CatalogIntrospector, SchemaWriter
from services.schema.ddl import (
    AddColumnIfAbsent,
    CommentOn,
    CreateIndexIfAbsent,
    ForeignKeyRef,
    Privilege,
)
from services.schema.role_policy import ColumnPolicy, RolePolicyService
from services.schema.role_policy.implementation import DefaultRolePolicyService
from services.schema.table_settings.audit_trigger import (
    AuditTriggerEngine,
    update_trigger_name,
)
from services.schema.table_settings.config import (
    CREATED_AT_ADD,
    CREATED_AT_LOCKED_ROLES,
    LAST_UPDATED_AT_ADD,
    LAST_UPDATED_AT_LOCKED_ROLES,
    MULTI_SOURCE,
    MULTI_TENANT,
    SettingsContext,
    resolve_setting,
    resolve_setting_list,
)
from services.schema.table_settings.domain import (
    CLOCK_DEFAULT,
    CREATED_AT_COLUMN,
    CREATED_AT_COMMENT,
    LAST_UPDATED_AT_COLUMN,
    LAST_UPDATED_AT_COMMENT,
    NIL_UUID_DEFAULT,
    SOURCE_COLUMN,
    SOURCE_COMMENT,
    TENANT_COLUMN,
    TENANT_COMMENT,
    AppliedSettings,
    ResolvedTableSettings,
    TableRef,
    TableSettingsOverride,
)
from services.schema.table_settings.service import TableSettingsService

_LOGGER = get_logger(__name__)
_COMPONENT_ID = "table_settings"

# Locked columns are kept out of both write paths.
_LOCKED_PRIVILEGES = (Privilege.UPDATE, Privilege.INSERT)


class DefaultTableSettingsService(TableSettingsService):
    """Augmentation engine orchestrating columns, indexes, trigger and policies."""

    def __init__(
        self,
        *,
        catalog: CatalogIntrospector,
        writer: SchemaWriter,
        context: SettingsContext | None = None,
        references: ReferenceSettings | None = None,
        policy_service: RolePolicyService | None = None,
        trigger_engine: AuditTriggerEngine | None = None,
    ) -> None:
        self._catalog = catalog
        self._writer = writer
        self._context = context or SettingsContext()
        self._references = references or ReferenceSettings()
        self._policy_service = policy_service or DefaultRolePolicyService(
            catalog=catalog, writer=writer
        )
        self._trigger_engine = trigger_engine or AuditTriggerEngine(
            catalog=catalog, writer=writer
        )

    @classmethod
    def from_settings(
        cls,
        *,
        settings: SchemawardSettings,
        catalog: CatalogIntrospector,
        writer: SchemaWriter,
        include_session_settings: bool = True,
    ) -> "DefaultTableSettingsService":
        """Build an engine whose ambient context is config plus session settings."""
        context = SettingsContext.from_settings(settings)
        if include_session_settings:
            context = context.merged(SettingsContext.from_session(catalog))
        return cls(
            catalog=catalog,
            writer=writer,
            context=context,
            references=settings.references,
            trigger_engine=AuditTriggerEngine(
                catalog=catalog,
                writer=writer,
                function_schema=settings.universal.schema_name,
                function_name=settings.universal.trigger_function,
            ),
        )

    @public_api_logged(logger=_LOGGER, component_id=_COMPONENT_ID)
    def resolve(
        self, *, override: TableSettingsOverride | None = None
    ) -> ResolvedTableSettings:
        """Return the effective toggles for ``override`` and the ambient context."""
        override = override or TableSettingsOverride()
        created = override.created_at_column
        updated = override.last_updated_at_column
        return ResolvedTableSettings(
            multi_tenant=resolve_setting(
                MULTI_TENANT, override=override.multi_tenant, context=self._context
            ),
            multi_source=resolve_setting(
                MULTI_SOURCE, override=override.multi_source, context=self._context
            ),
            created_at_column=resolve_setting(
                CREATED_AT_ADD,
                override=created.add_to_table if created is not None else None,
                context=self._context,
            ),
            last_updated_at_column=resolve_setting(
                LAST_UPDATED_AT_ADD,
                override=updated.add_to_table if updated is not None else None,
                context=self._context,
            ),
            created_at_locked_roles=resolve_setting_list(
                CREATED_AT_LOCKED_ROLES, default=("mutator",), context=self._context
            ),
            last_updated_at_locked_roles=resolve_setting_list(
                LAST_UPDATED_AT_LOCKED_ROLES, default=(), context=self._context
            ),
        )

    @public_api_logged(
        logger=_LOGGER,
        component_id=_COMPONENT_ID,
        id_fields=("table",),
    )
    def apply_settings(
        self, *, table: TableRef, override: TableSettingsOverride | None = None
    ) -> AppliedSettings:
        """Apply every enabled toggle to ``table`` all-or-nothing.

        Column grants for locked roles are replaced after all columns exist and
        cover every locked audit column the table has, whichever call added it.
        """
        resolved = self.resolve(override=override)
        columns: list[str] = []
        indexes: list[str] = []
        trigger: str | None = None
        trigger_created = False
        policies: tuple[ColumnPolicy, ...] = ()

        with log_context({fields.SCHEMA: table.schema_name, fields.TABLE: table.table}):
            self._require_table(table)
            if resolved.multi_tenant:
                self._require_reference(self._references.tenant)
            if resolved.multi_source:
                self._require_reference(self._references.source)

            with self._writer.transaction():
                if resolved.multi_tenant:
                    indexes.append(
                        self._add_reference_column(
                            table, TENANT_COLUMN, self._references.tenant, TENANT_COMMENT
                        )
                    )
                    columns.append(TENANT_COLUMN)
                if resolved.multi_source:
                    indexes.append(
                        self._add_reference_column(
                            table, SOURCE_COLUMN, self._references.source, SOURCE_COMMENT
                        )
                    )
                    columns.append(SOURCE_COLUMN)
                if resolved.created_at_column:
                    indexes.append(
                        self._add_timestamp_column(
                            table, CREATED_AT_COLUMN, CREATED_AT_COMMENT
                        )
                    )
                    columns.append(CREATED_AT_COLUMN)
                if resolved.last_updated_at_column:
                    indexes.append(
                        self._add_timestamp_column(
                            table, LAST_UPDATED_AT_COLUMN, LAST_UPDATED_AT_COMMENT
                        )
                    )
                    columns.append(LAST_UPDATED_AT_COLUMN)
                    trigger = update_trigger_name(table.table)
                    trigger_created = self._trigger_engine.ensure_update_trigger(table)

                if resolved.created_at_column or resolved.last_updated_at_column:
                    policies = self._lock_audit_columns(table, resolved)

            _LOGGER.info(
                "table settings applied: %s",
                ", ".join(sorted(resolved.enabled())) or "none",
            )

        return AppliedSettings(
            table=table,
            resolved=resolved,
            columns=tuple(columns),
            indexes=tuple(indexes),
            trigger=trigger,
            trigger_created=trigger_created,
            policies=policies,
        )

    @public_api_logged(
        logger=_LOGGER,
        component_id=_COMPONENT_ID,
        id_fields=("table",),
    )
    def enforce_column_locks(self, *, table: TableRef) -> tuple[ColumnPolicy, ...]:
        """Replace locked-role grants so no locked audit column is writable.

        Schema-wide grants issued after augmentation hand table-level write
        access back to every role; this narrows it again.
        """
        resolved = self.resolve()
        with log_context({fields.SCHEMA: table.schema_name, fields.TABLE: table.table}):
            self._require_table(table)
            with self._writer.transaction():
                return self._lock_audit_columns(table, resolved)

    def _lock_audit_columns(
        self, table: TableRef, resolved: ResolvedTableSettings
    ) -> tuple[ColumnPolicy, ...]:
        """Exclude each present audit column from its locked roles' writes."""
        present = {
            column.name
            for column in self._catalog.list_columns(table.schema_name, table.table)
        }
        locked: dict[str, list[str]] = {}
        for column, roles in (
            (CREATED_AT_COLUMN, resolved.created_at_locked_roles),
            (LAST_UPDATED_AT_COLUMN, resolved.last_updated_at_locked_roles),
        ):
            if column not in present:
                continue
            for role in roles:
                locked.setdefault(role, []).append(column)

        return tuple(
            self._policy_service.apply_column_policy(
                role=role,
                schema_name=table.schema_name,
                table=table.table,
                privilege=privilege,
                excluded_columns=excluded,
            )
            for role, excluded in locked.items()
            for privilege in _LOCKED_PRIVILEGES
        )

    def _require_table(self, table: TableRef) -> None:
        if not self._catalog.list_columns(table.schema_name, table.table):
            raise DependencyMissingError(
                f"table does not exist: {table.qualified_name}",
                dependency=table.qualified_name,
                metadata={"schema": table.schema_name, "table": table.table},
            )

    def _require_reference(self, target: ForeignKeyTarget) -> None:
        """Fail before any change when the referenced column is missing."""
        names = {
            column.name
            for column in self._catalog.list_columns(target.schema_name, target.table)
        }
        if target.column not in names:
            qualified = f"{target.schema_name}.{target.table}({target.column})"
            raise DependencyMissingError(
                f"referenced column does not exist: {qualified}",
                dependency=qualified,
                metadata={"schema": target.schema_name, "table": target.table},
            )

    def _add_reference_column(
        self,
        table: TableRef,
        column: str,
        target: ForeignKeyTarget,
        comment: str,
    ) -> str:
        """Add one persona reference column with its index and comment."""
        self._writer.execute(
            AddColumnIfAbsent(
                schema_name=table.schema_name,
                table=table.table,
                column=column,
                data_type="uuid",
                not_null=True,
                default_sql=NIL_UUID_DEFAULT,
                references=ForeignKeyRef(target.schema_name, target.table, target.column),
            )
        )
        return self._finish_column(table, column, comment)

    def _add_timestamp_column(self, table: TableRef, column: str, comment: str) -> str:
        """Add one clock-stamped audit column with its index and comment."""
        self._writer.execute(
            AddColumnIfAbsent(
                schema_name=table.schema_name,
                table=table.table,
                column=column,
                data_type="timestamptz",
                not_null=True,
                default_sql=CLOCK_DEFAULT,
            )
        )
        return self._finish_column(table, column, comment)

    def _finish_column(self, table: TableRef, column: str, comment: str) -> str:
        """Index and comment a freshly ensured column; return the index name."""
        index = CreateIndexIfAbsent(table.schema_name, table.table, column)
        self._writer.execute(index)
        self._writer.execute(
            CommentOn("COLUMN", (table.schema_name, table.table, column), comment)
        )
        with log_context({fields.COLUMN: column}):
            _LOGGER.debug("column ensured")
        return index.index_name
