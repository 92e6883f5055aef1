"""Role policy engine: column-scoped grant replacement and schema role setup."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from packages.schemaward_shared.errors import (
    DependencyMissingError,
    PolicyConstraintError,
    codes,
)
from packages.schemaward_shared.logging import (
    fields,
    get_logger,
    log_context,
    public_api_logged,
)
from resources.substrates.postgres.catalog import (
    CatalogIntrospector,
    ColumnInfo,
    SchemaWriter,
)
from services.schema.ddl import (
    DdlStatement,
    GrantSchemaUsage,
    GrantTablePrivilege,
    Privilege,
    RevokeTablePrivilege,
    SetAllTablesPrivileges,
    SetDefaultTablePrivileges,
    display_sql,
)
from services.schema.domain_registry import require_identifier, require_identifiers
from services.schema.role_policy.domain import (
    ROLE_ARCHETYPES,
    ColumnPolicy,
    RoleArchetype,
    SchemaRoleGrant,
    SchemaRoleSetup,
)
from services.schema.role_policy.service import RolePolicyService

_LOGGER = get_logger(__name__)
_COMPONENT_ID = "role_policy"


def granted_columns(
    columns: Sequence[ColumnInfo], excluded: Iterable[str]
) -> tuple[str, ...]:
    """Return every column not in ``excluded``, in ordinal order."""
    skip = set(excluded)
    ordered = sorted(columns, key=lambda column: column.ordinal_position)
    return tuple(column.name for column in ordered if column.name not in skip)


def column_policy_statements(
    *,
    role: str,
    schema_name: str,
    table: str,
    privilege: Privilege,
    columns: tuple[str, ...] | None,
) -> tuple[DdlStatement, ...]:
    """Return the revoke-then-grant pair replacing one grant.

    ``columns=None`` grants at table level; an empty tuple revokes only.
    """
    revoke = RevokeTablePrivilege(privilege, schema_name, table, role)
    if columns is not None and not columns:
        return (revoke,)
    return (revoke, GrantTablePrivilege(privilege, schema_name, table, role, columns))


class DefaultRolePolicyService(RolePolicyService):
    """Role policy engine over one catalog connection."""

    def __init__(self, *, catalog: CatalogIntrospector, writer: SchemaWriter) -> None:
        self._catalog = catalog
        self._writer = writer

    @public_api_logged(
        logger=_LOGGER,
        component_id=_COMPONENT_ID,
        id_fields=("role", "schema_name", "table", "privilege"),
    )
    def apply_column_policy(
        self,
        *,
        role: str,
        schema_name: str,
        table: str,
        privilege: Privilege | str,
        excluded_columns: Iterable[str] = (),
    ) -> ColumnPolicy:
        """Replace ``role``'s grant on the table with all-but-excluded columns.

        Every check runs before the first statement. The previous grant for the
        same ``(role, table, privilege)`` is revoked in the same transaction, so
        exclusions from earlier calls never survive.
        """
        role = require_identifier(role, field_name="role")
        schema_name = require_identifier(schema_name, field_name="schema")
        table = require_identifier(table, field_name="table")
        resolved = Privilege.parse(privilege)
        excluded = require_identifiers(
            tuple(excluded_columns), field_name="column", lowercase=False
        )

        if excluded and not resolved.column_scoped:
            raise PolicyConstraintError(
                f"{resolved.value} is granted per row and cannot exclude columns",
                code=codes.ROW_PRIVILEGE_WITH_EXCLUSIONS,
                metadata={"privilege": resolved.value},
            )
        if not self._catalog.role_exists(role):
            raise DependencyMissingError(
                f"role does not exist: {role}",
                dependency=role,
                metadata={"role": role},
            )
        columns = self._catalog.list_columns(schema_name, table)
        if not columns:
            raise DependencyMissingError(
                f"table does not exist or has no columns: {schema_name}.{table}",
                dependency=f"{schema_name}.{table}",
                metadata={"schema": schema_name, "table": table},
            )
        if resolved is Privilege.UPDATE and not self._catalog.has_any_column_privilege(
            role, schema_name, table, Privilege.SELECT.value
        ):
            raise PolicyConstraintError(
                f"role {role} needs SELECT on {schema_name}.{table} before UPDATE",
                code=codes.SELECT_REQUIRED_FOR_UPDATE,
                metadata={"role": role, "schema": schema_name, "table": table},
            )

        known = {column.name for column in columns}
        unknown = [name for name in excluded if name not in known]
        if unknown:
            _LOGGER.debug("excluded columns not on table: %s", ", ".join(unknown))

        grant: tuple[str, ...] | None
        if resolved.column_scoped:
            grant = granted_columns(columns, excluded)
        else:
            grant = None
        statements = column_policy_statements(
            role=role,
            schema_name=schema_name,
            table=table,
            privilege=resolved,
            columns=grant,
        )
        with self._writer.transaction():
            for statement in statements:
                self._writer.execute(statement)

        if grant is not None and not grant:
            _LOGGER.warning(
                "every column excluded; %s revoked without replacement", resolved.value
            )

        return ColumnPolicy(
            role=role,
            schema_name=schema_name,
            table=table,
            privilege=resolved,
            granted_columns=grant or (),
            excluded_columns=excluded,
            table_level=grant is None,
            statements=tuple(display_sql(statement) for statement in statements),
        )

    @public_api_logged(
        logger=_LOGGER,
        component_id=_COMPONENT_ID,
        id_fields=("schema_name",),
    )
    def setup_schema_roles(
        self,
        *,
        schema_name: str,
        archetypes: Sequence[RoleArchetype] | None = None,
    ) -> SchemaRoleSetup:
        """Grant each archetype schema usage and its table privileges.

        Privileges apply to existing tables and, through default privileges, to
        tables created later. An archetype without privileges has everything
        revoked instead.
        """
        schema_name = require_identifier(schema_name, field_name="schema")
        selected = tuple(archetypes) if archetypes is not None else ROLE_ARCHETYPES
        for archetype in selected:
            if not self._catalog.role_exists(archetype.name):
                raise DependencyMissingError(
                    f"role does not exist: {archetype.name}",
                    dependency=archetype.name,
                    metadata={"role": archetype.name},
                )

        grants: list[SchemaRoleGrant] = []
        with self._writer.transaction():
            for archetype in selected:
                with log_context({fields.ROLE: archetype.name}):
                    self._writer.execute(GrantSchemaUsage(schema_name, archetype.name))
                    self._writer.execute(
                        SetDefaultTablePrivileges(
                            schema_name, archetype.name, archetype.privileges
                        )
                    )
                    self._writer.execute(
                        SetAllTablesPrivileges(
                            schema_name, archetype.name, archetype.privileges
                        )
                    )
                    _LOGGER.info("schema role privileges applied")
                grants.append(
                    SchemaRoleGrant(role=archetype.name, privileges=archetype.privileges)
                )
        return SchemaRoleSetup(schema_name=schema_name, grants=tuple(grants))
