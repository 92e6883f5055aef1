"""In-memory catalog double implementing introspection and statement execution.

The model covers what the engines touch: schemas, domains, tables and their
ordered columns, indexes, triggers and shared functions, roles with login
state, table/column privileges and session settings. Missing objects fail the way Postgres
fails, and ``transaction()`` rolls state back on error.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from packages.schemaward_shared.errors import (
    DependencyMissingError,
    StatementExecutionError,
    codes,
)
from resources.substrates.postgres.catalog import ColumnInfo, SqlStatement
from services.schema.ddl import (
    AddColumnIfAbsent,
    AlterRoleBaseline,
    CommentOn,
    CreateDomainIfAbsent,
    CreateExtensionIfAbsent,
    CreateIndexIfAbsent,
    CreateOrReplaceTenantSetter,
    CreateOrReplaceTriggerFunction,
    CreateOrReplaceUuidConstantFunction,
    CreateRole,
    CreateSchemaIfAbsent,
    CreateTrigger,
    DdlStatement,
    GrantSchemaUsage,
    GrantTablePrivilege,
    Privilege,
    RevokeSchemaCreateFromPublic,
    RevokeTablePrivilege,
    SetAllTablesPrivileges,
    SetDefaultTablePrivileges,
    SetRoleLogin,
    SetSessionSetting,
)
from services.schema.domain_registry import DomainDefinition

TableKey = tuple[str, str]
GrantKey = tuple[str, str, str, Privilege]


@dataclass
class RoleRecord:
    """Stored state of one role."""

    name: str
    can_login: bool = False
    password: str | None = field(default=None, repr=False)
    restricted: bool = False
    comment: str | None = None


@dataclass
class ColumnRecord:
    """Stored state of one column."""

    info: ColumnInfo
    not_null: bool = False
    default_sql: str | None = None
    references: tuple[str, str, str] | None = None


@dataclass
class CatalogState:
    """Everything the in-memory catalog knows; deep-copied per transaction."""

    schemas: set[str] = field(default_factory=lambda: {"public"})
    extensions: set[str] = field(default_factory=set)
    public_create_revoked: set[str] = field(default_factory=set)
    domains: dict[str, DomainDefinition] = field(default_factory=dict)
    functions: dict[TableKey, str] = field(default_factory=dict)
    tables: dict[TableKey, list[ColumnRecord]] = field(default_factory=dict)
    indexes: dict[TableKey, tuple[str, str, str]] = field(default_factory=dict)
    triggers: dict[TableKey, dict[str, TableKey]] = field(default_factory=dict)
    roles: dict[str, RoleRecord] = field(default_factory=dict)
    grants: dict[GrantKey, frozenset[str] | None] = field(default_factory=dict)
    default_privileges: dict[TableKey, tuple[Privilege, ...]] = field(
        default_factory=dict
    )
    schema_usage: set[TableKey] = field(default_factory=set)
    comments: dict[tuple[str, tuple[str, ...]], str] = field(default_factory=dict)


class InMemoryCatalog:
    """Catalog double the engine tests run against."""

    def __init__(self, *, session_settings: Mapping[str, str] | None = None) -> None:
        self.state = CatalogState()
        self.session_settings: dict[str, str] = dict(session_settings or {})
        self.executed: list[DdlStatement] = []
        self._handlers: dict[type[DdlStatement], Callable[[Any], None]] = {
            CreateSchemaIfAbsent: self._create_schema,
            CreateExtensionIfAbsent: self._create_extension,
            RevokeSchemaCreateFromPublic: self._revoke_public_create,
            CreateDomainIfAbsent: self._create_domain,
            CommentOn: self._comment,
            AddColumnIfAbsent: self._add_column,
            CreateIndexIfAbsent: self._create_index,
            CreateOrReplaceTriggerFunction: self._create_function,
            CreateOrReplaceUuidConstantFunction: self._create_constant_function,
            CreateOrReplaceTenantSetter: self._create_tenant_setter,
            SetSessionSetting: self._set_session_setting,
            CreateTrigger: self._create_trigger,
            RevokeTablePrivilege: self._revoke,
            GrantTablePrivilege: self._grant,
            CreateRole: self._create_role,
            AlterRoleBaseline: self._alter_role_baseline,
            SetRoleLogin: self._set_role_login,
            GrantSchemaUsage: self._grant_schema_usage,
            SetDefaultTablePrivileges: self._set_default_privileges,
            SetAllTablesPrivileges: self._set_all_tables_privileges,
        }

    # Fixture helpers

    def create_table(
        self,
        schema_name: str,
        table: str,
        columns: Sequence[str],
        *,
        data_type: str = "text",
    ) -> None:
        """Create a table, applying default privileges as Postgres does."""
        self.state.schemas.add(schema_name)
        self.state.tables[(schema_name, table)] = [
            ColumnRecord(ColumnInfo(name=name, data_type=data_type, ordinal_position=index))
            for index, name in enumerate(columns, start=1)
        ]
        for (schema, role), privileges in self.state.default_privileges.items():
            if schema != schema_name:
                continue
            for privilege in privileges:
                self.state.grants[(role, schema_name, table, privilege)] = None

    def add_role(self, name: str, *, can_login: bool = False) -> None:
        """Create a role directly, bypassing statements."""
        self.state.roles[name] = RoleRecord(name=name, can_login=can_login)

    def grant(
        self,
        role: str,
        schema_name: str,
        table: str,
        privilege: Privilege,
        columns: Sequence[str] | None = None,
    ) -> None:
        """Record a grant directly, bypassing statements."""
        self.state.grants[(role, schema_name, table, privilege)] = (
            None if columns is None else frozenset(columns)
        )

    # Introspection

    def list_columns(self, schema_name: str, table: str) -> tuple[ColumnInfo, ...]:
        return tuple(record.info for record in self.state.tables.get((schema_name, table), ()))

    def list_tables(self, schema_name: str) -> tuple[str, ...]:
        return tuple(sorted(table for schema, table in self.state.tables if schema == schema_name))

    def trigger_exists(self, schema_name: str, table: str, trigger_name: str) -> bool:
        return trigger_name in self.state.triggers.get((schema_name, table), {})

    def role_exists(self, role: str) -> bool:
        return role in self.state.roles

    def has_any_column_privilege(
        self, role: str, schema_name: str, table: str, privilege: str
    ) -> bool:
        self._require_table(schema_name, table)
        self._require_role(role)
        return bool(
            self.effective_columns(role, schema_name, table, Privilege.parse(privilege))
        )

    def current_setting(self, name: str) -> str | None:
        return self.session_settings.get(name)

    # Queries used by tests

    def effective_columns(
        self, role: str, schema_name: str, table: str, privilege: Privilege
    ) -> frozenset[str]:
        """Return the columns ``role`` may use ``privilege`` on."""
        key = (role, schema_name, table, privilege)
        if key not in self.state.grants:
            return frozenset()
        names = {info.name for info in self.list_columns(schema_name, table)}
        granted = self.state.grants[key]
        if granted is None:
            return frozenset(names)
        return granted & names

    def has_table_grant(
        self, role: str, schema_name: str, table: str, privilege: Privilege
    ) -> bool:
        """Return True for a table-level (not column-level) grant."""
        key = (role, schema_name, table, privilege)
        return key in self.state.grants and self.state.grants[key] is None

    def can_write(
        self,
        role: str,
        schema_name: str,
        table: str,
        privilege: Privilege,
        columns: Sequence[str],
    ) -> bool:
        """Return True when a statement naming ``columns`` would be permitted."""
        return set(columns) <= self.effective_columns(role, schema_name, table, privilege)

    def triggers_on(self, schema_name: str, table: str) -> tuple[str, ...]:
        """Return trigger names on a table in firing (alphabetical) order."""
        return tuple(sorted(self.state.triggers.get((schema_name, table), {})))

    def index_names(self, schema_name: str) -> tuple[str, ...]:
        return tuple(sorted(name for schema, name in self.state.indexes if schema == schema_name))

    def column(self, schema_name: str, table: str, name: str) -> ColumnRecord:
        for record in self.state.tables.get((schema_name, table), ()):
            if record.info.name == name:
                return record
        raise KeyError(f"{schema_name}.{table}.{name}")

    def role(self, name: str) -> RoleRecord:
        return self.state.roles[name]

    def simulate_update(
        self,
        schema_name: str,
        table: str,
        row: Mapping[str, object],
        changes: Mapping[str, object],
        *,
        now: datetime,
    ) -> dict[str, object]:
        """Apply ``changes`` to ``row`` and fire the table's BEFORE UPDATE triggers."""
        updated = {**row, **changes}
        bindings = self.state.triggers.get((schema_name, table), {})
        for name in sorted(bindings):
            stamped = self.state.functions.get(bindings[name])
            if stamped is not None:
                updated[stamped] = now
        return updated

    # Execution

    def execute(self, statement: SqlStatement) -> None:
        handler = self._handlers.get(type(statement))  # type: ignore[arg-type]
        if handler is None:
            raise TypeError(f"unsupported statement type: {type(statement).__name__}")
        handler(statement)
        self.executed.append(statement)  # type: ignore[arg-type]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Restore state and the statement log if the block raises."""
        # Domain definitions are immutable and shared, not copied.
        memo: dict[int, Any] = {id(item): item for item in self.state.domains.values()}
        snapshot = copy.deepcopy(self.state, memo)
        session_settings = dict(self.session_settings)
        executed = len(self.executed)
        try:
            yield
        except BaseException:
            self.state = snapshot
            self.session_settings = session_settings
            del self.executed[executed:]
            raise

    def executed_kinds(self) -> list[str]:
        return [statement.kind for statement in self.executed]

    # Statement handlers

    def _create_schema(self, statement: CreateSchemaIfAbsent) -> None:
        self.state.schemas.add(statement.schema_name)

    def _create_extension(self, statement: CreateExtensionIfAbsent) -> None:
        self.state.extensions.add(statement.name)

    def _revoke_public_create(self, statement: RevokeSchemaCreateFromPublic) -> None:
        self._require_schema(statement.schema_name)
        self.state.public_create_revoked.add(statement.schema_name)

    def _create_domain(self, statement: CreateDomainIfAbsent) -> None:
        domain = statement.domain
        self._require_schema(domain.schema_name)
        if domain.base_type == "citext" and "citext" not in self.state.extensions:
            raise DependencyMissingError(
                'type "citext" does not exist', dependency="citext"
            )
        self.state.domains.setdefault(domain.qualified_name, domain)

    def _comment(self, statement: CommentOn) -> None:
        target = statement.target
        if statement.object_type == "SCHEMA":
            self._require_schema(target[0])
        elif statement.object_type == "ROLE":
            self._require_role(target[0])
        elif statement.object_type == "DOMAIN":
            if ".".join(target) not in self.state.domains:
                raise DependencyMissingError(
                    f'type "{".".join(target)}" does not exist', dependency=".".join(target)
                )
        elif statement.object_type == "FUNCTION":
            if (target[0], target[1]) not in self.state.functions:
                raise DependencyMissingError(
                    f'function {".".join(target)}() does not exist',
                    dependency=".".join(target),
                )
        elif statement.object_type == "COLUMN":
            self.column_or_missing(target[0], target[1], target[2])
        elif statement.object_type == "TABLE":
            self._require_table(target[0], target[1])
        self.state.comments[(statement.object_type, target)] = statement.comment

    def _add_column(self, statement: AddColumnIfAbsent) -> None:
        records = self._require_table(statement.schema_name, statement.table)
        if any(record.info.name == statement.column for record in records):
            return
        reference = None
        if statement.references is not None:
            ref = statement.references
            self.column_or_missing(ref.schema_name, ref.table, ref.column)
            reference = (ref.schema_name, ref.table, ref.column)
        records.append(
            ColumnRecord(
                info=ColumnInfo(
                    name=statement.column,
                    data_type=statement.data_type,
                    ordinal_position=len(records) + 1,
                ),
                not_null=statement.not_null,
                default_sql=statement.default_sql,
                references=reference,
            )
        )

    def _create_index(self, statement: CreateIndexIfAbsent) -> None:
        self.column_or_missing(statement.schema_name, statement.table, statement.column)
        self.state.indexes.setdefault(
            (statement.schema_name, statement.index_name),
            (statement.schema_name, statement.table, statement.column),
        )

    def _create_function(self, statement: CreateOrReplaceTriggerFunction) -> None:
        self._require_schema(statement.schema_name)
        self.state.functions[(statement.schema_name, statement.name)] = statement.column

    def _create_constant_function(
        self, statement: CreateOrReplaceUuidConstantFunction
    ) -> None:
        self._require_schema(statement.schema_name)
        self.state.functions[(statement.schema_name, statement.name)] = str(statement.value)

    def _create_tenant_setter(self, statement: CreateOrReplaceTenantSetter) -> None:
        self._require_schema(statement.schema_name)
        self.state.functions[(statement.schema_name, statement.name)] = statement.setting

    def _set_session_setting(self, statement: SetSessionSetting) -> None:
        self.session_settings[statement.name] = statement.value

    def _create_trigger(self, statement: CreateTrigger) -> None:
        self._require_table(statement.schema_name, statement.table)
        function_key = (statement.function_schema, statement.function_name)
        if function_key not in self.state.functions:
            raise DependencyMissingError(
                f"function {statement.function_schema}.{statement.function_name}() "
                "does not exist",
                dependency=f"{statement.function_schema}.{statement.function_name}",
            )
        bindings = self.state.triggers.setdefault(
            (statement.schema_name, statement.table), {}
        )
        if statement.name in bindings:
            raise StatementExecutionError(
                f'trigger "{statement.name}" for relation "{statement.table}" '
                "already exists",
                code=codes.ALREADY_EXISTS,
                statement_kind=statement.kind,
            )
        bindings[statement.name] = function_key

    def _revoke(self, statement: RevokeTablePrivilege) -> None:
        self._require_table(statement.schema_name, statement.table)
        self._require_role(statement.role)
        self.state.grants.pop(
            (statement.role, statement.schema_name, statement.table, statement.privilege),
            None,
        )

    def _grant(self, statement: GrantTablePrivilege) -> None:
        self._require_table(statement.schema_name, statement.table)
        self._require_role(statement.role)
        key = (statement.role, statement.schema_name, statement.table, statement.privilege)
        if statement.columns is None:
            self.state.grants[key] = None
            return
        for column in statement.columns:
            self.column_or_missing(statement.schema_name, statement.table, column)
        if key in self.state.grants:
            existing = self.state.grants[key]
            if existing is None:
                return
            self.state.grants[key] = existing | frozenset(statement.columns)
            return
        self.state.grants[key] = frozenset(statement.columns)

    def _create_role(self, statement: CreateRole) -> None:
        if statement.name in self.state.roles:
            raise StatementExecutionError(
                f'role "{statement.name}" already exists',
                code=codes.ALREADY_EXISTS,
                statement_kind=statement.kind,
            )
        self.state.roles[statement.name] = RoleRecord(name=statement.name)

    def _alter_role_baseline(self, statement: AlterRoleBaseline) -> None:
        record = self._require_role(statement.name)
        record.restricted = True
        record.can_login = False

    def _set_role_login(self, statement: SetRoleLogin) -> None:
        record = self._require_role(statement.name)
        record.can_login = statement.login
        record.password = statement.password

    def _grant_schema_usage(self, statement: GrantSchemaUsage) -> None:
        self._require_schema(statement.schema_name)
        self._require_role(statement.role)
        self.state.schema_usage.add((statement.schema_name, statement.role))

    def _set_default_privileges(self, statement: SetDefaultTablePrivileges) -> None:
        self._require_schema(statement.schema_name)
        self._require_role(statement.role)
        key = (statement.schema_name, statement.role)
        if not statement.privileges:
            self.state.default_privileges.pop(key, None)
            return
        existing = self.state.default_privileges.get(key, ())
        merged = dict.fromkeys(existing + statement.privileges)
        self.state.default_privileges[key] = tuple(merged)

    def _set_all_tables_privileges(self, statement: SetAllTablesPrivileges) -> None:
        self._require_schema(statement.schema_name)
        self._require_role(statement.role)
        tables = [table for schema, table in self.state.tables if schema == statement.schema_name]
        for table in tables:
            if statement.privileges:
                for privilege in statement.privileges:
                    self.state.grants[(statement.role, statement.schema_name, table, privilege)] = None
                continue
            for privilege in Privilege:
                self.state.grants.pop(
                    (statement.role, statement.schema_name, table, privilege), None
                )

    # Lookups that fail the way Postgres does

    def column_or_missing(self, schema_name: str, table: str, name: str) -> ColumnRecord:
        self._require_table(schema_name, table)
        try:
            return self.column(schema_name, table, name)
        except KeyError as exc:
            raise DependencyMissingError(
                f'column "{name}" of relation "{table}" does not exist',
                dependency=f"{schema_name}.{table}.{name}",
            ) from exc

    def _require_schema(self, schema_name: str) -> None:
        if schema_name not in self.state.schemas:
            raise DependencyMissingError(
                f'schema "{schema_name}" does not exist', dependency=schema_name
            )

    def _require_table(self, schema_name: str, table: str) -> list[ColumnRecord]:
        records = self.state.tables.get((schema_name, table))
        if records is None:
            raise DependencyMissingError(
                f'relation "{schema_name}.{table}" does not exist',
                dependency=f"{schema_name}.{table}",
            )
        return records

    def _require_role(self, role: str) -> RoleRecord:
        record = self.state.roles.get(role)
        if record is None:
            raise DependencyMissingError(
                f'role "{role}" does not exist', dependency=role
            )
        return record
