"""Typed structural statements and their SQL rendering.

Engines never concatenate SQL themselves. Every change is expressed as one of
the frozen statement objects below; identifiers are validated when a
statement is constructed and quoted when it is rendered, so a statement that
exists is always safe to execute.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import ClassVar, Final
from uuid import UUID

from packages.schemaward_shared.errors import ValidationError, codes
from services.schema.domain_registry import DomainDefinition, require_identifier

from .privileges import Privilege, privilege_list
from .rendering import column_list, qualified_name, quote_identifier, string_literal

IDENTIFIER_LIMIT: Final[int] = 63

_DATA_TYPE_RE = re.compile(r"^[a-z][a-z0-9_ ]*(\([0-9, ]+\))?$")
_SETTING_NAME_RE = re.compile(r"[a-z_][a-z0-9_]*(\.[a-z_][a-z0-9_]*)+")
_COMMENT_TARGETS: Final[frozenset[str]] = frozenset(
    {"SCHEMA", "DOMAIN", "COLUMN", "ROLE", "FUNCTION", "TABLE"}
)


@dataclass(frozen=True)
class DdlStatement:
    """Base class for one renderable structural statement."""

    kind: ClassVar[str] = "statement"

    def to_sql(self) -> str:
        """Return the SQL text for this statement."""
        raise NotImplementedError


@dataclass(frozen=True)
class ForeignKeyRef:
    """Referenced column for an injected foreign-key column."""

    schema_name: str
    table: str
    column: str

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.table, field_name="table")
        require_identifier(self.column, field_name="column", lowercase=False)

    def to_sql(self) -> str:
        return (
            f"REFERENCES {qualified_name(self.schema_name, self.table)} "
            f"({quote_identifier(self.column)})"
        )


@dataclass(frozen=True)
class CreateSchemaIfAbsent(DdlStatement):
    schema_name: str

    kind: ClassVar[str] = "create_schema"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")

    def to_sql(self) -> str:
        return f"CREATE SCHEMA IF NOT EXISTS {quote_identifier(self.schema_name)}"


@dataclass(frozen=True)
class CreateExtensionIfAbsent(DdlStatement):
    name: str

    kind: ClassVar[str] = "create_extension"

    def __post_init__(self) -> None:
        require_identifier(self.name, field_name="extension")

    def to_sql(self) -> str:
        return f"CREATE EXTENSION IF NOT EXISTS {quote_identifier(self.name)}"


@dataclass(frozen=True)
class RevokeSchemaCreateFromPublic(DdlStatement):
    """Stop every role from creating objects in ``schema_name``."""

    schema_name: str = "public"

    kind: ClassVar[str] = "revoke_public_create"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")

    def to_sql(self) -> str:
        return f"REVOKE CREATE ON SCHEMA {quote_identifier(self.schema_name)} FROM PUBLIC"


@dataclass(frozen=True)
class CreateDomainIfAbsent(DdlStatement):
    """Create a domain unless one with the same name already exists."""

    domain: DomainDefinition

    kind: ClassVar[str] = "create_domain"

    def to_sql(self) -> str:
        domain = self.domain
        body = (
            f"CREATE DOMAIN {qualified_name(domain.schema_name, domain.name)} "
            f"AS {domain.storage_type}"
        )
        check = domain.check_expression()
        if check is not None:
            if domain.constraint_name is not None:
                body += f" CONSTRAINT {quote_identifier(domain.constraint_name)}"
            body += f" CHECK ({check})"
        return (
            "DO $schemaward$ BEGIN "
            f"{body}; "
            "EXCEPTION WHEN duplicate_object THEN NULL; "
            "END $schemaward$"
        )


@dataclass(frozen=True)
class CommentOn(DdlStatement):
    """``COMMENT ON`` a schema object.

    ``target`` holds the name parts, e.g. ``("universal", "url")`` for a
    domain or ``("s", "t", "created_at")`` for a column.
    ``argument_types`` is the signature of a FUNCTION target.
    """

    object_type: str
    target: tuple[str, ...]
    comment: str
    argument_types: tuple[str, ...] = ()

    kind: ClassVar[str] = "comment"

    def __post_init__(self) -> None:
        if self.object_type not in _COMMENT_TARGETS:
            raise ValidationError(
                f"unsupported comment target type {self.object_type!r}",
                code=codes.INVALID_ARGUMENT,
            )
        if not self.target:
            raise ValidationError("comment target is empty", code=codes.INVALID_ARGUMENT)
        for index, part in enumerate(self.target):
            is_column = self.object_type == "COLUMN" and index == len(self.target) - 1
            require_identifier(part, field_name="comment target", lowercase=not is_column)
        for argument_type in self.argument_types:
            if _DATA_TYPE_RE.fullmatch(argument_type) is None:
                raise ValidationError(
                    f"unsupported argument type {argument_type!r}",
                    code=codes.INVALID_ARGUMENT,
                )

    def to_sql(self) -> str:
        rendered = ".".join(quote_identifier(part) for part in self.target)
        if self.object_type == "FUNCTION":
            rendered += f"({', '.join(self.argument_types)})"
        return f"COMMENT ON {self.object_type} {rendered} IS {string_literal(self.comment)}"


@dataclass(frozen=True)
class AddColumnIfAbsent(DdlStatement):
    """Add a column unless the table already has one with that name.

    ``data_type`` and ``default_sql`` are trusted fragments supplied by the
    engines, never by callers.
    """

    schema_name: str
    table: str
    column: str
    data_type: str
    not_null: bool = False
    default_sql: str | None = None
    references: ForeignKeyRef | None = None

    kind: ClassVar[str] = "add_column"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.table, field_name="table")
        require_identifier(self.column, field_name="column")
        if not _DATA_TYPE_RE.fullmatch(self.data_type):
            raise ValidationError(
                f"unsupported column type {self.data_type!r}",
                code=codes.INVALID_ARGUMENT,
            )

    def to_sql(self) -> str:
        parts = [
            f"ALTER TABLE {qualified_name(self.schema_name, self.table)}",
            f"ADD COLUMN IF NOT EXISTS {quote_identifier(self.column)} {self.data_type}",
        ]
        if self.not_null:
            parts.append("NOT NULL")
        if self.default_sql is not None:
            parts.append(f"DEFAULT {self.default_sql}")
        if self.references is not None:
            parts.append(self.references.to_sql())
        return " ".join(parts)


@dataclass(frozen=True)
class CreateIndexIfAbsent(DdlStatement):
    """Single-column index named ``<schema>_<table>_<column>_idx``."""

    schema_name: str
    table: str
    column: str

    kind: ClassVar[str] = "create_index"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.table, field_name="table")
        require_identifier(self.column, field_name="column")

    @property
    def index_name(self) -> str:
        """Return the index name, truncated the way Postgres truncates names."""
        return f"{self.schema_name}_{self.table}_{self.column}_idx"[:IDENTIFIER_LIMIT]

    def to_sql(self) -> str:
        return (
            f"CREATE INDEX IF NOT EXISTS {quote_identifier(self.index_name)} "
            f"ON {qualified_name(self.schema_name, self.table)} "
            f"({quote_identifier(self.column)})"
        )


@dataclass(frozen=True)
class CreateOrReplaceTriggerFunction(DdlStatement):
    """Trigger function stamping ``column`` with the wall-clock time."""

    schema_name: str
    name: str
    column: str = "last_updated_at"

    kind: ClassVar[str] = "create_trigger_function"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.name, field_name="function")
        require_identifier(self.column, field_name="column")

    def to_sql(self) -> str:
        return (
            f"CREATE OR REPLACE FUNCTION {qualified_name(self.schema_name, self.name)}() "
            "RETURNS TRIGGER LANGUAGE plpgsql AS $function$ "
            f"BEGIN NEW.{quote_identifier(self.column)} = CLOCK_TIMESTAMP(); "
            "RETURN NEW; END; $function$"
        )


@dataclass(frozen=True)
class CreateTrigger(DdlStatement):
    """Row-level ``BEFORE UPDATE`` trigger bound to a trigger function."""

    schema_name: str
    table: str
    name: str
    function_schema: str
    function_name: str

    kind: ClassVar[str] = "create_trigger"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.table, field_name="table")
        require_identifier(self.name, field_name="trigger")
        require_identifier(self.function_schema, field_name="schema")
        require_identifier(self.function_name, field_name="function")

    def to_sql(self) -> str:
        return (
            f"CREATE TRIGGER {quote_identifier(self.name)} BEFORE UPDATE "
            f"ON {qualified_name(self.schema_name, self.table)} FOR EACH ROW "
            f"EXECUTE FUNCTION {qualified_name(self.function_schema, self.function_name)}()"
        )


@dataclass(frozen=True)
class RevokeTablePrivilege(DdlStatement):
    """Revoke ``privilege`` at table level, which also clears column grants."""

    privilege: Privilege
    schema_name: str
    table: str
    role: str

    kind: ClassVar[str] = "revoke_privilege"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.table, field_name="table")
        require_identifier(self.role, field_name="role")

    def to_sql(self) -> str:
        return (
            f"REVOKE {self.privilege.value} ON TABLE "
            f"{qualified_name(self.schema_name, self.table)} "
            f"FROM {quote_identifier(self.role)}"
        )


@dataclass(frozen=True)
class GrantTablePrivilege(DdlStatement):
    """Grant ``privilege`` on the table, or on ``columns`` when given."""

    privilege: Privilege
    schema_name: str
    table: str
    role: str
    columns: tuple[str, ...] | None = None

    kind: ClassVar[str] = "grant_privilege"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.table, field_name="table")
        require_identifier(self.role, field_name="role")
        if self.columns is None:
            return
        if not self.columns:
            raise ValidationError(
                "column grant needs at least one column", code=codes.INVALID_ARGUMENT
            )
        if not self.privilege.column_scoped:
            raise ValidationError(
                f"{self.privilege.value} cannot be granted per column",
                code=codes.INVALID_ARGUMENT,
            )
        for column in self.columns:
            require_identifier(column, field_name="column", lowercase=False)

    def to_sql(self) -> str:
        target = self.privilege.value
        if self.columns is not None:
            target += f" ({column_list(self.columns)})"
        return (
            f"GRANT {target} ON TABLE {qualified_name(self.schema_name, self.table)} "
            f"TO {quote_identifier(self.role)}"
        )


@dataclass(frozen=True)
class CreateRole(DdlStatement):
    name: str

    kind: ClassVar[str] = "create_role"

    def __post_init__(self) -> None:
        require_identifier(self.name, field_name="role")

    def to_sql(self) -> str:
        return f"CREATE ROLE {quote_identifier(self.name)}"


@dataclass(frozen=True)
class AlterRoleBaseline(DdlStatement):
    """Strip every elevated attribute and login from a role."""

    name: str

    kind: ClassVar[str] = "alter_role_baseline"

    def __post_init__(self) -> None:
        require_identifier(self.name, field_name="role")

    def to_sql(self) -> str:
        return (
            f"ALTER ROLE {quote_identifier(self.name)} NOSUPERUSER NOCREATEDB "
            "NOCREATEROLE NOINHERIT NOLOGIN NOREPLICATION NOBYPASSRLS"
        )


@dataclass(frozen=True)
class SetRoleLogin(DdlStatement):
    """Enable login with ``password`` or disable login when it is ``None``."""

    name: str
    password: str | None = field(default=None, repr=False)

    kind: ClassVar[str] = "set_role_login"

    def __post_init__(self) -> None:
        require_identifier(self.name, field_name="role")
        if self.password is not None and self.password == "":
            raise ValidationError(
                "login password must be non-empty", code=codes.INVALID_ARGUMENT
            )

    @property
    def login(self) -> bool:
        return self.password is not None

    def to_sql(self) -> str:
        role = quote_identifier(self.name)
        if self.password is None:
            return f"ALTER ROLE {role} WITH NOLOGIN PASSWORD NULL"
        return f"ALTER ROLE {role} WITH LOGIN PASSWORD {string_literal(self.password)}"

    def redacted_sql(self) -> str:
        """Return the SQL with the password replaced, safe for logs and output."""
        if self.password is None:
            return self.to_sql()
        return f"ALTER ROLE {quote_identifier(self.name)} WITH LOGIN PASSWORD '********'"


@dataclass(frozen=True)
class GrantSchemaUsage(DdlStatement):
    schema_name: str
    role: str

    kind: ClassVar[str] = "grant_schema_usage"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.role, field_name="role")

    def to_sql(self) -> str:
        return (
            f"GRANT USAGE ON SCHEMA {quote_identifier(self.schema_name)} "
            f"TO {quote_identifier(self.role)}"
        )


@dataclass(frozen=True)
class SetDefaultTablePrivileges(DdlStatement):
    """Default privileges for tables created later in ``schema_name``.

    An empty ``privileges`` tuple revokes every default privilege.
    """

    schema_name: str
    role: str
    privileges: tuple[Privilege, ...] = ()

    kind: ClassVar[str] = "default_privileges"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.role, field_name="role")

    def to_sql(self) -> str:
        prefix = f"ALTER DEFAULT PRIVILEGES IN SCHEMA {quote_identifier(self.schema_name)}"
        role = quote_identifier(self.role)
        if not self.privileges:
            return f"{prefix} REVOKE ALL ON TABLES FROM {role}"
        return f"{prefix} GRANT {privilege_list(self.privileges)} ON TABLES TO {role}"


@dataclass(frozen=True)
class SetAllTablesPrivileges(DdlStatement):
    """Privileges on every table currently in ``schema_name``.

    An empty ``privileges`` tuple revokes every table privilege.
    """

    schema_name: str
    role: str
    privileges: tuple[Privilege, ...] = ()

    kind: ClassVar[str] = "all_tables_privileges"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.role, field_name="role")

    def to_sql(self) -> str:
        schema = quote_identifier(self.schema_name)
        role = quote_identifier(self.role)
        if not self.privileges:
            return f"REVOKE ALL ON ALL TABLES IN SCHEMA {schema} FROM {role}"
        return (
            f"GRANT {privilege_list(self.privileges)} ON ALL TABLES IN SCHEMA {schema} "
            f"TO {role}"
        )


@dataclass(frozen=True)
class CreateOrReplaceUuidConstantFunction(DdlStatement):
    """Immutable function returning one fixed persona identity."""

    schema_name: str
    name: str
    value: UUID

    kind: ClassVar[str] = "create_constant_function"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.name, field_name="function")
        if not isinstance(self.value, UUID):
            raise ValidationError(
                f"constant function value must be a UUID, got {type(self.value).__name__}",
                code=codes.INVALID_ARGUMENT,
            )

    def to_sql(self) -> str:
        return (
            f"CREATE OR REPLACE FUNCTION {qualified_name(self.schema_name, self.name)}() "
            "RETURNS uuid LANGUAGE sql STRICT IMMUTABLE PARALLEL SAFE AS $function$ "
            f"SELECT {string_literal(str(self.value))}::uuid $function$"
        )


@dataclass(frozen=True)
class CreateOrReplaceTenantSetter(DdlStatement):
    """Function storing a tenant persona id in a session setting."""

    schema_name: str
    name: str
    setting: str

    kind: ClassVar[str] = "create_tenant_setter"

    def __post_init__(self) -> None:
        require_identifier(self.schema_name, field_name="schema")
        require_identifier(self.name, field_name="function")
        require_setting_name(self.setting)

    def to_sql(self) -> str:
        return (
            f"CREATE OR REPLACE FUNCTION {qualified_name(self.schema_name, self.name)}"
            "(p_tenant_persona_id uuid) RETURNS uuid LANGUAGE plpgsql STRICT "
            "PARALLEL RESTRICTED AS $function$ BEGIN "
            f"PERFORM set_config({string_literal(self.setting)}, "
            "p_tenant_persona_id::text, false); "
            "RETURN p_tenant_persona_id; END; $function$"
        )


@dataclass(frozen=True)
class SetSessionSetting(DdlStatement):
    """Set a custom setting for the rest of the session."""

    name: str
    value: str

    kind: ClassVar[str] = "set_session_setting"

    def __post_init__(self) -> None:
        require_setting_name(self.name)

    def to_sql(self) -> str:
        return (
            f"SELECT set_config({string_literal(self.name)}, "
            f"{string_literal(self.value)}, false)"
        )


def require_setting_name(name: str) -> str:
    """Return ``name`` when it is a dotted custom setting name."""
    if not isinstance(name, str) or _SETTING_NAME_RE.fullmatch(name) is None:
        raise ValidationError(
            f"invalid session setting name: {name!r}",
            code=codes.INVALID_ARGUMENT,
            metadata={"setting": str(name)},
        )
    return name


def display_sql(statement: DdlStatement) -> str:
    """Return SQL safe to print or log; credentials are masked."""
    if isinstance(statement, SetRoleLogin):
        return statement.redacted_sql()
    return statement.to_sql()
