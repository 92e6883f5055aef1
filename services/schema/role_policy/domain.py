"""Domain contracts for role archetypes, column policies and login state."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.schema.ddl import Privilege
from services.schema.domain_registry import require_identifier


class LoginState(str, Enum):
    """Whether a role may open sessions."""

    LOGIN = "login"
    NO_LOGIN = "nologin"


class RoleArchetype(BaseModel):
    """A named role template with its schema-wide table privileges."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    description: str
    privileges: tuple[Privilege, ...] = ()

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return require_identifier(value, field_name="role")


MUTATOR = RoleArchetype(
    name="mutator",
    description=(
        "A mutator is a general purpose role for selecting, inserting, updating "
        "and deleting data.\n"
        "* Privileges: SELECT, INSERT, UPDATE, DELETE\n"
        "* Locked columns: created_at"
    ),
    privileges=(Privilege.SELECT, Privilege.UPDATE, Privilege.DELETE, Privilege.INSERT),
)
IMPORTER = RoleArchetype(
    name="importer",
    description=(
        "An importer is a general purpose role for importing data from an "
        "external data source.\n"
        "* Privileges: INSERT, UPDATE, DELETE\n"
        "* Locked columns: none"
    ),
    privileges=(Privilege.UPDATE, Privilege.DELETE, Privilege.INSERT),
)
ACCESSOR = RoleArchetype(
    name="accessor",
    description=(
        "An accessor is a general purpose role for accessing data.\n"
        "* Privileges: SELECT\n"
        "* Locked columns: select only"
    ),
    privileges=(Privilege.SELECT,),
)
MANAGER = RoleArchetype(
    name="manager",
    description=(
        "A manager is a general purpose role for selecting, inserting, updating "
        "and deleting data.\n"
        "* Privileges: SELECT, INSERT, UPDATE, DELETE\n"
        "* Locked columns: none"
    ),
    privileges=(Privilege.SELECT, Privilege.UPDATE, Privilege.DELETE, Privilege.INSERT),
)

ROLE_ARCHETYPES: tuple[RoleArchetype, ...] = (MUTATOR, IMPORTER, ACCESSOR, MANAGER)


class ColumnPolicy(BaseModel):
    """Result of replacing one ``(role, table, privilege)`` grant."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    role: str
    schema_name: str
    table: str
    privilege: Privilege
    granted_columns: tuple[str, ...] = ()
    excluded_columns: tuple[str, ...] = ()
    table_level: bool = False
    statements: tuple[str, ...] = ()

    @property
    def revoked_only(self) -> bool:
        """Return True when every column was excluded and nothing was granted."""
        return not self.table_level and not self.granted_columns


class RoleProvisioning(BaseModel):
    """Result of one ``ensure_role`` run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    role: str
    created: bool
    login: LoginState | None = None


class SchemaRoleGrant(BaseModel):
    """Schema-wide privileges given to one role by ``setup_schema_roles``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    role: str
    privileges: tuple[Privilege, ...] = Field(default_factory=tuple)


class SchemaRoleSetup(BaseModel):
    """Result of one ``setup_schema_roles`` run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    schema_name: str
    grants: tuple[SchemaRoleGrant, ...] = ()
