"""Domain contracts for table augmentation requests and results."""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from services.schema.domain_registry import require_identifier
from services.schema.role_policy import ColumnPolicy

TENANT_COLUMN: Final[str] = "tenant_persona_id"
SOURCE_COLUMN: Final[str] = "source_persona_id"
CREATED_AT_COLUMN: Final[str] = "created_at"
LAST_UPDATED_AT_COLUMN: Final[str] = "last_updated_at"

NIL_UUID_DEFAULT: Final[str] = "'00000000-0000-0000-0000-000000000000'::uuid"
CLOCK_DEFAULT: Final[str] = "CLOCK_TIMESTAMP()"

TENANT_COMMENT: Final[str] = (
    "Persona that owns this row. Defaults to the nil persona for single-tenant data."
)
SOURCE_COMMENT: Final[str] = (
    "Persona this row was sourced from. Defaults to the nil persona when unknown."
)
CREATED_AT_COMMENT: Final[str] = (
    "When this row was created. Set once by the database and never updated."
)
LAST_UPDATED_AT_COMMENT: Final[str] = (
    "When this row was last updated. Maintained by a BEFORE UPDATE trigger."
)


class TableRef(BaseModel):
    """A schema-qualified table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    schema_name: str
    table: str

    @field_validator("schema_name")
    @classmethod
    def _validate_schema(cls, value: str) -> str:
        return require_identifier(value, field_name="schema")

    @field_validator("table")
    @classmethod
    def _validate_table(cls, value: str) -> str:
        return require_identifier(value, field_name="table")

    @classmethod
    def parse(cls, qualified: str) -> "TableRef":
        """Parse ``schema.table``."""
        schema_name, dot, table = qualified.partition(".")
        if not dot:
            raise ValueError(f"expected schema.table, got {qualified!r}")
        return cls(schema_name=schema_name, table=table)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.table}"

    def __str__(self) -> str:
        return self.qualified_name


class _OverrideModel(BaseModel):
    """Override payloads accept snake_case or camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ColumnToggleOverride(_OverrideModel):
    add_to_table: bool | None = None


class TableSettingsOverride(_OverrideModel):
    """Per-call overrides; ``None`` defers to the ambient settings."""

    multi_tenant: bool | None = None
    multi_source: bool | None = None
    created_at_column: ColumnToggleOverride | None = None
    last_updated_at_column: ColumnToggleOverride | None = None


class ResolvedTableSettings(BaseModel):
    """Effective toggles after override/ambient/default resolution."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    multi_tenant: bool = False
    multi_source: bool = False
    created_at_column: bool = False
    last_updated_at_column: bool = False
    created_at_locked_roles: tuple[str, ...] = ("mutator",)
    last_updated_at_locked_roles: tuple[str, ...] = ()

    def enabled(self) -> frozenset[str]:
        """Return the names of the toggles that are on."""
        toggles = {
            "multi_tenant": self.multi_tenant,
            "multi_source": self.multi_source,
            "created_at_column": self.created_at_column,
            "last_updated_at_column": self.last_updated_at_column,
        }
        return frozenset(name for name, on in toggles.items() if on)


class AppliedSettings(BaseModel):
    """What one ``apply_settings`` call did to a table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    table: TableRef
    resolved: ResolvedTableSettings
    columns: tuple[str, ...] = ()
    indexes: tuple[str, ...] = ()
    trigger: str | None = None
    trigger_created: bool = False
    policies: tuple[ColumnPolicy, ...] = ()

    @property
    def applied_settings(self) -> frozenset[str]:
        return self.resolved.enabled()
