"""Authoritative in-process Python API for role policies and role lifecycle."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from packages.schemaward_shared.config import SchemawardSettings
from resources.substrates.postgres.catalog import CatalogIntrospector, SchemaWriter
from services.schema.ddl import Privilege
from services.schema.role_policy.domain import (
    ColumnPolicy,
    LoginState,
    RoleArchetype,
    RoleProvisioning,
    SchemaRoleSetup,
)


class RolePolicyService(ABC):
    """Public API for column-scoped grants and schema-wide role grants."""

    @abstractmethod
    def apply_column_policy(
        self,
        *,
        role: str,
        schema_name: str,
        table: str,
        privilege: Privilege | str,
        excluded_columns: Iterable[str] = (),
    ) -> ColumnPolicy:
        """Replace ``role``'s ``privilege`` on the table with all columns but the excluded ones."""

    @abstractmethod
    def setup_schema_roles(
        self,
        *,
        schema_name: str,
        archetypes: Sequence[RoleArchetype] | None = None,
    ) -> SchemaRoleSetup:
        """Grant schema usage plus current and default table privileges per archetype."""


class RoleLifecycleService(ABC):
    """Public API for role creation and login toggling."""

    @abstractmethod
    def ensure_role(
        self, *, name: str, description: str, configure_login: bool = True
    ) -> RoleProvisioning:
        """Create the role if absent and reassert its restrictive baseline."""

    @abstractmethod
    def ensure_login(self, *, name: str) -> LoginState:
        """Enable or disable login from the configured credential."""

    @abstractmethod
    def ensure_archetype_roles(
        self, *, archetypes: Sequence[RoleArchetype] | None = None
    ) -> tuple[RoleProvisioning, ...]:
        """Ensure every archetype role exists with its description as comment."""


def build_role_policy_service(
    *, catalog: CatalogIntrospector, writer: SchemaWriter
) -> RolePolicyService:
    """Build the default role policy engine over one catalog connection."""
    from services.schema.role_policy.implementation import DefaultRolePolicyService

    return DefaultRolePolicyService(catalog=catalog, writer=writer)


def build_role_lifecycle_service(
    *,
    settings: SchemawardSettings,
    catalog: CatalogIntrospector,
    writer: SchemaWriter,
) -> RoleLifecycleService:
    """Build the default role lifecycle manager reading credentials from settings."""
    from services.schema.role_policy.lifecycle import DefaultRoleLifecycleService

    return DefaultRoleLifecycleService.from_settings(
        settings=settings, catalog=catalog, writer=writer
    )
