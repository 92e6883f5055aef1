"""Role policy engine and role lifecycle manager."""

from services.schema.role_policy.domain import (
    ACCESSOR,
    IMPORTER,
    MANAGER,
    MUTATOR,
    ROLE_ARCHETYPES,
    ColumnPolicy,
    LoginState,
    RoleArchetype,
    RoleProvisioning,
    SchemaRoleGrant,
    SchemaRoleSetup,
)
from services.schema.role_policy.service import (
    RoleLifecycleService,
    RolePolicyService,
    build_role_lifecycle_service,
    build_role_policy_service,
)

__all__ = [
    "ACCESSOR",
    "IMPORTER",
    "MANAGER",
    "MUTATOR",
    "ROLE_ARCHETYPES",
    "ColumnPolicy",
    "LoginState",
    "RoleArchetype",
    "RoleLifecycleService",
    "RolePolicyService",
    "RoleProvisioning",
    "SchemaRoleGrant",
    "SchemaRoleSetup",
    "build_role_lifecycle_service",
    "build_role_policy_service",
]
