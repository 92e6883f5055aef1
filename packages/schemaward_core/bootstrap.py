"""Shared schema provisioning: schemas, domains, shared functions, roles.

Every step is create-if-absent, so the bootstrap can run on every deploy.
Schema-wide role grants are followed by the locked audit column policies of
each managed table, so a re-run never reopens a locked column. The whole pass
runs in one transaction and leaves nothing behind on failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from packages.schemaward_shared.config import SchemawardSettings
from packages.schemaward_shared.logging import fields, get_logger, log_context
from resources.substrates.postgres.catalog import CatalogIntrospector, SchemaWriter
from services.schema.ddl import (
    CommentOn,
    CreateDomainIfAbsent,
    CreateExtensionIfAbsent,
    CreateSchemaIfAbsent,
    RevokeSchemaCreateFromPublic,
)
from services.schema.domain_registry import (
    SQL_IDENTIFIER_LOWER,
    DomainRegistry,
    get_domain_registry,
)
from services.schema.role_policy import (
    ColumnPolicy,
    RoleArchetype,
    RoleProvisioning,
    SchemaRoleSetup,
)
from services.schema.role_policy.implementation import DefaultRolePolicyService
from services.schema.role_policy.lifecycle import DefaultRoleLifecycleService
from services.schema.table_settings import (
    AuditTriggerEngine,
    TableRef,
    TenantSessionEngine,
)
from services.schema.table_settings.implementation import DefaultTableSettingsService

_LOGGER = get_logger(__name__)

CITEXT_EXTENSION: Final[str] = "citext"
SCHEMA_COMMENTS: Final[dict[str, str]] = {
    "universal": "Shared domains, functions and types used by every schema.",
    "iso": "ISO code domains.",
}


@dataclass(frozen=True, slots=True)
class BootstrapResult:
    """Summary of one bootstrap pass."""

    schemas: tuple[str, ...]
    domains: tuple[str, ...]
    roles: tuple[RoleProvisioning, ...]
    schema_roles: tuple[SchemaRoleSetup, ...]
    column_locks: tuple[ColumnPolicy, ...] = ()


def ensure_domains(
    writer: SchemaWriter, registry: DomainRegistry | None = None
) -> tuple[str, ...]:
    """Create every registered domain that is absent and comment it.

    Domains are issued in qualified-name order. An existing domain with the
    same name is left as it is.
    """
    registry = registry or get_domain_registry()
    created: list[str] = []
    for domain in sorted(registry.list_domains(), key=lambda item: item.qualified_name):
        writer.execute(CreateDomainIfAbsent(domain))
        if domain.description:
            writer.execute(
                CommentOn("DOMAIN", (domain.schema_name, domain.name), domain.description)
            )
        created.append(domain.qualified_name)
    return tuple(created)


def bootstrap_schema(
    *,
    settings: SchemawardSettings,
    catalog: CatalogIntrospector,
    writer: SchemaWriter,
    registry: DomainRegistry | None = None,
    archetypes: Sequence[RoleArchetype] | None = None,
) -> BootstrapResult:
    """Provision the shared schema objects in one transaction."""
    registry = registry or get_domain_registry()
    universal = settings.universal
    schemas = tuple(
        dict.fromkeys(
            (universal.schema_name, *registry.schemas(), *universal.managed_schemas)
        )
    )
    lifecycle = DefaultRoleLifecycleService.from_settings(
        settings=settings, catalog=catalog, writer=writer
    )
    policy = DefaultRolePolicyService(catalog=catalog, writer=writer)
    trigger_engine = AuditTriggerEngine(
        catalog=catalog,
        writer=writer,
        function_schema=universal.schema_name,
        function_name=universal.trigger_function,
    )
    tenancy = TenantSessionEngine(
        catalog=catalog, writer=writer, function_schema=universal.schema_name
    )
    table_settings = DefaultTableSettingsService.from_settings(
        settings=settings, catalog=catalog, writer=writer
    )

    with writer.transaction():
        if universal.revoke_public_create:
            writer.execute(RevokeSchemaCreateFromPublic())
        for schema_name in schemas:
            writer.execute(CreateSchemaIfAbsent(schema_name))
            comment = SCHEMA_COMMENTS.get(schema_name)
            if comment is not None:
                writer.execute(CommentOn("SCHEMA", (schema_name,), comment))
        writer.execute(CreateExtensionIfAbsent(CITEXT_EXTENSION))
        domains = ensure_domains(writer, registry)
        trigger_engine.ensure_trigger_function()
        tenancy.ensure_tenant_functions()
        roles = lifecycle.ensure_archetype_roles(archetypes=archetypes)
        schema_roles = tuple(
            policy.setup_schema_roles(schema_name=schema_name, archetypes=archetypes)
            for schema_name in universal.managed_schemas
        )
        column_locks: list[ColumnPolicy] = []
        for schema_name in universal.managed_schemas:
            for table in catalog.list_tables(schema_name):
                # Tables with names outside the managed identifier domain were
                # never augmented here.
                if not SQL_IDENTIFIER_LOWER.is_valid(table):
                    continue
                column_locks.extend(
                    table_settings.enforce_column_locks(
                        table=TableRef(schema_name=schema_name, table=table)
                    )
                )

    with log_context({fields.SCHEMA: universal.schema_name}):
        _LOGGER.info(
            "bootstrap complete: %d schemas, %d domains, %d roles",
            len(schemas),
            len(domains),
            len(roles),
        )
    return BootstrapResult(
        schemas=schemas,
        domains=domains,
        roles=roles,
        schema_roles=schema_roles,
        column_locks=tuple(column_locks),
    )
