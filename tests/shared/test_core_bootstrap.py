"""Tests for shared schema bootstrap against the in-memory catalog."""

from __future__ import annotations

import pytest

from packages.schemaward_core.bootstrap import bootstrap_schema, ensure_domains
from packages.schemaward_shared.config import SchemawardSettings
from packages.schemaward_shared.errors import DependencyMissingError
from services.schema.ddl import Privilege
from services.schema.domain_registry import DomainDefinition, build_registry
from services.schema.role_policy import LoginState
from services.schema.table_settings import TableRef, TableSettingsOverride
from services.schema.table_settings.implementation import DefaultTableSettingsService
from tests.support.memory_catalog import InMemoryCatalog


def _settings(**data: object) -> SchemawardSettings:
    return SchemawardSettings.model_validate(data)


def test_bootstrap_provisions_schemas_domains_function_and_roles() -> None:
    catalog = InMemoryCatalog()
    settings = _settings(roles={"mutator": {"password": "pw"}})

    result = bootstrap_schema(settings=settings, catalog=catalog, writer=catalog)

    assert result.schemas == ("universal", "iso")
    assert {"universal", "iso"} <= catalog.state.schemas
    assert "public" in catalog.state.public_create_revoked
    assert "citext" in catalog.state.extensions
    assert "universal.url" in catalog.state.domains
    assert "iso.alpha2" in catalog.state.domains
    assert ("universal", "trigger_set_last_updated_at") in catalog.state.functions
    assert ("universal", "uuid_bot") in catalog.state.functions
    assert ("universal", "set_current_tenant") in catalog.state.functions
    assert {role.role for role in result.roles} == {
        "mutator",
        "importer",
        "accessor",
        "manager",
    }
    assert catalog.role("mutator").can_login is True
    assert catalog.role("accessor").can_login is False
    assert ("universal", "manager") in catalog.state.schema_usage
    assert catalog.state.default_privileges[("universal", "accessor")] == (
        Privilege.SELECT,
    )


def test_bootstrap_twice_creates_nothing_new() -> None:
    catalog = InMemoryCatalog()
    settings = _settings()

    bootstrap_schema(settings=settings, catalog=catalog, writer=catalog)
    domains = dict(catalog.state.domains)
    second = bootstrap_schema(settings=settings, catalog=catalog, writer=catalog)

    assert catalog.state.domains == domains
    assert all(role.created is False for role in second.roles)
    assert all(role.login == LoginState.NO_LOGIN for role in second.roles)


def test_managed_schemas_receive_role_grants() -> None:
    catalog = InMemoryCatalog()
    catalog.create_table("crm", "contact", ["id"])
    settings = _settings(universal={"managed_schemas": ["universal", "crm"]})

    result = bootstrap_schema(settings=settings, catalog=catalog, writer=catalog)

    assert [setup.schema_name for setup in result.schema_roles] == ["universal", "crm"]
    assert catalog.has_table_grant("mutator", "crm", "contact", Privilege.UPDATE)
    assert not catalog.has_table_grant("accessor", "crm", "contact", Privilege.UPDATE)


def test_ensure_domains_issues_domains_in_name_order_with_comments() -> None:
    catalog = InMemoryCatalog()
    catalog.state.schemas.add("universal")
    registry = build_registry(
        [
            DomainDefinition("universal", "title", "varchar", 128, description="A title."),
            DomainDefinition("universal", "code", "varchar", 8),
        ]
    )

    created = ensure_domains(catalog, registry)

    assert created == ("universal.code", "universal.title")
    assert catalog.executed_kinds() == ["create_domain", "create_domain", "comment"]


def test_citext_domain_without_extension_fails() -> None:
    catalog = InMemoryCatalog()
    catalog.state.schemas.add("universal")
    registry = build_registry([DomainDefinition("universal", "url", "citext", 2047)])

    with pytest.raises(DependencyMissingError):
        ensure_domains(catalog, registry)


def test_bootstrap_rerun_keeps_augmented_columns_locked() -> None:
    catalog = InMemoryCatalog()
    catalog.create_table("app", "widget", ["id", "name"])
    settings = _settings(universal={"managed_schemas": ["universal", "app"]})
    bootstrap_schema(settings=settings, catalog=catalog, writer=catalog)
    DefaultTableSettingsService.from_settings(
        settings=settings, catalog=catalog, writer=catalog
    ).apply_settings(
        table=TableRef(schema_name="app", table="widget"),
        override=TableSettingsOverride(created_at_column={"add_to_table": True}),
    )

    result = bootstrap_schema(settings=settings, catalog=catalog, writer=catalog)

    for privilege in (Privilege.UPDATE, Privilege.INSERT):
        assert not catalog.can_write("mutator", "app", "widget", privilege, ["created_at"])
        assert catalog.can_write("mutator", "app", "widget", privilege, ["name"])
        assert catalog.can_write("manager", "app", "widget", privilege, ["created_at"])
    assert [(policy.role, policy.privilege) for policy in result.column_locks] == [
        ("mutator", Privilege.UPDATE),
        ("mutator", Privilege.INSERT),
    ]


def test_bootstrap_leaves_tables_without_audit_columns_at_table_grants() -> None:
    catalog = InMemoryCatalog()
    catalog.create_table("app", "widget", ["id", "name"])
    settings = _settings(universal={"managed_schemas": ["app"]})

    result = bootstrap_schema(settings=settings, catalog=catalog, writer=catalog)

    assert result.column_locks == ()
    assert catalog.has_table_grant("mutator", "app", "widget", Privilege.UPDATE)
