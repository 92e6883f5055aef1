"""Behavior tests for table augmentation against the in-memory catalog."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from packages.schemaward_shared.config import SchemawardSettings
from packages.schemaward_shared.errors import DependencyMissingError, SettingValueError
from services.schema.ddl import Privilege
from services.schema.table_settings import (
    SettingsContext,
    TableRef,
    TableSettingsOverride,
    build_table_settings_service,
)
from services.schema.table_settings.domain import NIL_UUID_DEFAULT
from services.schema.table_settings.implementation import DefaultTableSettingsService
from tests.support.memory_catalog import InMemoryCatalog

_WIDGET = TableRef(schema_name="app", table="widget")
_ALL_ON = TableSettingsOverride(
    multi_tenant=True,
    multi_source=True,
    created_at_column={"add_to_table": True},
    last_updated_at_column={"add_to_table": True},
)


def _catalog(*, with_persona: bool = True, **session: str) -> InMemoryCatalog:
    catalog = InMemoryCatalog(session_settings=session)
    catalog.state.schemas.add("universal")
    if with_persona:
        catalog.create_table("persona", "persona", ["persona_id"], data_type="uuid")
    catalog.create_table("app", "widget", ["id", "name"])
    for role in ("mutator", "manager"):
        catalog.add_role(role)
        for privilege in (Privilege.SELECT, Privilege.UPDATE, Privilege.INSERT):
            catalog.grant(role, "app", "widget", privilege)
    return catalog


def _service(
    catalog: InMemoryCatalog, context: SettingsContext | None = None
) -> DefaultTableSettingsService:
    return DefaultTableSettingsService(catalog=catalog, writer=catalog, context=context)


def _column_names(catalog: InMemoryCatalog) -> list[str]:
    return [info.name for info in catalog.list_columns("app", "widget")]


def test_all_toggles_add_columns_indexes_and_trigger() -> None:
    catalog = _catalog()

    applied = _service(catalog).apply_settings(table=_WIDGET, override=_ALL_ON)

    assert _column_names(catalog) == [
        "id",
        "name",
        "tenant_persona_id",
        "source_persona_id",
        "created_at",
        "last_updated_at",
    ]
    assert applied.applied_settings == {
        "multi_tenant",
        "multi_source",
        "created_at_column",
        "last_updated_at_column",
    }
    assert applied.trigger == "widget_001_trigger_set_last_updated_at"
    assert applied.trigger_created is True
    assert catalog.index_names("app") == (
        "app_widget_created_at_idx",
        "app_widget_last_updated_at_idx",
        "app_widget_source_persona_id_idx",
        "app_widget_tenant_persona_id_idx",
    )
    assert catalog.state.comments[("COLUMN", ("app", "widget", "created_at"))]


def test_tenant_column_defaults_to_nil_persona_and_references_persona() -> None:
    catalog = _catalog()

    _service(catalog).apply_settings(
        table=_WIDGET, override=TableSettingsOverride(multi_tenant=True)
    )

    record = catalog.column("app", "widget", "tenant_persona_id")
    assert record.info.data_type == "uuid"
    assert record.not_null is True
    assert record.default_sql == NIL_UUID_DEFAULT
    assert record.references == ("persona", "persona", "persona_id")


def test_apply_settings_twice_changes_nothing_the_second_time() -> None:
    catalog = _catalog()
    service = _service(catalog)

    service.apply_settings(table=_WIDGET, override=_ALL_ON)
    columns = _column_names(catalog)
    second = service.apply_settings(table=_WIDGET, override=_ALL_ON)

    assert _column_names(catalog) == columns
    assert catalog.triggers_on("app", "widget") == (
        "widget_001_trigger_set_last_updated_at",
    )
    assert second.trigger_created is False
    assert len(catalog.index_names("app")) == 4


def test_created_at_is_locked_for_mutator_but_not_manager() -> None:
    catalog = _catalog()

    applied = _service(catalog).apply_settings(table=_WIDGET, override=_ALL_ON)

    for privilege in (Privilege.UPDATE, Privilege.INSERT):
        assert not catalog.can_write("mutator", "app", "widget", privilege, ["created_at"])
        assert catalog.can_write(
            "mutator", "app", "widget", privilege, ["name", "last_updated_at"]
        )
        assert catalog.can_write("manager", "app", "widget", privilege, ["created_at"])
    assert [(policy.role, policy.privilege) for policy in applied.policies] == [
        ("mutator", Privilege.UPDATE),
        ("mutator", Privilege.INSERT),
    ]


def test_update_trigger_advances_last_updated_at_only() -> None:
    catalog = _catalog()
    _service(catalog).apply_settings(table=_WIDGET, override=_ALL_ON)
    created = datetime(2026, 1, 1, tzinfo=timezone.utc)
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    row = {"id": 1, "name": "old", "created_at": created, "last_updated_at": created}

    updated = catalog.simulate_update("app", "widget", row, {"name": "new"}, now=now)

    assert updated["name"] == "new"
    assert updated["created_at"] == created
    assert updated["last_updated_at"] == now


def test_missing_reference_target_fails_before_any_change() -> None:
    catalog = _catalog(with_persona=False)

    with pytest.raises(DependencyMissingError) as exc_info:
        _service(catalog).apply_settings(table=_WIDGET, override=_ALL_ON)

    assert exc_info.value.dependency == "persona.persona(persona_id)"
    assert catalog.executed == []
    assert _column_names(catalog) == ["id", "name"]


def test_missing_table_is_reported() -> None:
    catalog = _catalog()

    with pytest.raises(DependencyMissingError):
        _service(catalog).apply_settings(
            table=TableRef(schema_name="app", table="gadget"), override=_ALL_ON
        )


def test_failure_midway_rolls_back_every_change() -> None:
    catalog = _catalog()
    del catalog.state.roles["mutator"]

    with pytest.raises(DependencyMissingError):
        _service(catalog).apply_settings(table=_WIDGET, override=_ALL_ON)

    assert _column_names(catalog) == ["id", "name"]
    assert catalog.triggers_on("app", "widget") == ()
    assert catalog.executed == []


def test_no_toggles_leaves_table_untouched() -> None:
    catalog = _catalog()

    applied = _service(catalog).apply_settings(table=_WIDGET)

    assert applied.applied_settings == frozenset()
    assert applied.columns == ()
    assert _column_names(catalog) == ["id", "name"]


def test_override_beats_ambient_and_ambient_beats_default() -> None:
    context = SettingsContext.from_mapping(
        {"multi_tenant": "on", "created_at_column": {"add_to_table": True}}
    )
    service = _service(_catalog(), context)

    resolved = service.resolve(override=TableSettingsOverride(multi_tenant=False))

    assert resolved.multi_tenant is False
    assert resolved.created_at_column is True
    assert resolved.multi_source is False
    assert service.resolve().multi_tenant is True


def test_session_settings_feed_the_ambient_context() -> None:
    catalog = _catalog(**{"my.settings.last_updated_at_column.add_to_table": "t"})
    settings = SchemawardSettings.model_validate(
        {"settings": {"last_updated_at_column": {"add_to_table": False}}}
    )

    service = build_table_settings_service(
        settings=settings, catalog=catalog, writer=catalog
    )

    assert service.resolve().last_updated_at_column is True


def test_locked_roles_setting_extends_exclusions() -> None:
    catalog = _catalog()
    context = SettingsContext.from_mapping(
        {"last_updated_at_column": {"locked_roles": "mutator"}}
    )

    _service(catalog, context).apply_settings(table=_WIDGET, override=_ALL_ON)

    assert not catalog.can_write(
        "mutator", "app", "widget", Privilege.UPDATE, ["last_updated_at"]
    )
    assert not catalog.can_write("mutator", "app", "widget", Privilege.UPDATE, ["created_at"])
    assert catalog.can_write("mutator", "app", "widget", Privilege.UPDATE, ["name"])


def test_non_boolean_ambient_value_is_rejected() -> None:
    context = SettingsContext.from_mapping({"multi_source": "sometimes"})

    with pytest.raises(SettingValueError):
        _service(_catalog(), context).apply_settings(table=_WIDGET)


def test_override_accepts_camel_case_payload() -> None:
    override = TableSettingsOverride.model_validate(
        {"multiTenant": True, "createdAtColumn": {"addToTable": True}}
    )

    assert override.multi_tenant is True
    assert override.created_at_column is not None
    assert override.created_at_column.add_to_table is True


@pytest.mark.parametrize(
    "order",
    [
        ("created_at_column", "last_updated_at_column"),
        ("last_updated_at_column", "created_at_column"),
    ],
)
def test_separate_calls_in_either_order_lock_every_audit_column(
    order: tuple[str, str],
) -> None:
    catalog = _catalog()
    context = SettingsContext.from_mapping(
        {"last_updated_at_column": {"locked_roles": ["mutator"]}}
    )
    service = _service(catalog, context)

    for toggle in order:
        service.apply_settings(
            table=_WIDGET,
            override=TableSettingsOverride.model_validate({toggle: {"add_to_table": True}}),
        )

    for privilege in (Privilege.UPDATE, Privilege.INSERT):
        assert catalog.effective_columns("mutator", "app", "widget", privilege) == {
            "id",
            "name",
        }
        assert catalog.can_write(
            "manager", "app", "widget", privilege, ["created_at", "last_updated_at"]
        )


def test_enforce_column_locks_narrows_a_reopened_table_grant() -> None:
    catalog = _catalog()
    service = _service(catalog)
    service.apply_settings(table=_WIDGET, override=_ALL_ON)
    catalog.grant("mutator", "app", "widget", Privilege.UPDATE)

    policies = service.enforce_column_locks(table=_WIDGET)

    assert not catalog.can_write("mutator", "app", "widget", Privilege.UPDATE, ["created_at"])
    assert [(policy.role, policy.privilege) for policy in policies] == [
        ("mutator", Privilege.UPDATE),
        ("mutator", Privilege.INSERT),
    ]


def test_enforce_column_locks_without_audit_columns_changes_nothing() -> None:
    catalog = _catalog()

    policies = _service(catalog).enforce_column_locks(table=_WIDGET)

    assert policies == ()
    assert catalog.executed == []
    assert catalog.has_table_grant("mutator", "app", "widget", Privilege.UPDATE)


def test_enforce_column_locks_on_missing_table_is_reported() -> None:
    with pytest.raises(DependencyMissingError):
        _service(_catalog()).enforce_column_locks(
            table=TableRef(schema_name="app", table="gadget")
        )
