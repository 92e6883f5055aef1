"""Setting resolver, audit trigger, tenant session and table augmentation engines."""

from services.schema.table_settings.audit_trigger import (
    AuditTriggerEngine,
    update_trigger_name,
)
from services.schema.table_settings.config import (
    SESSION_SETTING_PREFIX,
    SettingsContext,
    coerce_setting_bool,
    resolve_setting,
    resolve_setting_list,
)
from services.schema.table_settings.domain import (
    AppliedSettings,
    ColumnToggleOverride,
    ResolvedTableSettings,
    TableRef,
    TableSettingsOverride,
)
from services.schema.table_settings.service import (
    TableSettingsService,
    build_table_settings_service,
)
from services.schema.table_settings.tenancy import (
    BOT_PERSONA_ID,
    TENANT_SESSION_SETTING,
    TenantSessionEngine,
)

__all__ = [
    "BOT_PERSONA_ID",
    "SESSION_SETTING_PREFIX",
    "TENANT_SESSION_SETTING",
    "AppliedSettings",
    "AuditTriggerEngine",
    "ColumnToggleOverride",
    "ResolvedTableSettings",
    "SettingsContext",
    "TableRef",
    "TableSettingsOverride",
    "TableSettingsService",
    "TenantSessionEngine",
    "build_table_settings_service",
    "coerce_setting_bool",
    "resolve_setting",
    "resolve_setting_list",
    "update_trigger_name",
]
