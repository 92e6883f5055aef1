"""Session tenant selection for multi-tenant tables.

Rows carry their owner in ``tenant_persona_id``. A session declares which
tenant it acts for through the ``my.current_tenant_persona_id`` setting,
either from SQL via ``universal.set_current_tenant(uuid)`` or from Python via
``TenantSessionEngine.set_current_tenant``. The bot persona has a fixed
identity exposed as ``universal.uuid_bot()``.
"""

from __future__ import annotations

from typing import Final
from uuid import UUID

from packages.schemaward_shared.errors import SettingValueError, ValidationError, codes
from packages.schemaward_shared.logging import get_logger
from resources.substrates.postgres.catalog import CatalogIntrospector, SchemaWriter
from services.schema.ddl import (
    CommentOn,
    CreateOrReplaceTenantSetter,
    CreateOrReplaceUuidConstantFunction,
    SetSessionSetting,
)
from services.schema.domain_registry import require_identifier

_LOGGER = get_logger(__name__)

TENANT_SESSION_SETTING: Final[str] = "my.current_tenant_persona_id"
BOT_PERSONA_ID: Final[UUID] = UUID("00000000-0000-0000-0000-000000000001")

BOT_FUNCTION: Final[str] = "uuid_bot"
TENANT_SETTER_FUNCTION: Final[str] = "set_current_tenant"
BOT_FUNCTION_COMMENT: Final[str] = "Returns the persona id of the bot account."
TENANT_SETTER_COMMENT: Final[str] = "Sets the tenant persona id for the current session."


def coerce_persona_id(value: UUID | str) -> UUID:
    """Return ``value`` as a UUID, accepting its canonical string form."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise ValidationError(
            f"persona id is not a uuid: {value!r}",
            code=codes.INVALID_ARGUMENT,
            metadata={"persona_id": str(value)},
        ) from exc


class TenantSessionEngine:
    """Provisions the tenant functions and selects a session's tenant."""

    def __init__(
        self,
        *,
        catalog: CatalogIntrospector,
        writer: SchemaWriter,
        function_schema: str = "universal",
    ) -> None:
        self._catalog = catalog
        self._writer = writer
        self._function_schema = require_identifier(function_schema, field_name="schema")

    def ensure_tenant_functions(self) -> None:
        """Create or replace ``uuid_bot()`` and ``set_current_tenant(uuid)``."""
        schema = self._function_schema
        self._writer.execute(
            CreateOrReplaceUuidConstantFunction(schema, BOT_FUNCTION, BOT_PERSONA_ID)
        )
        self._writer.execute(
            CommentOn("FUNCTION", (schema, BOT_FUNCTION), BOT_FUNCTION_COMMENT)
        )
        self._writer.execute(
            CreateOrReplaceTenantSetter(
                schema, TENANT_SETTER_FUNCTION, TENANT_SESSION_SETTING
            )
        )
        self._writer.execute(
            CommentOn(
                "FUNCTION",
                (schema, TENANT_SETTER_FUNCTION),
                TENANT_SETTER_COMMENT,
                argument_types=("uuid",),
            )
        )

    def set_current_tenant(self, tenant_persona_id: UUID | str) -> UUID:
        """Select the tenant for the rest of the session and return its id."""
        persona_id = coerce_persona_id(tenant_persona_id)
        self._writer.execute(SetSessionSetting(TENANT_SESSION_SETTING, str(persona_id)))
        _LOGGER.debug("session tenant selected")
        return persona_id

    def current_tenant(self) -> UUID | None:
        """Return the session's tenant, or ``None`` when none was selected."""
        raw = self._catalog.current_setting(TENANT_SESSION_SETTING)
        if raw is None:
            return None
        try:
            return UUID(raw)
        except ValueError as exc:
            raise SettingValueError(
                f"setting {TENANT_SESSION_SETTING} is not a uuid: {raw!r}",
                setting=TENANT_SESSION_SETTING,
                metadata={"setting": TENANT_SESSION_SETTING},
            ) from exc
