"""Ambient setting context and the setting resolver.

Settings are addressed by dotted path (``created_at_column.add_to_table``).
A per-call override wins over the ambient context, and the ambient context
wins over the hard default. Ambient values arrive from configuration files,
environment variables or database session settings, so strings are coerced
the way Postgres casts ``text`` to ``boolean``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Final

from packages.schemaward_shared.config import SchemawardSettings
from packages.schemaward_shared.errors import SettingValueError

from resources.substrates.postgres.catalog import CatalogIntrospector

SESSION_SETTING_PREFIX: Final[str] = "my.settings."

MULTI_TENANT: Final[str] = "multi_tenant"
MULTI_SOURCE: Final[str] = "multi_source"
CREATED_AT_ADD: Final[str] = "created_at_column.add_to_table"
LAST_UPDATED_AT_ADD: Final[str] = "last_updated_at_column.add_to_table"
CREATED_AT_LOCKED_ROLES: Final[str] = "created_at_column.locked_roles"
LAST_UPDATED_AT_LOCKED_ROLES: Final[str] = "last_updated_at_column.locked_roles"

TOGGLE_PATHS: Final[tuple[str, ...]] = (
    MULTI_TENANT,
    MULTI_SOURCE,
    CREATED_AT_ADD,
    LAST_UPDATED_AT_ADD,
)
LIST_PATHS: Final[tuple[str, ...]] = (CREATED_AT_LOCKED_ROLES, LAST_UPDATED_AT_LOCKED_ROLES)

_TRUE_WORDS: Final[frozenset[str]] = frozenset({"true", "t", "yes", "y", "on", "1"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"false", "f", "no", "n", "off", "0"})


@dataclass(frozen=True)
class SettingsContext:
    """Explicit ambient setting values keyed by dotted path."""

    values: Mapping[str, object] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SettingsContext":
        """Flatten a nested mapping into dotted paths."""
        flattened: dict[str, object] = {}
        _flatten(data, prefix="", output=flattened)
        return cls(values=flattened)

    @classmethod
    def from_settings(cls, settings: SchemawardSettings) -> "SettingsContext":
        """Build the context from the ``settings`` configuration subtree."""
        return cls.from_mapping(settings.settings)

    @classmethod
    def from_session(
        cls,
        catalog: CatalogIntrospector,
        paths: Iterable[str] = TOGGLE_PATHS + LIST_PATHS,
    ) -> "SettingsContext":
        """Read ``my.settings.<path>`` session settings for each path."""
        values: dict[str, object] = {}
        for path in paths:
            raw = catalog.current_setting(SESSION_SETTING_PREFIX + path)
            if raw is not None:
                values[path] = raw
        return cls(values=values)

    def merged(self, other: "SettingsContext") -> "SettingsContext":
        """Return a context where ``other``'s values win."""
        return SettingsContext(values={**self.values, **other.values})

    def get(self, path: str) -> object | None:
        """Return the ambient value at ``path``; unset values are ``None``."""
        return self.values.get(normalize_path(path))


def normalize_path(path: str) -> str:
    """Strip the session setting prefix so both spellings address one value."""
    if path.startswith(SESSION_SETTING_PREFIX):
        return path[len(SESSION_SETTING_PREFIX) :]
    return path


def coerce_setting_bool(value: object, *, path: str) -> bool:
    """Coerce an ambient value to bool, accepting Postgres boolean spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise SettingValueError(
        f"setting {path} is not a boolean: {value!r}",
        setting=path,
        metadata={"setting": path},
    )


def resolve_setting(
    path: str,
    *,
    default: bool = False,
    override: bool | None = None,
    context: SettingsContext | None = None,
) -> bool:
    """Resolve one boolean setting: override, then ambient, then default."""
    if override is not None:
        return override
    if context is not None:
        ambient = context.get(path)
        if ambient is not None and ambient != "":
            return coerce_setting_bool(ambient, path=normalize_path(path))
    return default


def resolve_setting_list(
    path: str,
    *,
    default: tuple[str, ...] = (),
    context: SettingsContext | None = None,
) -> tuple[str, ...]:
    """Resolve a list setting; strings are split on commas."""
    if context is None:
        return default
    ambient = context.get(path)
    if ambient is None:
        return default
    if isinstance(ambient, str):
        return tuple(item.strip() for item in ambient.split(",") if item.strip())
    if isinstance(ambient, (list, tuple)):
        return tuple(str(item).strip() for item in ambient if str(item).strip())
    raise SettingValueError(
        f"setting {normalize_path(path)} is not a list: {ambient!r}",
        setting=normalize_path(path),
        metadata={"setting": normalize_path(path)},
    )


def _flatten(data: Mapping[str, Any], *, prefix: str, output: dict[str, object]) -> None:
    """Write nested mapping leaves into ``output`` under dotted keys."""
    for key, value in data.items():
        path = f"{prefix}{key}"
        if isinstance(value, Mapping):
            _flatten(value, prefix=f"{path}.", output=output)
            continue
        output[normalize_path(path)] = value
