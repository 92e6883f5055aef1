"""Public API for shared schemaward configuration utilities."""

from .loader import ENV_PREFIX, load_config, load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    ForeignKeyTarget,
    LoggingSettings,
    PostgresSettings,
    ReferenceSettings,
    RoleCredentialSettings,
    SchemawardSettings,
    UniversalSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "ForeignKeyTarget",
    "LoggingSettings",
    "PostgresSettings",
    "ReferenceSettings",
    "RoleCredentialSettings",
    "SchemawardSettings",
    "UniversalSettings",
    "load_config",
    "load_settings",
]
