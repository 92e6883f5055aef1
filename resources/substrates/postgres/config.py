"""Resolve Postgres connection settings from merged configuration."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import quote_plus

from packages.schemaward_shared.config import PostgresSettings, SchemawardSettings


def resolve_postgres_settings(
    config: SchemawardSettings | Mapping[str, Any],
) -> PostgresSettings:
    """Return typed Postgres settings from settings or a raw config mapping.

    A raw mapping may give either ``postgres.url`` or split ``host``/``port``/
    ``database``/``user``/``password`` parts.
    """
    if isinstance(config, SchemawardSettings):
        return config.postgres

    postgres = config.get("postgres", {}) if isinstance(config, Mapping) else {}
    if not isinstance(postgres, Mapping):
        raise ValueError("postgres config must be a mapping")

    values = {
        key: value
        for key, value in postgres.items()
        if key in PostgresSettings.model_fields
    }
    if not str(values.get("url", "")).strip():
        values["url"] = _build_url_from_parts(postgres)
    return PostgresSettings.model_validate(values)


def _build_url_from_parts(postgres: Mapping[str, Any]) -> str:
    """Construct a SQLAlchemy psycopg URL from split config values."""
    host = str(postgres.get("host", "localhost")).strip()
    port = int(postgres.get("port", 5432))
    database = str(postgres.get("database", "postgres")).strip()
    user = str(postgres.get("user", "postgres")).strip()
    password = str(postgres.get("password", "")).strip()

    if not host:
        raise ValueError("postgres.host is required when postgres.url is unset")
    if not database:
        raise ValueError("postgres.database is required when postgres.url is unset")
    if not user:
        raise ValueError("postgres.user is required when postgres.url is unset")

    credentials = quote_plus(user)
    if password:
        credentials += f":{quote_plus(password)}"
    return (
        "postgresql+psycopg://"
        f"{credentials}@{host}:{port}/{quote_plus(database)}"
    )
