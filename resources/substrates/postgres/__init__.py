"""Postgres substrate primitives for schemaward engines."""

from resources.substrates.postgres.catalog import (
    CatalogIntrospector,
    ColumnInfo,
    PostgresCatalog,
    SchemaWriter,
    SqlStatement,
)
from resources.substrates.postgres.config import resolve_postgres_settings
from resources.substrates.postgres.engine import create_postgres_engine
from resources.substrates.postgres.errors import (
    is_undefined_object,
    normalize_postgres_error,
    read_failure,
    write_failure,
)
from resources.substrates.postgres.health import ping
from resources.substrates.postgres.session import transactional_connection

__all__ = [
    "CatalogIntrospector",
    "ColumnInfo",
    "PostgresCatalog",
    "SchemaWriter",
    "SqlStatement",
    "create_postgres_engine",
    "is_undefined_object",
    "normalize_postgres_error",
    "ping",
    "read_failure",
    "resolve_postgres_settings",
    "transactional_connection",
    "write_failure",
]
