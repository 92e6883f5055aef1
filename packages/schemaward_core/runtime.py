"""Process wiring: settings to engine to one transactional catalog."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy import Engine

from packages.schemaward_shared.config import SchemawardSettings
from resources.substrates.postgres import (
    PostgresCatalog,
    create_postgres_engine,
    ping,
    resolve_postgres_settings,
    transactional_connection,
)

EngineFactory = Callable[[SchemawardSettings], Engine]


def build_engine(settings: SchemawardSettings) -> Engine:
    """Construct the Postgres engine described by ``settings``."""
    return create_postgres_engine(resolve_postgres_settings(settings))


@contextmanager
def open_catalog(
    settings: SchemawardSettings,
    *,
    engine_factory: EngineFactory = build_engine,
    statement_timeout_seconds: float | None = None,
) -> Iterator[PostgresCatalog]:
    """Yield a catalog bound to one transaction; the engine is disposed after."""
    engine = engine_factory(settings)
    try:
        with transactional_connection(
            engine, statement_timeout_seconds=statement_timeout_seconds
        ) as conn:
            yield PostgresCatalog(conn)
    finally:
        engine.dispose()


def check_health(
    settings: SchemawardSettings, *, engine_factory: EngineFactory = build_engine
) -> bool:
    """Return True when the configured database answers a ping."""
    engine = engine_factory(settings)
    try:
        return ping(engine, timeout_seconds=settings.postgres.health_timeout_seconds)
    finally:
        engine.dispose()
