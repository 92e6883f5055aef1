"""Public API for schemaward bootstrap and process wiring."""

from packages.schemaward_core.bootstrap import (
    BootstrapResult,
    bootstrap_schema,
    ensure_domains,
)
from packages.schemaward_core.runtime import build_engine, check_health, open_catalog

__all__ = [
    "BootstrapResult",
    "bootstrap_schema",
    "build_engine",
    "check_health",
    "ensure_domains",
    "open_catalog",
]
