"""Process-wide registry of declared domain types."""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock

from packages.schemaward_shared.errors import (
    DependencyMissingError,
    DomainConflictError,
)
from packages.schemaward_shared.logging import fields, get_logger, log_context

from .builtins import BUILTIN_DOMAINS
from .domain import DomainDefinition

_LOGGER = get_logger(__name__)


@dataclass
class DomainRegistry:
    """In-memory registry keyed by qualified domain name.

    Registration is idempotent for identical shapes and rejects any attempt to
    change an existing domain. Lookups never mutate state, so reads are safe
    from any thread once definitions are in place.
    """

    _domains: dict[str, DomainDefinition] = field(default_factory=dict)
    _lock: RLock = field(default_factory=RLock)

    def define(self, definition: DomainDefinition) -> DomainDefinition:
        """Register ``definition`` and return the registered declaration."""
        with self._lock:
            existing = self._domains.get(definition.qualified_name)
            if existing is None:
                self._domains[definition.qualified_name] = definition
                with log_context({fields.DOMAIN: definition.qualified_name}):
                    _LOGGER.debug("domain registered")
                return definition
            if existing.shape() != definition.shape():
                raise DomainConflictError(
                    "duplicate domain with mismatched definition: "
                    f"{definition.qualified_name}",
                    domain=definition.qualified_name,
                    metadata={"domain": definition.qualified_name},
                )
            return existing

    def get(self, qualified_name: str) -> DomainDefinition:
        """Return one domain by ``schema.name``."""
        try:
            return self._domains[qualified_name]
        except KeyError as exc:
            raise DependencyMissingError(
                f"domain not registered: {qualified_name}",
                dependency=qualified_name,
                metadata={"domain": qualified_name},
            ) from exc

    def contains(self, qualified_name: str) -> bool:
        """Return True when ``qualified_name`` is registered."""
        return qualified_name in self._domains

    def list_domains(self) -> tuple[DomainDefinition, ...]:
        """Return all domains sorted by qualified name."""
        return tuple(
            sorted(self._domains.values(), key=lambda item: item.qualified_name)
        )

    def schemas(self) -> tuple[str, ...]:
        """Return the distinct schemas that own registered domains."""
        return tuple(sorted({item.schema_name for item in self._domains.values()}))

    def validate(self, qualified_name: str, value: object) -> str:
        """Validate ``value`` against the named domain."""
        return self.get(qualified_name).validate(value)

    def is_valid(self, qualified_name: str, value: object) -> bool:
        """Return True when ``value`` satisfies the named domain."""
        return self.get(qualified_name).is_valid(value)


def build_registry(
    definitions: tuple[DomainDefinition, ...] = BUILTIN_DOMAINS,
) -> DomainRegistry:
    """Return a fresh registry preloaded with ``definitions``."""
    registry = DomainRegistry()
    for definition in definitions:
        registry.define(definition)
    return registry


_DEFAULT_REGISTRY = build_registry()


def define_domain(definition: DomainDefinition) -> DomainDefinition:
    """Register one domain in the process-wide registry."""
    return _DEFAULT_REGISTRY.define(definition)


def get_domain_registry() -> DomainRegistry:
    """Return the process-wide registry instance."""
    return _DEFAULT_REGISTRY


def get_domain(qualified_name: str) -> DomainDefinition:
    """Return one domain from the process-wide registry."""
    return _DEFAULT_REGISTRY.get(qualified_name)


def validate_value(qualified_name: str, value: object) -> str:
    """Validate ``value`` against a domain in the process-wide registry."""
    return _DEFAULT_REGISTRY.validate(qualified_name, value)
