"""Typed exceptions raised by schemaward engines.

Each exception maps onto one ``ErrorCategory``. Engines never retry locally:
an exception aborts the enclosing transaction and reaches the caller as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Mapping

from . import codes
from .factories import (
    dependency_error,
    internal_error,
    not_found_error,
    policy_error,
    validation_error,
)
from .types import ErrorCategory, ErrorDetail


@dataclass(eq=False)
class SchemawardError(Exception):
    """Base error type for all engine failures."""

    message: str
    code: str = codes.INTERNAL_ERROR
    metadata: Mapping[str, str] = field(default_factory=dict)

    category: ClassVar[ErrorCategory] = ErrorCategory.INTERNAL

    def __str__(self) -> str:
        """Return human-readable error message."""
        return self.message

    def to_detail(self) -> ErrorDetail:
        """Return the structured ``ErrorDetail`` form of this error."""
        factory = _CATEGORY_FACTORIES.get(self.category, internal_error)
        return factory(self.message, code=self.code, metadata=self.metadata)


@dataclass(eq=False)
class ValidationError(SchemawardError):
    """A value or argument violates a declared constraint."""

    code: str = codes.VALIDATION_ERROR

    category: ClassVar[ErrorCategory] = ErrorCategory.VALIDATION


@dataclass(eq=False)
class DomainValidationError(ValidationError):
    """A value violates a domain type constraint."""

    code: str = codes.DOMAIN_CONSTRAINT_VIOLATION
    domain: str = ""
    violations: tuple[str, ...] = ()


@dataclass(eq=False)
class DomainConflictError(ValidationError):
    """A domain was re-declared with a shape different from the registered one."""

    code: str = codes.DOMAIN_CONFLICT
    domain: str = ""


@dataclass(eq=False)
class SettingValueError(ValidationError):
    """An ambient setting holds a value that cannot be coerced."""

    code: str = codes.INVALID_SETTING_VALUE
    setting: str = ""


@dataclass(eq=False)
class DependencyMissingError(SchemawardError):
    """A structural change references a schema object that does not exist."""

    code: str = codes.DEPENDENCY_MISSING
    dependency: str = ""

    category: ClassVar[ErrorCategory] = ErrorCategory.NOT_FOUND


@dataclass(eq=False)
class PolicyConstraintError(SchemawardError):
    """An invalid privilege/exclusion combination was requested."""

    code: str = codes.POLICY_VIOLATION

    category: ClassVar[ErrorCategory] = ErrorCategory.POLICY


@dataclass(eq=False)
class CatalogReadError(SchemawardError):
    """A catalog introspection query failed."""

    code: str = codes.CATALOG_READ_FAILURE
    operation: str = ""

    category: ClassVar[ErrorCategory] = ErrorCategory.DEPENDENCY


@dataclass(eq=False)
class StatementExecutionError(SchemawardError):
    """A structural statement was rejected by the database."""

    code: str = codes.DEPENDENCY_FAILURE
    statement_kind: str = ""

    category: ClassVar[ErrorCategory] = ErrorCategory.DEPENDENCY


_CATEGORY_FACTORIES = {
    ErrorCategory.VALIDATION: validation_error,
    ErrorCategory.NOT_FOUND: not_found_error,
    ErrorCategory.POLICY: policy_error,
    ErrorCategory.DEPENDENCY: dependency_error,
    ErrorCategory.INTERNAL: internal_error,
}
