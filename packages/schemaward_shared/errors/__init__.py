"""Public shared error API for schemaward engines."""

from . import codes
from .exceptions import (
    CatalogReadError,
    DependencyMissingError,
    DomainConflictError,
    DomainValidationError,
    PolicyConstraintError,
    SchemawardError,
    SettingValueError,
    StatementExecutionError,
    ValidationError,
)
from .factories import (
    conflict_error,
    dependency_error,
    internal_error,
    not_found_error,
    policy_error,
    validation_error,
)
from .normalize import exception_to_error
from .types import ErrorCategory, ErrorDetail

__all__ = [
    "CatalogReadError",
    "DependencyMissingError",
    "DomainConflictError",
    "DomainValidationError",
    "ErrorCategory",
    "ErrorDetail",
    "PolicyConstraintError",
    "SchemawardError",
    "SettingValueError",
    "StatementExecutionError",
    "ValidationError",
    "codes",
    "conflict_error",
    "dependency_error",
    "exception_to_error",
    "internal_error",
    "not_found_error",
    "policy_error",
    "validation_error",
]
