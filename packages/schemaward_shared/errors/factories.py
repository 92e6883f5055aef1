"""Constructors for ``ErrorDetail`` values, one per error category.

Only dependency failures may be retryable; a validation, conflict,
not-found, policy or internal failure repeats on retry.
"""

from __future__ import annotations

from typing import Mapping

from . import codes
from .types import ErrorCategory, ErrorDetail


def _detail(
    category: ErrorCategory,
    message: str,
    code: str,
    metadata: Mapping[str, str] | None,
    *,
    retryable: bool = False,
) -> ErrorDetail:
    return ErrorDetail(
        code=code,
        message=message,
        category=category,
        retryable=retryable,
        metadata=dict(metadata or {}),
    )


def validation_error(
    message: str,
    *,
    code: str = codes.VALIDATION_ERROR,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return _detail(ErrorCategory.VALIDATION, message, code, metadata)


def conflict_error(
    message: str,
    *,
    code: str = codes.ALREADY_EXISTS,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return _detail(ErrorCategory.CONFLICT, message, code, metadata)


def not_found_error(
    message: str,
    *,
    code: str = codes.NOT_FOUND,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return _detail(ErrorCategory.NOT_FOUND, message, code, metadata)


def policy_error(
    message: str,
    *,
    code: str = codes.POLICY_VIOLATION,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return _detail(ErrorCategory.POLICY, message, code, metadata)


def dependency_error(
    message: str,
    *,
    code: str = codes.DEPENDENCY_FAILURE,
    retryable: bool = False,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Dependency failures such as a refused connection may succeed later."""
    return _detail(ErrorCategory.DEPENDENCY, message, code, metadata, retryable=retryable)


def internal_error(
    message: str,
    *,
    code: str = codes.INTERNAL_ERROR,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return _detail(ErrorCategory.INTERNAL, message, code, metadata)
