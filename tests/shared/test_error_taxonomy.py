"""Tests for engine exception categories and structured details."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import pytest

from packages.schemaward_shared.errors import (
    DependencyMissingError,
    DomainConflictError,
    ErrorCategory,
    PolicyConstraintError,
    SchemawardError,
    SettingValueError,
    ValidationError,
    codes,
    exception_to_error,
)


@contextmanager
def _scope() -> Iterator[None]:
    yield


def test_errors_propagate_through_generator_context_managers() -> None:
    """Context managers reassign ``__traceback__`` on the way out."""
    with pytest.raises(DependencyMissingError) as exc_info:
        with _scope():
            raise DependencyMissingError("role does not exist: ghost", dependency="ghost")

    assert exc_info.value.dependency == "ghost"


def test_validation_subtypes_share_the_validation_category() -> None:
    conflict = DomainConflictError("universal.label redefined", domain="universal.label")
    setting = SettingValueError("bad", setting="multi_tenant")

    assert isinstance(conflict, ValidationError)
    assert conflict.to_detail().category == ErrorCategory.VALIDATION
    assert setting.to_detail().code == codes.INVALID_SETTING_VALUE


def test_to_detail_carries_code_and_metadata() -> None:
    error = PolicyConstraintError(
        "DELETE cannot exclude columns",
        code=codes.ROW_PRIVILEGE_WITH_EXCLUSIONS,
        metadata={"privilege": "DELETE"},
    )

    detail = error.to_detail()

    assert detail.category == ErrorCategory.POLICY
    assert detail.code == codes.ROW_PRIVILEGE_WITH_EXCLUSIONS
    assert detail.metadata == {"privilege": "DELETE"}
    assert str(error) == "DELETE cannot exclude columns"


def test_exception_to_error_maps_builtin_exceptions() -> None:
    assert exception_to_error(ValueError("x")).category == ErrorCategory.VALIDATION
    assert exception_to_error(TimeoutError()).retryable is True
    assert exception_to_error(RuntimeError("boom")).category == ErrorCategory.INTERNAL
    assert exception_to_error(KeyError("k")).category == ErrorCategory.NOT_FOUND
    assert exception_to_error(PermissionError("p")).category == ErrorCategory.POLICY
    refused = exception_to_error(ConnectionRefusedError())
    assert refused.category == ErrorCategory.DEPENDENCY
    assert refused.message == "dependency unavailable"
    assert exception_to_error(ValueError("x")).retryable is False
    assert isinstance(DependencyMissingError("m"), SchemawardError)
