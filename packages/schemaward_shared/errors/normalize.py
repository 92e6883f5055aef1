"""Map exceptions from outside the engine taxonomy onto ``ErrorDetail``."""

from __future__ import annotations

from typing import Callable

from . import codes
from .exceptions import SchemawardError
from .factories import (
    dependency_error,
    internal_error,
    not_found_error,
    policy_error,
    validation_error,
)
from .types import ErrorDetail

# First matching row wins.
_BUILTIN_ERRORS: tuple[
    tuple[tuple[type[BaseException], ...], Callable[..., ErrorDetail], str], ...
] = (
    ((ValueError,), validation_error, codes.INVALID_ARGUMENT),
    ((KeyError,), not_found_error, codes.NOT_FOUND),
    ((PermissionError,), policy_error, codes.POLICY_VIOLATION),
    ((TimeoutError, ConnectionError), dependency_error, codes.DEPENDENCY_UNAVAILABLE),
)


def exception_to_error(exc: Exception) -> ErrorDetail:
    """Return the structured detail for ``exc``.

    Engine errors carry their own detail. A timeout or refused connection is
    the only retryable outcome; anything unrecognized is internal.
    """
    if isinstance(exc, SchemawardError):
        return exc.to_detail()

    metadata = {"exception_type": type(exc).__name__}
    for types, factory, code in _BUILTIN_ERRORS:
        if not isinstance(exc, types):
            continue
        if factory is dependency_error:
            return dependency_error(
                str(exc) or "dependency unavailable",
                code=code,
                retryable=True,
                metadata=metadata,
            )
        return factory(str(exc), code=code, metadata=metadata)

    return internal_error(
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
