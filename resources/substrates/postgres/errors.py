"""Postgres/SQLAlchemy exception normalization helpers."""

from __future__ import annotations

from packages.schemaward_shared.errors import (
    CatalogReadError,
    DependencyMissingError,
    ErrorDetail,
    SchemawardError,
    StatementExecutionError,
    codes,
    conflict_error,
    dependency_error,
    internal_error,
    not_found_error,
)

_UNDEFINED_SQLSTATES = frozenset({"42P01", "42703", "42704", "42883", "3F000"})
_UNDEFINED_TYPE_NAMES = (
    "UndefinedTable",
    "UndefinedColumn",
    "UndefinedObject",
    "UndefinedFunction",
    "InvalidSchemaName",
)
_DUPLICATE_SQLSTATES = frozenset({"23505", "42710", "42P07", "42701"})


def normalize_postgres_error(exc: Exception) -> ErrorDetail:
    """Map low-level DB exceptions into shared structured error semantics."""
    exc_type_name = _type_name(exc)
    message = str(exc)
    metadata = {"exception_type": exc_type_name}
    sqlstate = _sqlstate(exc)
    if sqlstate is not None:
        metadata["sqlstate"] = sqlstate

    if is_undefined_object(exc):
        return not_found_error(
            "referenced schema object does not exist",
            code=codes.DEPENDENCY_MISSING,
            metadata=metadata,
        )

    if (
        sqlstate in _DUPLICATE_SQLSTATES
        or "UniqueViolation" in exc_type_name
        or "DuplicateObject" in exc_type_name
        or "duplicate key value" in message
    ):
        return conflict_error(
            "schema object already exists",
            code=codes.ALREADY_EXISTS,
            metadata=metadata,
        )

    if "OperationalError" in exc_type_name or "timeout" in message.lower():
        return dependency_error(
            "postgres unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            retryable=True,
            metadata=metadata,
        )

    if "InterfaceError" in exc_type_name or "ProgrammingError" in exc_type_name:
        return dependency_error(
            "postgres request failed",
            code=codes.DEPENDENCY_FAILURE,
            retryable=False,
            metadata=metadata,
        )

    return internal_error(
        "unexpected postgres failure",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )


def is_undefined_object(exc: Exception) -> bool:
    """Return True when ``exc`` reports a missing table, column, role or schema."""
    if _sqlstate(exc) in _UNDEFINED_SQLSTATES:
        return True
    type_name = _type_name(exc)
    return any(name in type_name for name in _UNDEFINED_TYPE_NAMES)


def read_failure(exc: Exception, *, operation: str) -> SchemawardError:
    """Wrap a failed catalog query."""
    detail = normalize_postgres_error(exc)
    if detail.code == codes.DEPENDENCY_MISSING:
        return DependencyMissingError(
            f"{operation}: {_first_line(exc)}",
            dependency=operation,
            metadata=dict(detail.metadata),
        )
    return CatalogReadError(
        f"catalog read failed during {operation}: {detail.message}",
        operation=operation,
        metadata=dict(detail.metadata),
    )


def write_failure(exc: Exception, *, statement_kind: str) -> SchemawardError:
    """Wrap a statement the database rejected."""
    detail = normalize_postgres_error(exc)
    metadata = {**detail.metadata, "statement_kind": statement_kind}
    if detail.code == codes.DEPENDENCY_MISSING:
        return DependencyMissingError(
            f"{statement_kind}: {_first_line(exc)}",
            dependency=statement_kind,
            metadata=metadata,
        )
    return StatementExecutionError(
        f"{statement_kind} failed: {detail.message}",
        code=detail.code,
        statement_kind=statement_kind,
        metadata=metadata,
    )


def _sqlstate(exc: Exception) -> str | None:
    """Return the SQLSTATE of ``exc`` or of the DBAPI error it wraps."""
    original = getattr(exc, "orig", None) or exc
    for attribute in ("sqlstate", "pgcode"):
        value = getattr(original, attribute, None)
        if isinstance(value, str) and value:
            return value
    return None


def _type_name(exc: Exception) -> str:
    """Return the wrapped DBAPI type name alongside the outer one."""
    original = getattr(exc, "orig", None)
    if original is None:
        return type(exc).__name__
    return f"{type(exc).__name__}:{type(original).__name__}"


def _first_line(exc: Exception) -> str:
    """Return the first line of the database message, without SQL echo."""
    original = getattr(exc, "orig", None) or exc
    text = str(original).strip()
    return text.splitlines()[0] if text else type(original).__name__
