"""Identifier quoting and literal rendering for generated statements."""

from __future__ import annotations

from sqlalchemy.dialects import postgresql

from packages.schemaward_shared.errors import ValidationError, codes

_PREPARER = postgresql.dialect().identifier_preparer


def quote_identifier(value: str) -> str:
    """Quote one identifier only when Postgres requires it."""
    return _PREPARER.quote(value)


def qualified_name(schema_name: str, name: str) -> str:
    """Return ``schema.name`` with each part quoted as needed."""
    return f"{quote_identifier(schema_name)}.{quote_identifier(name)}"


def column_list(columns: tuple[str, ...]) -> str:
    """Return a comma separated list of quoted column identifiers."""
    return ", ".join(quote_identifier(column) for column in columns)


def string_literal(value: str) -> str:
    """Render ``value`` as a standard-conforming SQL string literal."""
    if "\x00" in value:
        raise ValidationError(
            "string literals cannot contain NUL characters",
            code=codes.INVALID_ARGUMENT,
        )
    return "'" + value.replace("'", "''") + "'"
