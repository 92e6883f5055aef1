"""Identifier validation used before any name reaches generated SQL."""

from __future__ import annotations

from packages.schemaward_shared.errors import (
    DomainValidationError,
    ValidationError,
    codes,
)

from .builtins import SQL_IDENTIFIER, SQL_IDENTIFIER_LOWER


def require_identifier(
    value: object, *, field_name: str = "identifier", lowercase: bool = True
) -> str:
    """Return ``value`` when it is a safe SQL identifier.

    ``lowercase`` selects the stricter lower-case-only domain, which is what
    schema, table and role names are held to.
    """
    domain = SQL_IDENTIFIER_LOWER if lowercase else SQL_IDENTIFIER
    try:
        return domain.validate(value)
    except DomainValidationError as exc:
        raise ValidationError(
            f"invalid {field_name} {value!r}: {'; '.join(exc.violations)}",
            code=codes.INVALID_IDENTIFIER,
            metadata={"field": field_name, "domain": domain.qualified_name},
        ) from exc


def require_identifiers(
    values: object, *, field_name: str = "identifier", lowercase: bool = True
) -> tuple[str, ...]:
    """Validate a sequence of identifiers; duplicates collapse, order is kept."""
    if isinstance(values, str) or values is None:
        raise ValidationError(
            f"{field_name} must be a sequence of identifiers",
            code=codes.INVALID_ARGUMENT,
        )
    seen: dict[str, None] = {}
    for value in values:  # type: ignore[union-attr]
        seen[require_identifier(value, field_name=field_name, lowercase=lowercase)] = None
    return tuple(seen)
