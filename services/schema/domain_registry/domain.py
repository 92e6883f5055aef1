"""Domain type definitions and their pure validation predicates.

A domain is a named, constrained scalar type. The same definition drives two
things: in-process validation of candidate values, and the ``CREATE DOMAIN``
check expression issued against the database.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Final, Literal

from packages.schemaward_shared.errors import (
    DomainValidationError,
    ValidationError,
    codes,
)

BaseType = Literal["varchar", "char", "text", "citext"]

IDENTIFIER_PATTERN: Final[str] = r"^([^\W\d)]|[_])[\w_-]*$"
IDENTIFIER_MAX_LENGTH: Final[int] = 63

_BOUNDED_BASE_TYPES: Final[frozenset[str]] = frozenset({"varchar", "char"})
_NAME_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


@lru_cache(maxsize=64)
def _compile(pattern: str) -> re.Pattern[str]:
    """Compile and cache one domain pattern."""
    return re.compile(pattern)


@dataclass(frozen=True, slots=True)
class DomainDefinition:
    """Immutable declaration of one constrained scalar type."""

    schema_name: str
    name: str
    base_type: BaseType
    max_length: int | None = None
    pattern: str | None = None
    lowercase_only: bool = False
    constraint_name: str | None = None
    description: str = ""

    def __post_init__(self) -> None:
        """Validate the declaration itself before it can be registered."""
        for label, value in (("schema", self.schema_name), ("name", self.name)):
            if not _NAME_RE.fullmatch(value):
                raise ValidationError(
                    f"invalid domain {label} {value!r}",
                    code=codes.INVALID_IDENTIFIER,
                )
        if self.constraint_name is not None and not _NAME_RE.fullmatch(
            self.constraint_name
        ):
            raise ValidationError(
                f"invalid constraint name {self.constraint_name!r}",
                code=codes.INVALID_IDENTIFIER,
            )
        if self.max_length is not None and self.max_length <= 0:
            raise ValidationError(
                f"domain {self.qualified_name} max_length must be > 0",
                code=codes.INVALID_ARGUMENT,
            )
        if self.base_type in _BOUNDED_BASE_TYPES and self.max_length is None:
            raise ValidationError(
                f"domain {self.qualified_name} of type {self.base_type} needs max_length",
                code=codes.INVALID_ARGUMENT,
            )
        if self.pattern is not None:
            try:
                _compile(self.pattern)
            except re.error as exc:
                raise ValidationError(
                    f"domain {self.qualified_name} pattern does not compile: {exc}",
                    code=codes.INVALID_ARGUMENT,
                ) from exc

    @property
    def qualified_name(self) -> str:
        """Return ``schema.name``."""
        return f"{self.schema_name}.{self.name}"

    @property
    def case_insensitive(self) -> bool:
        """Return True when equality ignores case (``citext`` storage)."""
        return self.base_type == "citext"

    @property
    def storage_type(self) -> str:
        """Return the SQL storage type, e.g. ``varchar(128)``."""
        if self.base_type in _BOUNDED_BASE_TYPES:
            return f"{self.base_type}({self.max_length})"
        return self.base_type

    def shape(self) -> tuple[object, ...]:
        """Return the fields that make two declarations interchangeable."""
        return (
            self.schema_name,
            self.name,
            self.base_type,
            self.max_length,
            self.pattern,
            self.lowercase_only,
        )

    def violations(self, value: object) -> tuple[str, ...]:
        """Return every constraint ``value`` violates; empty when valid."""
        if not isinstance(value, str):
            return (f"expected a string, got {type(value).__name__}",)

        found: list[str] = []
        if self.max_length is not None and len(value) > self.max_length:
            found.append(
                f"length {len(value)} exceeds maximum of {self.max_length} characters"
            )
        if self.pattern is not None and _compile(self.pattern).fullmatch(value) is None:
            found.append(f"does not match pattern {self.pattern}")
        if self.lowercase_only and value != value.lower():
            found.append("must be lower case")
        return tuple(found)

    def is_valid(self, value: object) -> bool:
        """Return True when ``value`` satisfies every constraint."""
        return len(self.violations(value)) == 0

    def validate(self, value: object) -> str:
        """Return ``value`` unchanged or raise ``DomainValidationError``."""
        found = self.violations(value)
        if not found and isinstance(value, str):
            return value
        raise DomainValidationError(
            f"{value!r} is not a valid {self.qualified_name}: {'; '.join(found)}",
            domain=self.qualified_name,
            violations=found,
            metadata={"domain": self.qualified_name},
        )

    def comparison_key(self, value: str) -> str:
        """Return the key two stored values are compared by."""
        validated = self.validate(value)
        if self.case_insensitive:
            return validated.casefold()
        return validated

    def check_expression(self) -> str | None:
        """Return the SQL ``CHECK`` body enforcing this domain, if any."""
        clauses: list[str] = []
        if self.max_length is not None and self.base_type not in _BOUNDED_BASE_TYPES:
            clauses.append(f"CHAR_LENGTH(VALUE) <= {self.max_length}")
        if self.pattern is not None:
            escaped = self.pattern.replace("'", "''")
            clauses.append(f"VALUE ~ '{escaped}'")
        if self.lowercase_only:
            clauses.append("VALUE::text = lower(VALUE::text)")
        if not clauses:
            return None
        return " AND ".join(clauses)
