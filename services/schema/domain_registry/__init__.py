"""Domain registry: named, constrained scalar types and identifier checks."""

from .builtins import (
    BUILTIN_DOMAINS,
    COLOR_HEX,
    DESCRIPTION,
    EMAIL,
    ISO_ALPHA2,
    ISO_ALPHA3,
    LABEL,
    LABEL_SHORT,
    NAME,
    SQL_IDENTIFIER,
    SQL_IDENTIFIER_LOWER,
    TITLE,
    URL,
)
from .domain import DomainDefinition
from .identifiers import require_identifier, require_identifiers
from .registry import (
    DomainRegistry,
    build_registry,
    define_domain,
    get_domain,
    get_domain_registry,
    validate_value,
)

__all__ = [
    "BUILTIN_DOMAINS",
    "COLOR_HEX",
    "DESCRIPTION",
    "DomainDefinition",
    "DomainRegistry",
    "EMAIL",
    "ISO_ALPHA2",
    "ISO_ALPHA3",
    "LABEL",
    "LABEL_SHORT",
    "NAME",
    "SQL_IDENTIFIER",
    "SQL_IDENTIFIER_LOWER",
    "TITLE",
    "URL",
    "build_registry",
    "define_domain",
    "get_domain",
    "get_domain_registry",
    "require_identifier",
    "require_identifiers",
    "validate_value",
]
