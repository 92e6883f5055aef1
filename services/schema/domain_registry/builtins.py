"""Built-in domain declarations provisioned by every bootstrap."""

from __future__ import annotations

from typing import Final

from .domain import IDENTIFIER_MAX_LENGTH, IDENTIFIER_PATTERN, DomainDefinition

UNIVERSAL: Final[str] = "universal"
ISO: Final[str] = "iso"

URL = DomainDefinition(
    schema_name=UNIVERSAL,
    name="url",
    base_type="citext",
    max_length=2047,
    constraint_name="url_check",
    description="A URL, compared case-insensitively.",
)
LABEL = DomainDefinition(
    schema_name=UNIVERSAL,
    name="label",
    base_type="varchar",
    max_length=128,
    description="A short human-readable label.",
)
LABEL_SHORT = DomainDefinition(
    schema_name=UNIVERSAL,
    name="label_short",
    base_type="varchar",
    max_length=32,
    description="A very short label such as a code or tag.",
)
TITLE = DomainDefinition(
    schema_name=UNIVERSAL,
    name="title",
    base_type="varchar",
    max_length=128,
    constraint_name="title_check",
    description="A title for display.",
)
DESCRIPTION = DomainDefinition(
    schema_name=UNIVERSAL,
    name="description",
    base_type="varchar",
    max_length=4096,
    description="Free-form descriptive text.",
)
NAME = DomainDefinition(
    schema_name=UNIVERSAL,
    name="name",
    base_type="varchar",
    max_length=512,
    description="A person or object name.",
)
EMAIL = DomainDefinition(
    schema_name=UNIVERSAL,
    name="email",
    base_type="varchar",
    max_length=256,
    description="An email address.",
)
COLOR_HEX = DomainDefinition(
    schema_name=UNIVERSAL,
    name="color_hex",
    base_type="varchar",
    max_length=7,
    pattern=r"^#([a-fA-F0-9]{6}|[a-fA-F0-9]{3})$",
    constraint_name="color_hex_check",
    description="A CSS hex color such as #fff or #a1b2c3.",
)
SQL_IDENTIFIER = DomainDefinition(
    schema_name=UNIVERSAL,
    name="sql_identifier",
    base_type="varchar",
    max_length=IDENTIFIER_MAX_LENGTH,
    pattern=IDENTIFIER_PATTERN,
    constraint_name="sql_identifier_check",
    description="A valid PostgreSQL identifier.",
)
SQL_IDENTIFIER_LOWER = DomainDefinition(
    schema_name=UNIVERSAL,
    name="sql_identifier_lower",
    base_type="varchar",
    max_length=IDENTIFIER_MAX_LENGTH,
    pattern=IDENTIFIER_PATTERN,
    lowercase_only=True,
    constraint_name="sql_identifier_lower_check",
    description="A valid, all lower case PostgreSQL identifier.",
)
ISO_ALPHA2 = DomainDefinition(
    schema_name=ISO,
    name="alpha2",
    base_type="char",
    max_length=2,
    pattern=r"^[a-z]{2}$",
    lowercase_only=True,
    constraint_name="alpha2_check",
    description="An ISO two-letter code, lower case.",
)
ISO_ALPHA3 = DomainDefinition(
    schema_name=ISO,
    name="alpha3",
    base_type="char",
    max_length=3,
    pattern=r"^[a-z]{3}$",
    lowercase_only=True,
    constraint_name="alpha3_check",
    description="An ISO three-letter code, lower case.",
)

BUILTIN_DOMAINS: Final[tuple[DomainDefinition, ...]] = (
    URL,
    LABEL,
    LABEL_SHORT,
    TITLE,
    DESCRIPTION,
    NAME,
    EMAIL,
    COLOR_HEX,
    SQL_IDENTIFIER,
    SQL_IDENTIFIER_LOWER,
    ISO_ALPHA2,
    ISO_ALPHA3,
)
