"""Canonical shared error types for schemaward engines.

This module defines the error taxonomy shared by the domain registry, the
table-settings engine, and the role policy engine. ``ErrorDetail`` is the
transport-agnostic value shape; the exception classes carry one detail each so
callers can either catch by type or log the structured form.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    """High-level error categories shared across engine boundaries."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    POLICY = "policy"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured error object used for logging and CLI output."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)
