"""Canonical logging field names for cross-engine consistency.

Keeping names centralized prevents drift between the augmentation, policy,
and lifecycle engines when they bind context for the same catalog object.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Catalog object fields.
SCHEMA = "schema"
TABLE = "table"
COLUMN = "column"
ROLE = "role"
PRIVILEGE = "privilege"
DOMAIN = "domain"
TRIGGER = "trigger"

# Operation fields.
STATEMENT_KIND = "statement_kind"
ERROR_CODE = "error_code"
ERROR_CATEGORY = "error_category"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"

# Public API invocation fields.
COMPONENT = "component"
API_NAME = "api_name"
SUCCESS = "success"
DURATION_MS = "duration_ms"
PUBLIC_API_INVOCATION_EVENT = "public_api_invocation"
PUBLIC_API_COMPLETION_EVENT = "public_api_completion"
