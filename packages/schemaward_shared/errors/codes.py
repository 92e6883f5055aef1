"""Shared error code constants.

These constants are stable machine-readable identifiers attached to every
raised schemaward error. Engines pick the most specific code available.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
DOMAIN_CONSTRAINT_VIOLATION = "DOMAIN_CONSTRAINT_VIOLATION"
DOMAIN_CONFLICT = "DOMAIN_CONFLICT"
INVALID_SETTING_VALUE = "INVALID_SETTING_VALUE"

# Conflict
ALREADY_EXISTS = "ALREADY_EXISTS"

# Not found
NOT_FOUND = "NOT_FOUND"
DEPENDENCY_MISSING = "DEPENDENCY_MISSING"

# Policy
POLICY_VIOLATION = "POLICY_VIOLATION"
SELECT_REQUIRED_FOR_UPDATE = "SELECT_REQUIRED_FOR_UPDATE"
ROW_PRIVILEGE_WITH_EXCLUSIONS = "ROW_PRIVILEGE_WITH_EXCLUSIONS"

# Dependency / external system
CATALOG_READ_FAILURE = "CATALOG_READ_FAILURE"
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
