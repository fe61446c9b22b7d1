"""Shared error code constants.

These constants are domain-agnostic and intended for stable machine-readable
handling across services. Asset-lifecycle codes live at the bottom; services
should extend this set in local modules rather than overloading shared codes.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"

# Conflict
CONFLICT = "CONFLICT"
ALREADY_EXISTS = "ALREADY_EXISTS"

# Dependency / external system
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"

# Asset lifecycle
ENTITY_SYNC_FAILED = "ENTITY_SYNC_FAILED"
