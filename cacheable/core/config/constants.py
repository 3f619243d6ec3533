"""
System Constants and Enumerations

Centralized constants for the cache layer: stage identifiers used in
structured logs, key-derivation tokens, TTL fallback and the default logical
operation names.
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Cache processing stages.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}
    Used as the ``stage`` field on every log event so a read or write can be
    followed through the logs without a code lookup.
    """

    CONFIGURATION = "C.0_CONFIGURATION"
    LOCAL_LOOKUP = "C.1_LOCAL_LOOKUP"
    BACKEND_LOOKUP = "C.2_BACKEND_LOOKUP"
    POPULATE = "C.3_POPULATE"
    INVALIDATION = "C.4_INVALIDATION"
    CLEAR = "C.5_CLEAR"
    BACKEND = "B_BACKEND_OPERATION"


# ============================================================================
# Cache Tiers
# ============================================================================


class CacheTier(str, Enum):
    """
    Where a cached value was found.

    LOCAL: per-unit-of-work request cache (no I/O)
    BACKEND: the configured CacheStore (may be a network call)
    """

    LOCAL = "local"
    BACKEND = "backend"


# ============================================================================
# Key Derivation
# ============================================================================

# Placeholder replaced with the concrete entity name in key heads
ENTITY_PLACEHOLDER = "{entity}"

# Qualified-name separator and the separator keys use instead
QUALNAME_SEPARATOR = "."
KEY_NAMESPACE_SEPARATOR = "::"

# Separator between a key head and each argument
KEY_ARGUMENT_SEPARATOR = "-"

# Logical operation used for the "derive from full query" sentinel
QUERY_SENTINEL_OPERATION = "query"

# ============================================================================
# TTL
# ============================================================================

DEFAULT_EXPIRES = "+5 minutes"

# ============================================================================
# Logical Operations
# ============================================================================

OP_GET_ALL = "getAll"
OP_GET_LIST = "getList"
OP_GET_COUNT = "getCount"
OP_GET_BY_ID = "getById"
OP_GET_BY_SLUG = "getBySlug"

# Logical operations invalidated on every successful write
LIST_LEVEL_OPERATIONS = (OP_GET_ALL, OP_GET_LIST)
COUNT_LEVEL_OPERATIONS = (OP_GET_COUNT,)

# ============================================================================
# Provenance
# ============================================================================

PROVENANCE_FIELD = "_cache"

# ============================================================================
# Backends
# ============================================================================

DEFAULT_BACKEND = "default"
REDIS_SCAN_BATCH_SIZE = 500
