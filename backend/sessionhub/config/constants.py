"""
Application-wide constants for session lifecycle tuning.

This file centralizes the magic numbers and key formats used by the
session orchestrator, the realtime gateway and the reconciler.

Note: Environment-dependent settings (DB, Redis, API keys) belong in settings.py.
This file is for operational parameters that rarely change between environments.
"""

# ==============================================================================
# SESSIONS
# ==============================================================================

# Upper bound (and default) page size for the list views
SESSION_LIST_MAX_LIMIT: int = 20

# Call id layout: session_<epoch millis>_<hex>
CALL_ID_PREFIX: str = "session"

# Random bytes appended to the call id (8 bytes = 64 bits of entropy)
CALL_ID_RANDOM_BYTES: int = 8

# How many fresh call ids to try if the unique index rejects one
CALL_ID_MAX_ATTEMPTS: int = 3

# Display name given to a session's chat channel
CHANNEL_NAME_TEMPLATE: str = "{problem} Session"

# ==============================================================================
# REALTIME PROVIDER (STREAM)
# ==============================================================================

# Stream call type used for all interview calls
STREAM_CALL_TYPE: str = "default"

# Stream channel type used for all session chats
STREAM_CHANNEL_TYPE: str = "messaging"

# Resource names used in partial-failure reports and the drift ledger
RESOURCE_CALL: str = "call"
RESOURCE_CHANNEL: str = "channel"
RESOURCE_CHANNEL_MEMBER: str = "channel_member"

# ==============================================================================
# DRIFT LEDGER / RECONCILER
# ==============================================================================

# Redis hash holding one entry per session in a partial state
DRIFT_LEDGER_KEY: str = "sessions:drift"

# Max ledger entries handled per reconciler pass
RECONCILE_BATCH_SIZE: int = 50

# ==============================================================================
# DATABASE
# ==============================================================================

# Database connection pool size
DB_POOL_SIZE: int = 10

# Maximum overflow connections beyond pool size
DB_POOL_MAX_OVERFLOW: int = 20
