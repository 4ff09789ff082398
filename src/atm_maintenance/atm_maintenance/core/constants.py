"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Local key-value storage keys
LS_REPORTS_KEY = "atm_reports_data"
LS_USERS_KEY = "atm_users_data"
LS_CONFIG_KEY = "atm_remote_config"

# Remote collection names
REPORTS_COLLECTION = "reports"
USERS_COLLECTION = "users"

COLLECTION_KEYS = {
    REPORTS_COLLECTION: LS_REPORTS_KEY,
    USERS_COLLECTION: LS_USERS_KEY,
}

# Id prefixes assigned by the local store
LOCAL_ID_PREFIXES = {
    REPORTS_COLLECTION: "report",
    USERS_COLLECTION: "user",
}

# Firestore allows 500 operations per batch; stay below it.
DEFAULT_SYNC_BATCH_SIZE = 450

# Bound on the synchronous reads that precede a Firestore listener
DEFAULT_READ_TIMEOUT_SECONDS = 10.0

DEFAULT_POLL_INTERVAL_SECONDS = 1.0

DEFAULT_ADMIN_PAGE_SIZE = 20
DEFAULT_BANK_PAGE_SIZE = 24

# Photo slots shown by the report form (storage accepts any length)
PHOTO_SLOTS = 4

RECENT_MONTHS_IN_SUMMARY = 3
