"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

CREDENTIAL_TTL_DAYS = 365
CREDENTIAL_TOKEN_BYTES = 16

DEFAULT_REFERENCE_TIMEZONE = "UTC"
DEFAULT_TRANSPORT_SESSION = "morning"

# Grade ladder used to derive a class's promotion rank from its grade label.
GRADE_ORDER = {
    "Nursery": 0,
    "LKG": 1,
    "UKG": 2,
    "1": 3,
    "2": 4,
    "3": 5,
    "4": 6,
    "5": 7,
    "6": 8,
    "7": 9,
    "8": 10,
    "9": 11,
    "10": 12,
    "11": 13,
    "12": 14,
}
PROMOTION_TERMINAL_RANK = GRADE_ORDER["12"]

SCAN_HISTORY_LIMIT = 50
SCAN_HISTORY_MAX = 200
