import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_roster_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

REFERENCE_TIMEZONE = "UTC"
CREDENTIAL_TTL_DAYS = 365
PROMOTION_TERMINAL_RANK = 14
DEFAULT_TRANSPORT_SESSION = "morning"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
