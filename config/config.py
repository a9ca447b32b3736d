"""Settings shared by every environment; environment modules override."""
import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "school-roster-dev-key"

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "school_roster")

    # Dev helpers
    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Engine policy
    REFERENCE_TIMEZONE = os.environ.get("REFERENCE_TIMEZONE", "UTC")
    CREDENTIAL_TTL_DAYS = int(os.environ.get("CREDENTIAL_TTL_DAYS", "365"))
    PROMOTION_TERMINAL_RANK = int(os.environ.get("PROMOTION_TERMINAL_RANK", "14"))
    DEFAULT_TRANSPORT_SESSION = os.environ.get("DEFAULT_TRANSPORT_SESSION", "morning")


SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}

DEBUG = bool(int(os.environ.get("DEBUG", "1")))

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = Config.AUTO_SEED_DB
LOG_LEVEL = Config.LOG_LEVEL
REFERENCE_TIMEZONE = Config.REFERENCE_TIMEZONE
CREDENTIAL_TTL_DAYS = Config.CREDENTIAL_TTL_DAYS
PROMOTION_TERMINAL_RANK = Config.PROMOTION_TERMINAL_RANK
DEFAULT_TRANSPORT_SESSION = Config.DEFAULT_TRANSPORT_SESSION
