import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance"),
    "connection_timeout": int(os.getenv("DB_TIMEOUT", "10")),
}

DEBUG = True

# If enabled, the app applies schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

EDIT_WINDOW_HOURS = int(os.getenv("EDIT_WINDOW_HOURS", "24"))
# False keeps the lenient behaviour: invalid statuses are dropped instead of rejecting the batch
STRICT_STATUS_VALIDATION = bool(int(os.getenv("STRICT_STATUS_VALIDATION", "1")))
CSV_ENCODING = os.getenv("CSV_ENCODING", "utf-8")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "loggers": {
        "school_attendance": {"handlers": ["console"], "level": "DEBUG", "propagate": False},
    },
}
