import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

EDIT_WINDOW_HOURS = 24
STRICT_STATUS_VALIDATION = True
CSV_ENCODING = "utf-8"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "loggers": {
        "school_attendance": {"level": "WARNING"},
    },
}
