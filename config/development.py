import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_refund"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# QR check-in
QR_VALID_MINUTES = int(os.getenv("QR_VALID_MINUTES", "15"))
CHECKIN_BASE_URL = os.getenv("CHECKIN_BASE_URL", "/attendance/check")

# Check-ins more than this many minutes after the session start are LATE
LATE_THRESHOLD_MINUTES = int(os.getenv("LATE_THRESHOLD_MINUTES", "15"))
# Reject check-ins for sessions without a start time instead of recording PRESENT
REQUIRE_START_TIME = bool(int(os.getenv("REQUIRE_START_TIME", "0")))

# Check-in window: from this many minutes before the start until the end time
# (or this many minutes after the start when the session has no end time)
CHECKIN_OPENS_BEFORE_MINUTES = int(os.getenv("CHECKIN_OPENS_BEFORE_MINUTES", "30"))
CHECKIN_CLOSES_AFTER_MINUTES = int(os.getenv("CHECKIN_CLOSES_AFTER_MINUTES", "120"))

COUNT_LATE_AS_ATTENDED = bool(int(os.getenv("COUNT_LATE_AS_ATTENDED", "1")))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
