import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_refund_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

QR_VALID_MINUTES = 15
CHECKIN_BASE_URL = "/attendance/check"
LATE_THRESHOLD_MINUTES = 15
REQUIRE_START_TIME = False
CHECKIN_OPENS_BEFORE_MINUTES = 30
CHECKIN_CLOSES_AFTER_MINUTES = 120
COUNT_LATE_AS_ATTENDED = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
