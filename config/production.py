import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_refund"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

QR_VALID_MINUTES = int(os.getenv("QR_VALID_MINUTES", "15"))
CHECKIN_BASE_URL = os.getenv("CHECKIN_BASE_URL", "/attendance/check")
LATE_THRESHOLD_MINUTES = int(os.getenv("LATE_THRESHOLD_MINUTES", "15"))
REQUIRE_START_TIME = bool(int(os.getenv("REQUIRE_START_TIME", "0")))
CHECKIN_OPENS_BEFORE_MINUTES = int(os.getenv("CHECKIN_OPENS_BEFORE_MINUTES", "30"))
CHECKIN_CLOSES_AFTER_MINUTES = int(os.getenv("CHECKIN_CLOSES_AFTER_MINUTES", "120"))
COUNT_LATE_AS_ATTENDED = bool(int(os.getenv("COUNT_LATE_AS_ATTENDED", "1")))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
