"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_QR_VALID_MINUTES = 15
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_CHECKIN_BASE_URL = "/attendance/check"

# 출석률 계산 시 지각도 출석으로 인정
DEFAULT_COUNT_LATE_AS_ATTENDED = True

TOKEN_BYTES = 16

# 출석 체크 가능 시간: 시작 30분 전부터 종료 시각까지 (종료 시각이 없으면 시작 후 2시간)
DEFAULT_CHECKIN_OPENS_BEFORE_MINUTES = 30
DEFAULT_CHECKIN_CLOSES_AFTER_MINUTES = 120
