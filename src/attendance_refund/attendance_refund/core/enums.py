from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """사용자 역할 (권한 체크용)."""

    ADMIN = "ADMIN"
    STAFF = "STAFF"
    MEMBER = "MEMBER"


class AttendanceStatus(str, Enum):
    """출석 상태 (DB 저장값)."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"

    @property
    def counts_as_checked_in(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class CheckInMethod(str, Enum):
    QR = "QR"
    MANUAL = "MANUAL"


class MembershipStatus(str, Enum):
    """프로그램 참가자 상태. ACTIVE만 출석 체크 가능."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    WITHDRAWN = "WITHDRAWN"


class TokenError(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    OUT_OF_WINDOW = "OUT_OF_WINDOW"


class CheckInError(str, Enum):
    """Expected, user-facing check-in failures (returned, never raised)."""

    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    NOT_PARTICIPANT = "NOT_PARTICIPANT"
    PARTICIPANT_INACTIVE = "PARTICIPANT_INACTIVE"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    START_TIME_MISSING = "START_TIME_MISSING"
    OUTSIDE_CHECKIN_WINDOW = "OUTSIDE_CHECKIN_WINDOW"


class RefundPolicyType(str, Enum):
    ONE_TIME = "ONE_TIME"
    ATTENDANCE_ONLY = "ATTENDANCE_ONLY"
    ATTENDANCE_AND_REPORT = "ATTENDANCE_AND_REPORT"


class SessionRefundReason(str, Enum):
    QUALIFIED = "qualified"
    ABSENT = "absent"
    REPORT_MISSING = "report_missing"
    REPORT_REJECTED = "report_rejected"
    SURVEY_MISSING = "survey_missing"
