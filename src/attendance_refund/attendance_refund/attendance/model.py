from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Union

from ..common.validators import require_non_empty, require_positive_int
from ..core.enums import AttendanceStatus, CheckInError, CheckInMethod
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceRecord:
    """출석 기록. (session_id, participant_id) 당 최대 1건."""

    attendance_id: int
    session_id: int
    participant_id: int
    status: AttendanceStatus
    checked_at: Optional[datetime]
    method: CheckInMethod
    token_id: Optional[int] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class CheckInWrite:
    """Result of a conditional upsert.

    applied=False means a PRESENT/LATE row was already there (e.g. a concurrent
    scan won) and `record` is that stored row.
    """

    record: AttendanceRecord
    applied: bool


CHECKIN_ERROR_MESSAGES = {
    CheckInError.INVALID_TOKEN: "유효하지 않은 QR 코드입니다. 새 코드를 받아주세요.",
    CheckInError.EXPIRED_TOKEN: "만료된 QR 코드입니다. 진행자에게 QR 재발급을 요청해주세요.",
    CheckInError.NOT_PARTICIPANT: "이 프로그램의 참가자가 아닙니다. 운영진에게 문의해주세요.",
    CheckInError.PARTICIPANT_INACTIVE: "참가 상태가 활성 상태가 아니어서 출석할 수 없습니다.",
    CheckInError.SESSION_NOT_FOUND: "세션을 찾을 수 없습니다.",
    CheckInError.START_TIME_MISSING: "세션 시작 시간이 등록되지 않아 출석을 처리할 수 없습니다.",
    CheckInError.OUTSIDE_CHECKIN_WINDOW: "출석 체크 가능 시간이 아닙니다.",
}


@dataclass(frozen=True)
class CheckInOutcome:
    ok: bool
    session_id: Optional[int] = None
    participant_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    already_checked_in: bool = False
    late_minutes: Optional[int] = None
    message: str = ""
    error: Optional[CheckInError] = None

    @classmethod
    def failed(cls, error: CheckInError, *, session_id: Optional[int] = None) -> "CheckInOutcome":
        return cls(ok=False, session_id=session_id, error=error, message=CHECKIN_ERROR_MESSAGES[error])


@dataclass(frozen=True)
class SessionAttendanceSummary:
    session_id: int
    total: int
    present: int
    late: int
    absent: int
    excused: int
    attendance_rate: int


@dataclass(frozen=True)
class ParticipantAttendance:
    """참가자 본인의 회차별 출석 (내 출석 현황)."""

    session_id: int
    session_no: int
    title: Optional[str]
    session_date: date
    status: AttendanceStatus
    checked_at: Optional[datetime]


# ---- request boundary -------------------------------------------------------


@dataclass(frozen=True)
class TokenCheckIn:
    token: str


@dataclass(frozen=True)
class DirectCheckIn:
    session_id: int
    participant_id: int


CheckInRequest = Union[TokenCheckIn, DirectCheckIn]


def parse_check_in_request(payload: Any) -> CheckInRequest:
    """Validate the JSON body of POST /attendance/check once, at the edge."""
    if not isinstance(payload, dict):
        raise ValidationError("요청 형식이 올바르지 않습니다")

    has_token = "token" in payload
    has_direct = "sessionOccurrenceId" in payload or "participantId" in payload
    if has_token and has_direct:
        raise ValidationError("token 또는 sessionOccurrenceId/participantId 중 하나만 보내주세요")

    if has_token:
        return TokenCheckIn(token=require_non_empty(payload.get("token"), "token"))
    if has_direct:
        return DirectCheckIn(
            session_id=require_positive_int(payload.get("sessionOccurrenceId"), "sessionOccurrenceId"),
            participant_id=require_positive_int(payload.get("participantId"), "participantId"),
        )
    raise ValidationError("QR 코드가 비어 있습니다")
