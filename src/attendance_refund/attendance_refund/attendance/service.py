from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional

from loguru import logger

from ..common.datetime_utils import now_local, percent
from ..core.constants import DEFAULT_CHECKIN_CLOSES_AFTER_MINUTES, DEFAULT_CHECKIN_OPENS_BEFORE_MINUTES
from ..core.enums import AttendanceStatus, CheckInError, CheckInMethod, TokenError
from ..core.exceptions import ValidationError
from ..participants.model import Participant
from ..participants.repository import ParticipantRepository
from ..sessions.model import SessionOccurrence
from ..sessions.repository import SessionRepository
from ..tokens.service import TokenStore
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, CheckInOutcome, ParticipantAttendance, SessionAttendanceSummary
from .repository import AttendanceRepository


def check_in_message(status: AttendanceStatus, late_minutes: Optional[int] = None) -> str:
    if status == AttendanceStatus.PRESENT:
        return "출석이 완료되었습니다! 🎉"
    if status == AttendanceStatus.LATE:
        if late_minutes is not None:
            return f"지각 처리되었습니다 ({late_minutes}분 늦음)"
        return "지각 처리되었습니다"
    if status == AttendanceStatus.ABSENT:
        return "결석 처리됩니다"
    return "출석 처리되었습니다"


class AttendanceRecorder:
    """Records one attendance outcome per (session, participant).

    Both entry points (QR token and direct session/participant) go through
    `_record`, so classification and idempotency cannot drift apart. Expected
    failures come back as `CheckInOutcome(ok=False, error=...)`.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        sessions: SessionRepository,
        participants: ParticipantRepository,
        tokens: TokenStore,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        require_start_time: bool = False,
        opens_before_minutes: int = DEFAULT_CHECKIN_OPENS_BEFORE_MINUTES,
        closes_after_minutes: int = DEFAULT_CHECKIN_CLOSES_AFTER_MINUTES,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._sessions = sessions
        self._participants = participants
        self._tokens = tokens
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._require_start_time = bool(require_start_time)
        self._opens_before_minutes = int(opens_before_minutes)
        self._closes_after_minutes = int(closes_after_minutes)
        self._clock = clock

    def check_in(
        self,
        session_id: int,
        participant_id: int,
        *,
        now: Optional[datetime] = None,
        method: CheckInMethod = CheckInMethod.MANUAL,
        token_id: Optional[int] = None,
    ) -> CheckInOutcome:
        now = now or self._clock()

        session = self._sessions.get_by_id(int(session_id))
        if session is None:
            return self._reject(CheckInError.SESSION_NOT_FOUND, session_id=int(session_id))

        participant = self._participants.get_by_id(int(participant_id))
        if participant is not None and participant.program_id != session.program_id:
            participant = None

        return self._record(session, participant, now=now, method=method, token_id=token_id)

    def check_in_with_token(self, token: str, user_id: int, *, now: Optional[datetime] = None) -> CheckInOutcome:
        now = now or self._clock()

        validation = self._tokens.validate(token, now=now)
        if not validation.ok:
            error = CheckInError.INVALID_TOKEN if validation.error == TokenError.NOT_FOUND else CheckInError.EXPIRED_TOKEN
            return self._reject(error)

        session = self._sessions.get_by_id(int(validation.session_id))
        if session is None:
            return self._reject(CheckInError.SESSION_NOT_FOUND, session_id=validation.session_id)

        participant = self._participants.get_for_program_and_user(program_id=session.program_id, user_id=int(user_id))
        return self._record(session, participant, now=now, method=CheckInMethod.QR, token_id=validation.token_id)

    def _reject(self, error: CheckInError, *, session_id: Optional[int] = None) -> CheckInOutcome:
        logger.warning("Check-in rejected: {} (session={})", error.value, session_id)
        return CheckInOutcome.failed(error, session_id=session_id)

    def _record(
        self,
        session: SessionOccurrence,
        participant: Optional[Participant],
        *,
        now: datetime,
        method: CheckInMethod,
        token_id: Optional[int],
    ) -> CheckInOutcome:
        if participant is None:
            return self._reject(CheckInError.NOT_PARTICIPANT, session_id=session.session_id)
        if not participant.is_active:
            return self._reject(CheckInError.PARTICIPANT_INACTIVE, session_id=session.session_id)

        existing = self._attendance.get_for_session_and_participant(session.session_id, participant.participant_id)
        if existing and existing.status.counts_as_checked_in:
            return self._already(existing)

        if session.start_time is None and self._require_start_time:
            return self._reject(CheckInError.START_TIME_MISSING, session_id=session.session_id)

        window = session.check_in_window(
            opens_before_minutes=self._opens_before_minutes,
            closes_after_minutes=self._closes_after_minutes,
        )
        if window is not None and not (window[0] <= now <= window[1]):
            return self._reject(CheckInError.OUTSIDE_CHECKIN_WINDOW, session_id=session.session_id)

        strategy = self._factory.for_checkin(now=now, session=session)
        decision = strategy.decide_checkin(now=now, session=session)

        write = self._attendance.upsert_check_in(
            session_id=session.session_id,
            participant_id=participant.participant_id,
            status=decision.status,
            checked_at=now,
            method=method,
            token_id=token_id,
        )
        if not write.applied:
            # Lost a race against a concurrent scan of the same participant.
            return self._already(write.record)

        logger.info(
            "Check-in recorded: session={} participant={} status={} method={}",
            session.session_id,
            participant.participant_id,
            decision.status.value,
            method.value,
        )
        return CheckInOutcome(
            ok=True,
            session_id=session.session_id,
            participant_id=participant.participant_id,
            status=decision.status,
            already_checked_in=False,
            late_minutes=decision.late_minutes,
            message=check_in_message(decision.status, decision.late_minutes),
        )

    @staticmethod
    def _already(record: AttendanceRecord) -> CheckInOutcome:
        return CheckInOutcome(
            ok=True,
            session_id=record.session_id,
            participant_id=record.participant_id,
            status=record.status,
            already_checked_in=True,
            message="이미 출석 처리되었습니다",
        )

    def mark_manually(
        self,
        session_id: int,
        participant_id: int,
        status: AttendanceStatus,
        *,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Staff correction; overwrites whatever is stored."""
        now = now or self._clock()

        session = self._sessions.get_by_id(int(session_id))
        if session is None:
            raise ValidationError("세션을 찾을 수 없습니다")
        participant = self._participants.get_by_id(int(participant_id))
        if participant is None or participant.program_id != session.program_id:
            raise ValidationError("참가자를 찾을 수 없습니다")

        record = self._attendance.upsert_manual(
            session_id=session.session_id,
            participant_id=participant.participant_id,
            status=status,
            checked_at=now if status.counts_as_checked_in else None,
            note=(note or "").strip() or None,
        )
        logger.info(
            "Attendance corrected: session={} participant={} status={}",
            session.session_id,
            participant.participant_id,
            status.value,
        )
        return record

    def attendance_for_user(self, program_id: int, user_id: int) -> List[ParticipantAttendance]:
        """The user's own records in a program, by session number. Empty for non-participants."""
        participant = self._participants.get_for_program_and_user(program_id=int(program_id), user_id=int(user_id))
        if participant is None:
            return []

        sessions = {s.session_id: s for s in self._sessions.list_for_program(participant.program_id)}
        rows = [
            ParticipantAttendance(
                session_id=r.session_id,
                session_no=sessions[r.session_id].session_no,
                title=sessions[r.session_id].title,
                session_date=sessions[r.session_id].session_date,
                status=r.status,
                checked_at=r.checked_at,
            )
            for r in self._attendance.list_for_participant(participant.participant_id)
            if r.session_id in sessions
        ]
        return sorted(rows, key=lambda a: a.session_no)

    def session_summary(self, session_id: int) -> SessionAttendanceSummary:
        """Roster view of one session.

        `attendance_rate` counts EXCUSED as attended, unlike refund settlement,
        which only counts PRESENT (and LATE when configured).
        """
        session = self._sessions.get_by_id(int(session_id))
        if session is None:
            raise ValidationError("세션을 찾을 수 없습니다")

        participants = self._participants.list_for_program(session.program_id)
        by_participant = {r.participant_id: r.status for r in self._attendance.list_for_session(session.session_id)}

        counts = {s: 0 for s in AttendanceStatus}
        for p in participants:
            counts[by_participant.get(p.participant_id, AttendanceStatus.ABSENT)] += 1

        total = len(participants)
        attended = counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE] + counts[AttendanceStatus.EXCUSED]
        return SessionAttendanceSummary(
            session_id=session.session_id,
            total=total,
            present=counts[AttendanceStatus.PRESENT],
            late=counts[AttendanceStatus.LATE],
            absent=counts[AttendanceStatus.ABSENT],
            excused=counts[AttendanceStatus.EXCUSED],
            attendance_rate=percent(attended, total),
        )
