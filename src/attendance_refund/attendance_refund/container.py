from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceRecorder
from .core.constants import (
    DEFAULT_CHECKIN_BASE_URL,
    DEFAULT_CHECKIN_CLOSES_AFTER_MINUTES,
    DEFAULT_CHECKIN_OPENS_BEFORE_MINUTES,
    DEFAULT_COUNT_LATE_AS_ATTENDED,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_QR_VALID_MINUTES,
)
from .database.connection import DBConfig, DatabaseConnection
from .participants.mysql_participant_repository import MySQLParticipantRepository
from .participants.repository import ParticipantRepository
from .refunds.mysql_settlement_repository import MySQLSettlementRepository
from .refunds.repository import SettlementRepository
from .refunds.service import SettlementService
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .tokens.mysql_token_repository import MySQLTokenRepository
from .tokens.repository import TokenRepository
from .tokens.service import TokenStore


@dataclass(frozen=True)
class Container:
    sessions_repo: SessionRepository
    participants_repo: ParticipantRepository
    tokens_repo: TokenRepository
    attendance_repo: AttendanceRepository
    settlements_repo: SettlementRepository

    token_store: TokenStore
    attendance_recorder: AttendanceRecorder
    settlement_service: SettlementService


def wire(
    *,
    sessions_repo: SessionRepository,
    participants_repo: ParticipantRepository,
    tokens_repo: TokenRepository,
    attendance_repo: AttendanceRepository,
    settlements_repo: SettlementRepository,
    qr_valid_minutes: int = DEFAULT_QR_VALID_MINUTES,
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
    require_start_time: bool = False,
    checkin_opens_before_minutes: int = DEFAULT_CHECKIN_OPENS_BEFORE_MINUTES,
    checkin_closes_after_minutes: int = DEFAULT_CHECKIN_CLOSES_AFTER_MINUTES,
    count_late_as_attended: bool = DEFAULT_COUNT_LATE_AS_ATTENDED,
    checkin_base_url: str = DEFAULT_CHECKIN_BASE_URL,
) -> Container:
    """Build services on top of any repository implementations."""
    token_store = TokenStore(
        tokens_repo,
        default_valid_minutes=qr_valid_minutes,
        checkin_base_url=checkin_base_url,
    )
    attendance_recorder = AttendanceRecorder(
        attendance_repo,
        sessions_repo,
        participants_repo,
        token_store,
        strategy_factory=AttendanceStrategyFactory(late_threshold_minutes=int(late_threshold_minutes)),
        require_start_time=require_start_time,
        opens_before_minutes=checkin_opens_before_minutes,
        closes_after_minutes=checkin_closes_after_minutes,
    )
    settlement_service = SettlementService(
        settlements_repo,
        participants_repo,
        count_late_as_attended=count_late_as_attended,
    )

    return Container(
        sessions_repo=sessions_repo,
        participants_repo=participants_repo,
        tokens_repo=tokens_repo,
        attendance_repo=attendance_repo,
        settlements_repo=settlements_repo,
        token_store=token_store,
        attendance_recorder=attendance_recorder,
        settlement_service=settlement_service,
    )


def build_container(
    *,
    db_config: dict,
    qr_valid_minutes: int = DEFAULT_QR_VALID_MINUTES,
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
    require_start_time: bool = False,
    checkin_opens_before_minutes: int = DEFAULT_CHECKIN_OPENS_BEFORE_MINUTES,
    checkin_closes_after_minutes: int = DEFAULT_CHECKIN_CLOSES_AFTER_MINUTES,
    count_late_as_attended: bool = DEFAULT_COUNT_LATE_AS_ATTENDED,
    checkin_base_url: str = DEFAULT_CHECKIN_BASE_URL,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        sessions_repo=MySQLSessionRepository(conn),
        participants_repo=MySQLParticipantRepository(conn),
        tokens_repo=MySQLTokenRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        settlements_repo=MySQLSettlementRepository(conn),
        qr_valid_minutes=qr_valid_minutes,
        late_threshold_minutes=late_threshold_minutes,
        require_start_time=require_start_time,
        checkin_opens_before_minutes=checkin_opens_before_minutes,
        checkin_closes_after_minutes=checkin_closes_after_minutes,
        count_late_as_attended=count_late_as_attended,
        checkin_base_url=checkin_base_url,
    )
