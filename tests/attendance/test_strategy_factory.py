from datetime import date, datetime, time

from src.attendance_refund.attendance_refund.attendance.factory import AttendanceStrategyFactory
from src.attendance_refund.attendance_refund.attendance.strategies.base import minutes_after
from src.attendance_refund.attendance_refund.attendance.strategies.late_strategy import LateStrategy
from src.attendance_refund.attendance_refund.attendance.strategies.present_strategy import PresentStrategy
from src.attendance_refund.attendance_refund.core.enums import AttendanceStatus
from src.attendance_refund.attendance_refund.sessions.model import SessionOccurrence


def _session(start=time(19, 0)):
    return SessionOccurrence(session_id=1, program_id=1, session_no=1, session_date=date(2026, 3, 7), start_time=start)


def test_factory_checkin_present_just_before_threshold():
    now = datetime(2026, 3, 7, 19, 14, 59)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, session=_session())

    assert isinstance(strategy, PresentStrategy)


def test_factory_checkin_present_exactly_at_threshold():
    now = datetime(2026, 3, 7, 19, 15, 0)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, session=_session())

    assert isinstance(strategy, PresentStrategy)


def test_factory_checkin_late_after_threshold():
    now = datetime(2026, 3, 7, 19, 15, 1)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, session=_session())

    assert isinstance(strategy, LateStrategy)


def test_factory_respects_custom_threshold():
    now = datetime(2026, 3, 7, 19, 6, 0)

    strategy = AttendanceStrategyFactory(late_threshold_minutes=5).for_checkin(now=now, session=_session())

    assert isinstance(strategy, LateStrategy)


def test_factory_without_start_time_is_present():
    now = datetime(2026, 3, 7, 23, 59, 0)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, session=_session(start=None))

    assert isinstance(strategy, PresentStrategy)


def test_late_strategy_reports_minutes_late():
    now = datetime(2026, 3, 7, 19, 22, 30)

    decision = LateStrategy().decide_checkin(now=now, session=_session())

    assert decision.status == AttendanceStatus.LATE
    assert decision.late_minutes == 22


def test_minutes_after_is_negative_when_early():
    assert minutes_after(datetime(2026, 3, 7, 19, 0), datetime(2026, 3, 7, 18, 50)) == -10
