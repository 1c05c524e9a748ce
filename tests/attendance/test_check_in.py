from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from src.attendance_refund.attendance_refund.core.enums import (
    AttendanceStatus,
    CheckInError,
    CheckInMethod,
    MembershipStatus,
)
from src.attendance_refund.attendance_refund.core.exceptions import ValidationError


def test_first_check_in_records_present(world, fixed_now):
    recorder = world.build().attendance_recorder

    outcome = recorder.check_in(1, 1, now=fixed_now + timedelta(minutes=3))

    assert outcome.ok
    assert outcome.status == AttendanceStatus.PRESENT
    assert outcome.already_checked_in is False
    assert outcome.message.startswith("출석이 완료되었습니다")
    [record] = world.records()
    assert record.status == AttendanceStatus.PRESENT
    assert record.method == CheckInMethod.MANUAL


def test_check_in_after_threshold_is_late(world, fixed_now):
    recorder = world.build().attendance_recorder

    outcome = recorder.check_in(1, 1, now=fixed_now + timedelta(minutes=15, seconds=1))

    assert outcome.status == AttendanceStatus.LATE
    assert outcome.late_minutes == 15
    assert "15분 늦음" in outcome.message


def test_check_in_exactly_at_threshold_is_present(world, fixed_now):
    recorder = world.build().attendance_recorder

    outcome = recorder.check_in(1, 1, now=fixed_now + timedelta(minutes=15))

    assert outcome.status == AttendanceStatus.PRESENT


def test_repeated_check_in_is_idempotent(world, fixed_now):
    recorder = world.build().attendance_recorder

    first = recorder.check_in(1, 1, now=fixed_now + timedelta(minutes=20))
    second = recorder.check_in(1, 1, now=fixed_now + timedelta(minutes=25))

    assert (first.status, first.already_checked_in) == (AttendanceStatus.LATE, False)
    assert (second.status, second.already_checked_in) == (AttendanceStatus.LATE, True)
    assert second.message == "이미 출석 처리되었습니다"
    assert len(world.records()) == 1
    assert world.attendance.writes == 1


def test_already_present_record_is_not_touched(world, fixed_now):
    recorder = world.build().attendance_recorder
    recorder.mark_manually(1, 1, AttendanceStatus.PRESENT, now=fixed_now)
    writes_before = world.attendance.writes

    outcome = recorder.check_in(1, 1, now=fixed_now + timedelta(hours=1))

    assert outcome.ok and outcome.already_checked_in
    assert outcome.status == AttendanceStatus.PRESENT
    assert world.attendance.writes == writes_before
    assert len(world.records()) == 1


def test_absent_row_is_promoted_by_check_in(world, fixed_now):
    recorder = world.build().attendance_recorder
    recorder.mark_manually(1, 1, AttendanceStatus.ABSENT, now=fixed_now)

    outcome = recorder.check_in(1, 1, now=fixed_now + timedelta(minutes=1))

    assert outcome.status == AttendanceStatus.PRESENT
    assert outcome.already_checked_in is False
    assert world.records()[0].status == AttendanceStatus.PRESENT


def test_lost_race_reports_stored_status(world, fixed_now):
    recorder = world.build().attendance_recorder
    original = world.attendance.get_for_session_and_participant

    # Another scan lands between the read and the conditional write.
    def stale_read(session_id, participant_id):
        world.attendance.get_for_session_and_participant = original
        world.attendance.upsert_check_in(
            session_id=session_id,
            participant_id=participant_id,
            status=AttendanceStatus.PRESENT,
            checked_at=fixed_now,
            method=CheckInMethod.QR,
        )
        return None

    world.attendance.get_for_session_and_participant = stale_read

    outcome = recorder.check_in(1, 1, now=fixed_now + timedelta(minutes=30))

    assert outcome.ok and outcome.already_checked_in
    assert outcome.status == AttendanceStatus.PRESENT
    assert len(world.records()) == 1


def test_unknown_session(world, fixed_now):
    outcome = world.build().attendance_recorder.check_in(42, 1, now=fixed_now)

    assert not outcome.ok
    assert outcome.error == CheckInError.SESSION_NOT_FOUND


def test_participant_of_other_program_is_rejected(world, fixed_now):
    world.add_participant(2, program_id=2)

    outcome = world.build().attendance_recorder.check_in(1, 2, now=fixed_now)

    assert outcome.error == CheckInError.NOT_PARTICIPANT
    assert world.records() == []


@pytest.mark.parametrize("status", [MembershipStatus.INACTIVE, MembershipStatus.WITHDRAWN])
def test_inactive_participant_is_rejected(world, fixed_now, status):
    world.add_participant(3, status=status)

    outcome = world.build().attendance_recorder.check_in(1, 3, now=fixed_now)

    assert outcome.error == CheckInError.PARTICIPANT_INACTIVE
    assert outcome.message


def test_missing_start_time_records_present_by_default(world, fixed_now):
    world.add_session(2, session_no=2, start=None)

    outcome = world.build().attendance_recorder.check_in(2, 1, now=fixed_now + timedelta(hours=3))

    assert outcome.ok
    assert outcome.status == AttendanceStatus.PRESENT


def test_missing_start_time_rejected_when_required(world, fixed_now):
    world.add_session(2, session_no=2, start=None)

    outcome = world.build(require_start_time=True).attendance_recorder.check_in(2, 1, now=fixed_now)

    assert outcome.error == CheckInError.START_TIME_MISSING
    assert world.records() == []


def test_token_check_in_uses_qr_method(world, fixed_now):
    container = world.build()
    token = container.token_store.issue(1, now=fixed_now)

    outcome = container.attendance_recorder.check_in_with_token(token.token, 101, now=fixed_now + timedelta(minutes=2))

    assert outcome.ok
    assert outcome.participant_id == 1
    [record] = world.records()
    assert record.method == CheckInMethod.QR
    assert record.token_id == token.token_id


def test_token_check_in_twice_is_idempotent(world, fixed_now):
    container = world.build()
    token = container.token_store.issue(1, now=fixed_now)

    container.attendance_recorder.check_in_with_token(token.token, 101, now=fixed_now)
    again = container.attendance_recorder.check_in_with_token(token.token, 101, now=fixed_now + timedelta(minutes=1))

    assert again.already_checked_in
    assert len(world.records()) == 1


def test_token_errors_map_to_check_in_errors(world, fixed_now):
    container = world.build()
    old = container.token_store.issue(1, 5, now=fixed_now)
    container.token_store.issue(1, 5, now=fixed_now)
    recorder = container.attendance_recorder

    assert recorder.check_in_with_token("bogus", 101, now=fixed_now).error == CheckInError.INVALID_TOKEN
    assert recorder.check_in_with_token(old.token, 101, now=fixed_now).error == CheckInError.EXPIRED_TOKEN

    current = container.token_store.status(1, now=fixed_now).token
    expired = recorder.check_in_with_token(current, 101, now=fixed_now + timedelta(minutes=6))
    assert expired.error == CheckInError.EXPIRED_TOKEN


def test_token_check_in_by_non_participant(world, fixed_now):
    container = world.build()
    token = container.token_store.issue(1, now=fixed_now)

    outcome = container.attendance_recorder.check_in_with_token(token.token, 555, now=fixed_now)

    assert outcome.error == CheckInError.NOT_PARTICIPANT


def test_mark_manually_overwrites_and_clears_checked_at(world, fixed_now):
    recorder = world.build().attendance_recorder
    recorder.check_in(1, 1, now=fixed_now)

    record = recorder.mark_manually(1, 1, AttendanceStatus.EXCUSED, note="  병가  ", now=fixed_now)

    assert record.status == AttendanceStatus.EXCUSED
    assert record.checked_at is None
    assert record.note == "병가"
    assert record.method == CheckInMethod.MANUAL


def test_mark_manually_validates_ids(world, fixed_now):
    world.add_participant(2, program_id=2)
    recorder = world.build().attendance_recorder

    with pytest.raises(ValidationError):
        recorder.mark_manually(99, 1, AttendanceStatus.PRESENT, now=fixed_now)
    with pytest.raises(ValidationError):
        recorder.mark_manually(1, 2, AttendanceStatus.PRESENT, now=fixed_now)


def test_session_summary_counts_missing_rows_as_absent(world, fixed_now):
    world.add_participant(2)
    world.add_participant(3)
    world.add_participant(4)
    recorder = world.build().attendance_recorder
    recorder.check_in(1, 1, now=fixed_now)
    recorder.check_in(1, 2, now=fixed_now + timedelta(minutes=30))
    recorder.mark_manually(1, 3, AttendanceStatus.EXCUSED, now=fixed_now)

    summary = recorder.session_summary(1)

    assert (summary.total, summary.present, summary.late, summary.excused, summary.absent) == (4, 1, 1, 1, 1)
    assert summary.attendance_rate == 75


@pytest.mark.parametrize(
    "offset,allowed",
    [
        (timedelta(minutes=-30), True),
        (timedelta(minutes=-31), False),
        (timedelta(hours=2), True),
        (timedelta(hours=2, minutes=1), False),
    ],
)
def test_check_in_window_without_end_time(world, fixed_now, offset, allowed):
    outcome = world.build().attendance_recorder.check_in(1, 1, now=fixed_now + offset)

    assert outcome.ok is allowed
    if not allowed:
        assert outcome.error == CheckInError.OUTSIDE_CHECKIN_WINDOW
        assert world.records() == []


def test_check_in_window_closes_at_end_time(world, fixed_now):
    world.add_session(2, session_no=2, start=time(19, 0), end=time(21, 0))
    recorder = world.build().attendance_recorder

    assert recorder.check_in(2, 1, now=fixed_now + timedelta(hours=1)).ok
    world.add_participant(2)
    late = recorder.check_in(2, 2, now=fixed_now + timedelta(hours=2, minutes=1))
    assert late.error == CheckInError.OUTSIDE_CHECKIN_WINDOW


def test_check_in_window_is_configurable(world, fixed_now):
    container = world.build(checkin_opens_before_minutes=60, checkin_closes_after_minutes=30)
    recorder = container.attendance_recorder

    assert recorder.check_in(1, 1, now=fixed_now - timedelta(minutes=45)).ok
    world.add_participant(2)
    assert recorder.check_in(1, 2, now=fixed_now + timedelta(minutes=31)).error == CheckInError.OUTSIDE_CHECKIN_WINDOW


def test_token_check_in_outside_window(world, fixed_now):
    container = world.build()
    token = container.token_store.issue(1, 300, now=fixed_now - timedelta(hours=2))

    outcome = container.attendance_recorder.check_in_with_token(token.token, 101, now=fixed_now - timedelta(hours=1))

    assert outcome.error == CheckInError.OUTSIDE_CHECKIN_WINDOW


def test_already_checked_in_is_reported_after_window_closes(world, fixed_now):
    recorder = world.build().attendance_recorder
    recorder.check_in(1, 1, now=fixed_now)

    outcome = recorder.check_in(1, 1, now=fixed_now + timedelta(hours=5))

    assert outcome.ok and outcome.already_checked_in


def test_attendance_for_user_lists_own_records_by_session_no(world, fixed_now):
    world.add_session(2, session_no=2, day=date(2026, 3, 14), title="2회차")
    world.add_session(3, program_id=2, session_no=1, day=date(2026, 3, 14))
    world.add_participant(2)
    recorder = world.build().attendance_recorder
    recorder.check_in(2, 1, now=fixed_now + timedelta(days=7, minutes=20))
    recorder.check_in(1, 1, now=fixed_now)
    recorder.check_in(1, 2, now=fixed_now)

    rows = recorder.attendance_for_user(1, 101)

    assert [(a.session_no, a.status) for a in rows] == [(1, AttendanceStatus.PRESENT), (2, AttendanceStatus.LATE)]
    assert rows[1].title == "2회차"
    assert rows[1].session_date == date(2026, 3, 14)


def test_attendance_for_non_participant_is_empty(world):
    assert world.build().attendance_recorder.attendance_for_user(1, 999) == []


def test_session_summary_rate_counts_excused(world, fixed_now):
    world.add_participant(2)
    recorder = world.build().attendance_recorder
    recorder.mark_manually(1, 1, AttendanceStatus.EXCUSED, now=fixed_now)

    summary = recorder.session_summary(1)

    assert (summary.excused, summary.absent, summary.attendance_rate) == (1, 1, 50)
