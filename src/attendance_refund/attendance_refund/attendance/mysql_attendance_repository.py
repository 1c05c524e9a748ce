from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, CheckInWrite
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, session_id, participant_id, status, checked_at, method, token_id, note"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        session_id=int(r["session_id"]),
        participant_id=int(r["participant_id"]),
        status=AttendanceStatus(r["status"]),
        checked_at=r.get("checked_at"),
        method=CheckInMethod(r["method"]),
        token_id=int(r["token_id"]) if r.get("token_id") is not None else None,
        note=r.get("note"),
    )


def _select_pair(cur, session_id: int, participant_id: int) -> Optional[AttendanceRecord]:
    cur.execute(
        f"SELECT {_COLUMNS} FROM attendance_records WHERE session_id=%s AND participant_id=%s",
        (int(session_id), int(participant_id)),
    )
    r = fetchone(cur)
    return _to_record(r) if r else None


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_session_and_participant(self, session_id: int, participant_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return _select_pair(cur, session_id, participant_id)

    def upsert_check_in(
        self,
        *,
        session_id: int,
        participant_id: int,
        status: AttendanceStatus,
        checked_at: datetime,
        method: CheckInMethod,
        token_id: Optional[int] = None,
    ) -> CheckInWrite:
        params = (status.value, checked_at, method.value, token_id, int(session_id), int(participant_id))
        with db_cursor(self._conn_factory) as (_, cur):
            # The unique key turns a concurrent duplicate insert into a no-op.
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(status, checked_at, method, token_id, session_id, participant_id)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                params,
            )
            applied = cur.rowcount == 1
            if not applied:
                # Only ABSENT/EXCUSED rows may be promoted by a scan.
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET status=%s, checked_at=%s, method=%s, token_id=%s
                    WHERE session_id=%s AND participant_id=%s AND status NOT IN ('PRESENT', 'LATE')
                    """,
                    params,
                )
                applied = cur.rowcount > 0

            record = _select_pair(cur, session_id, participant_id)
            if record is None:
                raise ValidationError("출석 기록을 저장하지 못했습니다")
            return CheckInWrite(record=record, applied=applied)

    def upsert_manual(
        self,
        *,
        session_id: int,
        participant_id: int,
        status: AttendanceStatus,
        checked_at: Optional[datetime],
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(session_id, participant_id, status, checked_at, method, note)
                VALUES(%s,%s,%s,%s,'MANUAL',%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status), checked_at=VALUES(checked_at), method='MANUAL', note=VALUES(note)
                """,
                (int(session_id), int(participant_id), status.value, checked_at, note),
            )
            record = _select_pair(cur, session_id, participant_id)
            if record is None:
                raise ValidationError("출석 기록을 저장하지 못했습니다")
            return record

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE session_id=%s ORDER BY participant_id",
                (int(session_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_participant(self, participant_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE participant_id=%s ORDER BY session_id",
                (int(participant_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]
