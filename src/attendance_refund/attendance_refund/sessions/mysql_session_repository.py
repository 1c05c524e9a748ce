from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, parse_session_start
from .model import SessionOccurrence
from .repository import SessionRepository

_COLUMNS = "session_id, program_id, session_no, title, session_date, start_time, end_time"


def _to_session(r: dict) -> SessionOccurrence:
    return SessionOccurrence(
        session_id=int(r["session_id"]),
        program_id=int(r["program_id"]),
        session_no=int(r["session_no"]),
        session_date=r["session_date"],
        start_time=parse_session_start(r.get("start_time")),
        title=r.get("title"),
        end_time=parse_session_start(r.get("end_time")),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[SessionOccurrence]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM program_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_for_program(self, program_id: int) -> Sequence[SessionOccurrence]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM program_sessions WHERE program_id=%s ORDER BY session_no",
                (int(program_id),),
            )
            return [_to_session(r) for r in fetchall(cur)]
