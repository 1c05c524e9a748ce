from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchone
from .model import CheckInToken
from .repository import TokenRepository

_COLUMNS = "token_id, token, session_id, valid_from, valid_until, is_active, created_by"


def _to_token(r: dict) -> CheckInToken:
    return CheckInToken(
        token_id=int(r["token_id"]),
        token=r["token"],
        session_id=int(r["session_id"]),
        valid_from=r["valid_from"],
        valid_until=r["valid_until"],
        is_active=as_bool(r["is_active"]),
        created_by=int(r["created_by"]) if r.get("created_by") is not None else None,
    )


class MySQLTokenRepository(TokenRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_token(self, token: str) -> Optional[CheckInToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM checkin_tokens WHERE token=%s", (token,))
            r = fetchone(cur)
            return _to_token(r) if r else None

    def get_active_for_session(self, session_id: int) -> Optional[CheckInToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM checkin_tokens WHERE session_id=%s AND is_active=1",
                (int(session_id),),
            )
            r = fetchone(cur)
            return _to_token(r) if r else None

    def replace_active(
        self,
        *,
        session_id: int,
        token: str,
        valid_from: datetime,
        valid_until: datetime,
        created_by: Optional[int] = None,
    ) -> Optional[CheckInToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Serialises concurrent regenerations for the same session.
            cur.execute("SELECT session_id FROM program_sessions WHERE session_id=%s FOR UPDATE", (int(session_id),))
            if fetchone(cur) is None:
                return None

            cur.execute(
                "UPDATE checkin_tokens SET is_active=0 WHERE session_id=%s AND is_active=1",
                (int(session_id),),
            )
            cur.execute(
                """
                INSERT INTO checkin_tokens(token, session_id, valid_from, valid_until, is_active, created_by)
                VALUES(%s,%s,%s,%s,1,%s)
                """,
                (token, int(session_id), valid_from, valid_until, created_by),
            )
            return CheckInToken(
                token_id=int(cur.lastrowid),
                token=token,
                session_id=int(session_id),
                valid_from=valid_from,
                valid_until=valid_until,
                is_active=True,
                created_by=created_by,
            )
