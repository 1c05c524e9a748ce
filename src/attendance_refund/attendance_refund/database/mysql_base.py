from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on error."""
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def parse_session_start(value: Any) -> Optional[time]:
    """program_sessions.start_time/end_time are stored as 'HH:MM' text; blank means unset."""
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        # TIME column read back by mysql-connector
        minutes = int(value.total_seconds()) // 60 % (24 * 60)
        return time(hour=minutes // 60, minute=minutes % 60)

    text = str(value).strip()
    if not text:
        return None
    return datetime.strptime(text[:5], "%H:%M").time()


def as_bool(value: Any) -> bool:
    """TINYINT(1) comes back as int."""
    return bool(int(value)) if value is not None else False
