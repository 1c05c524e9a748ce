from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import MembershipStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Participant
from .repository import ParticipantRepository


def _to_participant(r: dict) -> Participant:
    return Participant(
        participant_id=int(r["participant_id"]),
        program_id=int(r["program_id"]),
        user_id=int(r["user_id"]),
        status=MembershipStatus(r["status"]),
    )


class MySQLParticipantRepository(ParticipantRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, participant_id: int) -> Optional[Participant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT participant_id, program_id, user_id, status FROM program_participants WHERE participant_id=%s",
                (int(participant_id),),
            )
            r = fetchone(cur)
            return _to_participant(r) if r else None

    def get_for_program_and_user(self, *, program_id: int, user_id: int) -> Optional[Participant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT participant_id, program_id, user_id, status
                FROM program_participants
                WHERE program_id=%s AND user_id=%s
                """,
                (int(program_id), int(user_id)),
            )
            r = fetchone(cur)
            return _to_participant(r) if r else None

    def list_for_program(self, program_id: int) -> Sequence[Participant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT participant_id, program_id, user_id, status
                FROM program_participants
                WHERE program_id=%s
                ORDER BY participant_id
                """,
                (int(program_id),),
            )
            return [_to_participant(r) for r in fetchall(cur)]
