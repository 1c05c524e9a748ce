from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from .model import AttendanceRecord, CheckInWrite


class AttendanceRepository(Protocol):
    def get_for_session_and_participant(self, session_id: int, participant_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Insert-or-update keyed by (session_id, participant_id).

        Must be a single conditional write: a row already PRESENT/LATE is left
        untouched and returned with applied=False.
        """

        raise NotImplementedError

    def upsert_manual(
        self,
        *,
        session_id: int,
        participant_id: int,
        status: AttendanceStatus,
        checked_at: Optional[datetime],
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        """Staff correction: overwrite unconditionally with method MANUAL."""

        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_participant(self, participant_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
