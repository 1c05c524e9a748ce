from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import DepositSetting, ParticipantSettlementFacts, SessionReportFacts


class SettlementRepository(Protocol):
    def get_deposit_setting(self, program_id: int) -> Optional[DepositSetting]:
        raise NotImplementedError

    def get_participant_facts(
        self,
        program_id: int,
        participant_id: int,
        *,
        attended_statuses: Collection[AttendanceStatus],
    ) -> Optional[ParticipantSettlementFacts]:
        raise NotImplementedError

    def list_participant_facts(
        self,
        program_id: int,
        *,
        attended_statuses: Collection[AttendanceStatus],
    ) -> Sequence[ParticipantSettlementFacts]:
        raise NotImplementedError

    def list_session_facts(
        self,
        program_id: int,
        participant_id: int,
        *,
        attended_statuses: Collection[AttendanceStatus],
        held_until: Optional[date] = None,
    ) -> Sequence[SessionReportFacts]:
        """One row per session held up to `held_until`, ordered by session number."""

        raise NotImplementedError
