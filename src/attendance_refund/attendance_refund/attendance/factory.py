from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from ..core.constants import DEFAULT_LATE_THRESHOLD_MINUTES
from ..sessions.model import SessionOccurrence
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules.

    A check-in exactly `late_threshold_minutes` after the scheduled start is
    still PRESENT; LATE starts strictly after the threshold.
    """

    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES

    def for_checkin(self, *, now: datetime, session: SessionOccurrence) -> AttendanceStrategy:
        start = session.scheduled_start
        if start is None:
            logger.warning(
                "Session {} has no start time; lateness cannot be determined, recording PRESENT",
                session.session_id,
            )
            return PresentStrategy()

        if now > start + timedelta(minutes=self.late_threshold_minutes):
            return LateStrategy()
        return PresentStrategy()
