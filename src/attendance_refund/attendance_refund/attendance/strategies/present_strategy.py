from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import SessionOccurrence
from .base import AttendanceStrategy, StatusDecision


class PresentStrategy(AttendanceStrategy):
    """On-time (or undeterminable) check-in."""

    def decide_checkin(self, *, now: datetime, session: SessionOccurrence) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
