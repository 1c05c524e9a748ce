from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import SessionOccurrence
from .base import AttendanceStrategy, StatusDecision, minutes_after


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, session: SessionOccurrence) -> StatusDecision:
        start = session.scheduled_start
        late = minutes_after(start, now) if start is not None else None
        return StatusDecision(status=AttendanceStatus.LATE, late_minutes=late)
