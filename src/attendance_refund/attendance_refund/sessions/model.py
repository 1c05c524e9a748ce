from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple


@dataclass(frozen=True)
class SessionOccurrence:
    """프로그램 회차 (정기 모임의 한 번)."""

    session_id: int
    program_id: int
    session_no: int
    session_date: date
    start_time: Optional[time] = None
    title: Optional[str] = None
    end_time: Optional[time] = None

    @property
    def scheduled_start(self) -> Optional[datetime]:
        if self.start_time is None:
            return None
        return datetime.combine(self.session_date, self.start_time)

    @property
    def scheduled_end(self) -> Optional[datetime]:
        if self.start_time is None or self.end_time is None:
            return None
        return datetime.combine(self.session_date, self.end_time)

    def check_in_window(
        self, *, opens_before_minutes: int, closes_after_minutes: int
    ) -> Optional[Tuple[datetime, datetime]]:
        """(opens, closes), both inclusive. None when there is no start time.

        Without an end time the window closes `closes_after_minutes` after the start.
        """
        start = self.scheduled_start
        if start is None:
            return None
        end = self.scheduled_end or start + timedelta(minutes=closes_after_minutes)
        return start - timedelta(minutes=opens_before_minutes), end
