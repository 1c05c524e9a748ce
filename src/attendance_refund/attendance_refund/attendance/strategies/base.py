from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...sessions.model import SessionOccurrence


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    late_minutes: Optional[int] = None


def minutes_after(start: datetime, now: datetime) -> int:
    """Whole minutes from start to now; negative when early."""
    return int((now - start).total_seconds() // 60)


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide a check-in status."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, session: SessionOccurrence) -> StatusDecision:
        raise NotImplementedError
