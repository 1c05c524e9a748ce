from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import MembershipStatus


@dataclass(frozen=True)
class Participant:
    """프로그램 참가자. 신청이 승인되면 생성된다."""

    participant_id: int
    program_id: int
    user_id: int
    status: MembershipStatus = MembershipStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE
