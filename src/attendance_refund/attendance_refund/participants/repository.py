from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Participant


class ParticipantRepository(Protocol):
    def get_by_id(self, participant_id: int) -> Optional[Participant]:
        raise NotImplementedError

    def get_for_program_and_user(self, *, program_id: int, user_id: int) -> Optional[Participant]:
        raise NotImplementedError

    def list_for_program(self, program_id: int) -> Sequence[Participant]:
        raise NotImplementedError
