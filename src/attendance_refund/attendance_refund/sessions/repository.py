from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import SessionOccurrence


class SessionRepository(Protocol):
    """Read-only access to session occurrences (CRUD lives elsewhere)."""

    def get_by_id(self, session_id: int) -> Optional[SessionOccurrence]:
        raise NotImplementedError

    def list_for_program(self, program_id: int) -> Sequence[SessionOccurrence]:
        raise NotImplementedError
