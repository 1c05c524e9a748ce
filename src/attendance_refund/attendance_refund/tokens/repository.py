from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import CheckInToken


class TokenRepository(Protocol):
    def get_by_token(self, token: str) -> Optional[CheckInToken]:
        raise NotImplementedError

    def get_active_for_session(self, session_id: int) -> Optional[CheckInToken]:
        raise NotImplementedError

    def replace_active(
        self,
        *,
        session_id: int,
        token: str,
        valid_from: datetime,
        valid_until: datetime,
        created_by: Optional[int] = None,
    ) -> Optional[CheckInToken]:
        """Deactivate the session's active token and insert a new one, atomically.

        Returns None when the session does not exist.
        """

        raise NotImplementedError
