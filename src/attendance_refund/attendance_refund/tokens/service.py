from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional
from urllib.parse import urlencode

from loguru import logger

from ..common.datetime_utils import now_local
from ..common.validators import require_positive_int
from ..core.constants import DEFAULT_CHECKIN_BASE_URL, DEFAULT_QR_VALID_MINUTES, TOKEN_BYTES
from ..core.enums import TokenError
from ..core.exceptions import ValidationError
from .model import CheckInToken, TokenStatus, TokenValidation
from .repository import TokenRepository


class TokenStore:
    """Issues and validates short-lived QR check-in tokens.

    At most one token per session occurrence is active. Issuing a new one
    deactivates the previous token instead of deleting it, so old QR codes
    stop working immediately while the audit trail survives.
    """

    def __init__(
        self,
        tokens: TokenRepository,
        *,
        default_valid_minutes: int = DEFAULT_QR_VALID_MINUTES,
        checkin_base_url: str = DEFAULT_CHECKIN_BASE_URL,
        clock: Callable[[], datetime] = now_local,
    ):
        self._tokens = tokens
        self._default_valid_minutes = int(default_valid_minutes)
        self._checkin_base_url = checkin_base_url
        self._clock = clock

    @staticmethod
    def _new_token() -> str:
        return secrets.token_urlsafe(TOKEN_BYTES)

    def issue(
        self,
        session_id: int,
        valid_minutes: Optional[int] = None,
        *,
        created_by: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> CheckInToken:
        minutes = require_positive_int(
            self._default_valid_minutes if valid_minutes is None else valid_minutes,
            "validMinutes",
        )
        now = now or self._clock()

        issued = self._tokens.replace_active(
            session_id=int(session_id),
            token=self._new_token(),
            valid_from=now,
            valid_until=now + timedelta(minutes=minutes),
            created_by=created_by,
        )
        if issued is None:
            raise ValidationError("세션을 찾을 수 없습니다")

        logger.info(
            "Issued check-in token #{} for session {} (valid until {})",
            issued.token_id,
            issued.session_id,
            issued.valid_until.isoformat(),
        )
        return issued

    def validate(self, token: str, *, now: Optional[datetime] = None) -> TokenValidation:
        now = now or self._clock()
        found = self._tokens.get_by_token((token or "").strip())
        if found is None:
            return TokenValidation.invalid(TokenError.NOT_FOUND)
        if not found.is_active:
            return TokenValidation.invalid(TokenError.INACTIVE)
        if not found.covers(now):
            return TokenValidation.invalid(TokenError.OUT_OF_WINDOW)
        return TokenValidation.valid(found)

    def status(self, session_id: int, *, now: Optional[datetime] = None) -> TokenStatus:
        now = now or self._clock()
        active = self._tokens.get_active_for_session(int(session_id))
        if active is None:
            return TokenStatus(has_token=False, is_expired=True, expires_at=None, token=None)

        expired = now > active.valid_until
        return TokenStatus(
            has_token=True,
            is_expired=expired,
            expires_at=active.valid_until,
            token=None if expired else active.token,
        )

    def check_in_url(self, token: str) -> str:
        return f"{self._checkin_base_url}?{urlencode({'token': token})}"
