from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import TokenError


@dataclass(frozen=True)
class CheckInToken:
    """QR 출석 토큰. 소지 자체가 출석 시도 권한 (신원 정보 없음)."""

    token_id: int
    token: str
    session_id: int
    valid_from: datetime
    valid_until: datetime
    is_active: bool = True
    created_by: Optional[int] = None

    def covers(self, now: datetime) -> bool:
        return self.valid_from <= now <= self.valid_until


@dataclass(frozen=True)
class TokenValidation:
    ok: bool
    session_id: Optional[int] = None
    token_id: Optional[int] = None
    error: Optional[TokenError] = None

    @classmethod
    def valid(cls, token: CheckInToken) -> "TokenValidation":
        return cls(ok=True, session_id=token.session_id, token_id=token.token_id)

    @classmethod
    def invalid(cls, error: TokenError) -> "TokenValidation":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class TokenStatus:
    """Read-model for the staff QR screen."""

    has_token: bool
    is_expired: bool
    expires_at: Optional[datetime]
    token: Optional[str]
