from __future__ import annotations

from datetime import timedelta

import pytest

from src.attendance_refund.attendance_refund.core.enums import TokenError
from src.attendance_refund.attendance_refund.core.exceptions import ValidationError


def test_issue_sets_validity_window(world, fixed_now):
    store = world.build().token_store

    token = store.issue(1, 10, created_by=7, now=fixed_now)

    assert token.is_active
    assert token.valid_from == fixed_now
    assert token.valid_until == fixed_now + timedelta(minutes=10)
    assert token.created_by == 7


def test_issue_uses_configured_default_validity(world, fixed_now):
    store = world.build(qr_valid_minutes=20).token_store

    token = store.issue(1, now=fixed_now)

    assert token.valid_until - token.valid_from == timedelta(minutes=20)


def test_tokens_are_unique_opaque_strings(world, fixed_now):
    store = world.build().token_store

    a = store.issue(1, now=fixed_now)
    b = store.issue(1, now=fixed_now)

    assert a.token != b.token
    assert len(a.token) >= 16


@pytest.mark.parametrize("minutes", [0, -5, "abc", True])
def test_issue_rejects_non_positive_validity(world, fixed_now, minutes):
    store = world.build().token_store

    with pytest.raises(ValidationError):
        store.issue(1, minutes, now=fixed_now)


def test_issue_for_unknown_session_fails(world, fixed_now):
    store = world.build().token_store

    with pytest.raises(ValidationError):
        store.issue(999, now=fixed_now)


def test_reissue_deactivates_previous_token(world, fixed_now):
    store = world.build().token_store

    first = store.issue(1, now=fixed_now)
    second = store.issue(1, now=fixed_now + timedelta(minutes=1))

    assert store.validate(first.token, now=fixed_now + timedelta(minutes=2)).error == TokenError.INACTIVE
    assert store.validate(second.token, now=fixed_now + timedelta(minutes=2)).ok
    active = [t for t in world.tokens.items.values() if t.is_active]
    assert [t.token_id for t in active] == [second.token_id]


def test_validate_unknown_token(world, fixed_now):
    store = world.build().token_store

    result = store.validate("nope", now=fixed_now)

    assert not result.ok
    assert result.error == TokenError.NOT_FOUND


def test_validate_window_is_inclusive(world, fixed_now):
    store = world.build().token_store
    token = store.issue(1, 15, now=fixed_now)

    assert store.validate(token.token, now=fixed_now).ok
    assert store.validate(token.token, now=fixed_now + timedelta(minutes=15)).ok

    late = store.validate(token.token, now=fixed_now + timedelta(minutes=15, seconds=1))
    assert late.error == TokenError.OUT_OF_WINDOW
    early = store.validate(token.token, now=fixed_now - timedelta(seconds=1))
    assert early.error == TokenError.OUT_OF_WINDOW


def test_validate_returns_session_and_token_id(world, fixed_now):
    store = world.build().token_store
    token = store.issue(1, now=fixed_now)

    result = store.validate(token.token, now=fixed_now)

    assert result.ok
    assert result.session_id == 1
    assert result.token_id == token.token_id


def test_status_hides_expired_token(world, fixed_now):
    store = world.build().token_store
    assert store.status(1, now=fixed_now).has_token is False

    token = store.issue(1, 5, now=fixed_now)
    live = store.status(1, now=fixed_now + timedelta(minutes=1))
    assert live.has_token and not live.is_expired
    assert live.token == token.token
    assert live.expires_at == token.valid_until

    expired = store.status(1, now=fixed_now + timedelta(minutes=6))
    assert expired.has_token and expired.is_expired
    assert expired.token is None


def test_check_in_url_encodes_token(world):
    store = world.build(checkin_base_url="https://example.org/attendance/check").token_store

    assert store.check_in_url("a+b/c") == "https://example.org/attendance/check?token=a%2Bb%2Fc"
