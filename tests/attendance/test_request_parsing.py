import pytest

from src.attendance_refund.attendance_refund.attendance.model import (
    DirectCheckIn,
    TokenCheckIn,
    parse_check_in_request,
)
from src.attendance_refund.attendance_refund.core.exceptions import ValidationError


def test_parse_token_form():
    assert parse_check_in_request({"token": "  abc  "}) == TokenCheckIn(token="abc")


def test_parse_direct_form():
    parsed = parse_check_in_request({"sessionOccurrenceId": "3", "participantId": 9})

    assert parsed == DirectCheckIn(session_id=3, participant_id=9)


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        "token",
        {},
        {"token": ""},
        {"token": 123},
        {"token": "abc", "participantId": 1},
        {"sessionOccurrenceId": 1},
        {"sessionOccurrenceId": 0, "participantId": 1},
        {"sessionOccurrenceId": True, "participantId": 1},
    ],
)
def test_malformed_payloads_are_rejected(payload):
    with pytest.raises(ValidationError):
        parse_check_in_request(payload)
