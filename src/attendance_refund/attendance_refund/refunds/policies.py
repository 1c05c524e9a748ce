"""Refund policy tables: defaults, load-time validation and the stored JSON form.

A table is validated once, when it is loaded, so evaluation can rely on:
- at least one entry, every rate within 0..100,
- a terminal entry (min attendance 0, and min report 0/None for the combined
  policy) so every participant matches some tier,
- no unreachable duplicate thresholds.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from ..core.enums import RefundPolicyType
from ..core.exceptions import PolicyConfigurationError
from .model import RefundPolicyCriteria, RefundPolicyTable

DEFAULT_REFUND_POLICIES: Mapping[RefundPolicyType, Sequence[RefundPolicyCriteria]] = {
    RefundPolicyType.ONE_TIME: (
        RefundPolicyCriteria(min_attendance_rate=100, refund_rate=100, label="참석 시 전액 반환"),
        RefundPolicyCriteria(min_attendance_rate=0, refund_rate=0, label="불참 시 미반환"),
    ),
    RefundPolicyType.ATTENDANCE_ONLY: (
        RefundPolicyCriteria(min_attendance_rate=100, refund_rate=100, label="출석 100%"),
        RefundPolicyCriteria(min_attendance_rate=80, refund_rate=80, label="출석 80% 이상"),
        RefundPolicyCriteria(min_attendance_rate=60, refund_rate=60, label="출석 60% 이상"),
        RefundPolicyCriteria(min_attendance_rate=0, refund_rate=0, label="출석 60% 미만"),
    ),
    RefundPolicyType.ATTENDANCE_AND_REPORT: (
        RefundPolicyCriteria(100, 100, "출석 100%, 독후감 100%", min_report_rate=100),
        RefundPolicyCriteria(100, 90, "출석 100%, 독후감 80%+", min_report_rate=80),
        RefundPolicyCriteria(80, 80, "출석 80%+, 독후감 80%+", min_report_rate=80),
        RefundPolicyCriteria(80, 70, "출석 80%+, 독후감 60%+", min_report_rate=60),
        RefundPolicyCriteria(60, 60, "출석 60%+, 독후감 60%+", min_report_rate=60),
        RefundPolicyCriteria(0, 0, "기준 미달", min_report_rate=0),
    ),
}


def _check_rate(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PolicyConfigurationError(f"{what} must be an integer, got {value!r}")
    if not 0 <= value <= 100:
        raise PolicyConfigurationError(f"{what} must be within 0..100, got {value}")
    return value


def load_policy_table(
    policy_type: Union[RefundPolicyType, str],
    entries: Iterable[RefundPolicyCriteria],
) -> RefundPolicyTable:
    try:
        policy_type = RefundPolicyType(policy_type)
    except ValueError:
        raise PolicyConfigurationError(f"Unknown refund policy type: {policy_type!r}")

    criteria = tuple(entries)
    if not criteria:
        raise PolicyConfigurationError(f"{policy_type.value}: policy table is empty")

    combined = policy_type == RefundPolicyType.ATTENDANCE_AND_REPORT
    seen = set()
    for i, c in enumerate(criteria):
        _check_rate(c.min_attendance_rate, f"entry {i} minAttendance")
        _check_rate(c.refund_rate, f"entry {i} refundRate")
        if c.min_report_rate is not None:
            _check_rate(c.min_report_rate, f"entry {i} minReport")

        key = (c.min_attendance_rate, c.min_report_rate or 0) if combined else c.min_attendance_rate
        if key in seen:
            raise PolicyConfigurationError(f"{policy_type.value}: entry {i} duplicates threshold {key} and is unreachable")
        seen.add(key)

    has_terminal = any(
        c.min_attendance_rate == 0 and (not combined or not c.min_report_rate)
        for c in criteria
    )
    if not has_terminal:
        raise PolicyConfigurationError(f"{policy_type.value}: policy table needs a terminal entry with minimum 0")

    return RefundPolicyTable(policy_type=policy_type, criteria=criteria)


def default_policy_table(policy_type: Union[RefundPolicyType, str]) -> RefundPolicyTable:
    try:
        policy_type = RefundPolicyType(policy_type)
    except ValueError:
        raise PolicyConfigurationError(f"Unknown refund policy type: {policy_type!r}")
    return load_policy_table(policy_type, DEFAULT_REFUND_POLICIES[policy_type])


def _criteria_from_dict(raw: Any, index: int) -> RefundPolicyCriteria:
    if not isinstance(raw, dict):
        raise PolicyConfigurationError(f"entry {index} must be an object")
    try:
        return RefundPolicyCriteria(
            min_attendance_rate=raw["minAttendance"],
            refund_rate=raw["refundRate"],
            label=str(raw.get("label") or ""),
            min_report_rate=raw.get("minReport"),
        )
    except KeyError as e:
        raise PolicyConfigurationError(f"entry {index} is missing {e.args[0]}")


def policy_table_from_json(policy_type: Union[RefundPolicyType, str], raw: Optional[str]) -> RefundPolicyTable:
    """Parse the stored JSON list; empty/NULL falls back to the default table."""
    if raw is None or not str(raw).strip():
        return default_policy_table(policy_type)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PolicyConfigurationError(f"Refund policy is not valid JSON: {e}")
    if not isinstance(data, list):
        raise PolicyConfigurationError("Refund policy must be a JSON list")
    if not data:
        return default_policy_table(policy_type)

    return load_policy_table(policy_type, [_criteria_from_dict(item, i) for i, item in enumerate(data)])


def refund_status_label(refund_rate: int) -> str:
    if refund_rate == 100:
        return "전액 반환"
    if refund_rate >= 80:
        return "대부분 반환"
    if refund_rate >= 60:
        return "일부 반환"
    if refund_rate > 0:
        return "최소 반환"
    return "미반환"


def format_krw(amount: int) -> str:
    return f"₩{int(amount):,}"
