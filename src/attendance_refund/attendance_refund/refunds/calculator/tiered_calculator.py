from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...common.datetime_utils import percent, round_half_up
from ...core.enums import RefundPolicyType
from ...core.exceptions import PolicyNoMatchError
from ..model import DepositCalculationInput, RefundDecision, RefundPolicyCriteria, RefundPolicyTable
from .base import RefundCalculator

SURVEY_MISSING_REASON = "만족도 조사 미제출"
SURVEY_MISSING_DETAIL = "만족도 조사에 응답하지 않아 보증금이 반환되지 않습니다."


def refund_amount(deposit_amount: int, refund_rate: int) -> int:
    return round_half_up(Decimal(int(deposit_amount)) * int(refund_rate) / 100)


class RefundPolicyEvaluator(RefundCalculator):
    """Tiered rule: best tier the participant qualifies for, highest threshold first.

    Pure and stateless; identical input always gives the same decision.
    """

    def evaluate(self, data: DepositCalculationInput) -> RefundDecision:
        if data.survey_required and not data.survey_submitted:
            return RefundDecision(
                attendance_rate=0,
                report_rate=0,
                refund_rate=0,
                refund_amount=0,
                eligible=False,
                reason=SURVEY_MISSING_REASON,
                ineligible_reason=SURVEY_MISSING_DETAIL,
            )

        if data.policy_type == RefundPolicyType.ONE_TIME:
            return self._evaluate_one_time(data)

        attendance_rate = percent(data.attended_sessions, data.total_sessions)
        report_count = data.approved_reports if data.approved_reports is not None else data.submitted_reports
        report_rate = percent(report_count, data.total_sessions)

        matched = self.match(data.policy, attendance_rate, report_rate)
        if matched is None:
            raise PolicyNoMatchError(
                f"No {data.policy_type.value} tier matches attendance {attendance_rate}% / report {report_rate}%"
            )

        if data.policy_type == RefundPolicyType.ATTENDANCE_ONLY:
            reason = f"출석률 {attendance_rate}% ({matched.label})"
        else:
            reason = f"출석 {attendance_rate}%, 독후감 {report_rate}% ({matched.label})"

        amount = refund_amount(data.deposit_amount, matched.refund_rate)
        return RefundDecision(
            attendance_rate=attendance_rate,
            report_rate=report_rate,
            refund_rate=matched.refund_rate,
            refund_amount=amount,
            eligible=amount > 0,
            reason=reason,
            matched_policy=matched,
            ineligible_reason=(
                f"출석률({attendance_rate}%) 또는 독후감 제출률({report_rate}%)이 기준에 미달합니다."
                if amount == 0
                else None
            ),
        )

    @staticmethod
    def match(table: RefundPolicyTable, attendance_rate: int, report_rate: int) -> Optional[RefundPolicyCriteria]:
        # sorted() is stable: equal thresholds keep table order.
        ordered = sorted(table.criteria, key=lambda c: c.min_attendance_rate, reverse=True)
        combined = table.policy_type == RefundPolicyType.ATTENDANCE_AND_REPORT
        for c in ordered:
            if attendance_rate < c.min_attendance_rate:
                continue
            if combined and report_rate < (c.min_report_rate or 0):
                continue
            return c
        return None

    @staticmethod
    def _terminal(table: RefundPolicyTable) -> Optional[RefundPolicyCriteria]:
        for c in reversed(table.criteria):
            if c.min_attendance_rate == 0:
                return c
        return None

    def _evaluate_one_time(self, data: DepositCalculationInput) -> RefundDecision:
        if data.attended:
            matched = data.policy.criteria[0]
            amount = refund_amount(data.deposit_amount, matched.refund_rate)
            return RefundDecision(
                attendance_rate=100,
                report_rate=0,
                refund_rate=matched.refund_rate,
                refund_amount=amount,
                eligible=amount > 0,
                reason="참석 완료",
                matched_policy=matched,
            )

        matched = self._terminal(data.policy)
        if matched is None:
            raise PolicyNoMatchError("ONE_TIME policy has no terminal entry")
        amount = refund_amount(data.deposit_amount, matched.refund_rate)
        return RefundDecision(
            attendance_rate=0,
            report_rate=0,
            refund_rate=matched.refund_rate,
            refund_amount=amount,
            eligible=amount > 0,
            reason="불참",
            matched_policy=matched,
            ineligible_reason="프로그램에 불참하여 보증금이 반환되지 않습니다." if amount == 0 else None,
        )
