from __future__ import annotations

from typing import Sequence

from ...core.enums import SessionRefundReason
from ..model import PerSessionRefundResult, SessionRefundInput, SessionRefundLine
from .tiered_calculator import SURVEY_MISSING_REASON


class PerSessionRefundCalculator:
    """Book-club rule: each session refunds `deposit_per_session` on its own."""

    def evaluate(
        self,
        deposit_per_session: int,
        sessions: Sequence[SessionRefundInput],
        *,
        require_report: bool,
        survey_submitted: bool,
        survey_required: bool,
    ) -> PerSessionRefundResult:
        if survey_required and not survey_submitted:
            lines = tuple(
                SessionRefundLine(i, False, 0, SessionRefundReason.SURVEY_MISSING, SURVEY_MISSING_REASON)
                for i in range(1, len(sessions) + 1)
            )
            return PerSessionRefundResult(total_refund=0, session_results=lines)

        lines = tuple(
            self._line(i, s, int(deposit_per_session), require_report)
            for i, s in enumerate(sessions, start=1)
        )
        return PerSessionRefundResult(total_refund=sum(line.amount for line in lines), session_results=lines)

    @staticmethod
    def _line(index: int, session: SessionRefundInput, amount: int, require_report: bool) -> SessionRefundLine:
        if not session.attended:
            return SessionRefundLine(index, False, 0, SessionRefundReason.ABSENT, f"{index}회차 불참")

        if require_report:
            if not session.report_submitted:
                return SessionRefundLine(index, False, 0, SessionRefundReason.REPORT_MISSING, f"{index}회차 독후감 미제출")
            if session.report_approved is False:
                return SessionRefundLine(index, False, 0, SessionRefundReason.REPORT_REJECTED, f"{index}회차 독후감 미승인")

        return SessionRefundLine(index, True, amount, SessionRefundReason.QUALIFIED, f"{index}회차 조건 충족")
