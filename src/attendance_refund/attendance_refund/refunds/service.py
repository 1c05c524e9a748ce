from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Tuple

from loguru import logger

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_COUNT_LATE_AS_ATTENDED
from ..core.enums import AttendanceStatus, RefundPolicyType
from ..core.exceptions import PolicyNoMatchError, ValidationError
from ..participants.repository import ParticipantRepository
from .calculator.base import RefundCalculator
from .calculator.per_session_calculator import PerSessionRefundCalculator
from .calculator.tiered_calculator import RefundPolicyEvaluator
from .model import (
    DepositCalculationInput,
    DepositSetting,
    ParticipantSettlement,
    ParticipantSettlementFacts,
    PerSessionRefundResult,
    ProgramSettlement,
    RefundDecision,
    SessionRefundInput,
)
from .repository import SettlementRepository


class SettlementService:
    """Turns stored attendance/report/survey data into refund decisions.

    Decisions are recomputed on every call; nothing is cached.
    """

    def __init__(
        self,
        settlements: SettlementRepository,
        participants: ParticipantRepository,
        *,
        calculator: Optional[RefundCalculator] = None,
        per_session_calculator: Optional[PerSessionRefundCalculator] = None,
        count_late_as_attended: bool = DEFAULT_COUNT_LATE_AS_ATTENDED,
        clock: Callable[[], datetime] = now_local,
    ):
        self._settlements = settlements
        self._participants = participants
        self._calculator = calculator or RefundPolicyEvaluator()
        self._per_session = per_session_calculator or PerSessionRefundCalculator()
        self._clock = clock
        if count_late_as_attended:
            self._attended_statuses: Tuple[AttendanceStatus, ...] = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)
        else:
            self._attended_statuses = (AttendanceStatus.PRESENT,)

    def _setting(self, program_id: int) -> DepositSetting:
        setting = self._settlements.get_deposit_setting(int(program_id))
        if setting is None:
            raise ValidationError("보증금 설정이 없는 프로그램입니다")
        return setting

    def _decide(self, setting: DepositSetting, facts: ParticipantSettlementFacts) -> RefundDecision:
        data = DepositCalculationInput(
            deposit_amount=facts.deposit_amount or setting.deposit_amount,
            policy=setting.policy,
            total_sessions=setting.total_sessions,
            attended_sessions=facts.attended_sessions,
            submitted_reports=facts.submitted_reports,
            approved_reports=facts.approved_reports,
            survey_submitted=facts.survey_submitted,
            survey_required=setting.survey_required,
            attended=facts.attended_sessions > 0 if setting.policy_type == RefundPolicyType.ONE_TIME else None,
        )
        try:
            return self._calculator.evaluate(data)
        except PolicyNoMatchError:
            logger.error(
                "Refund policy for program {} matched no tier (participant {})",
                setting.program_id,
                facts.participant_id,
            )
            raise

    def settle_participant(self, program_id: int, participant_id: int) -> RefundDecision:
        setting = self._setting(program_id)
        facts = self._settlements.get_participant_facts(
            int(program_id), int(participant_id), attended_statuses=self._attended_statuses
        )
        if facts is None:
            raise ValidationError("참가자를 찾을 수 없습니다")

        decision = self._decide(setting, facts)
        logger.info(
            "Settled program {} participant {}: rate={}% amount={} eligible={}",
            setting.program_id,
            facts.participant_id,
            decision.refund_rate,
            decision.refund_amount,
            decision.eligible,
        )
        return decision

    def settle_for_user(self, program_id: int, user_id: int) -> RefundDecision:
        """Refund eligibility of the logged-in user in a program."""
        participant = self._participants.get_for_program_and_user(program_id=int(program_id), user_id=int(user_id))
        if participant is None:
            raise ValidationError("이 프로그램의 참가자가 아닙니다")
        return self.settle_participant(program_id, participant.participant_id)

    def settle_program(self, program_id: int) -> ProgramSettlement:
        setting = self._setting(program_id)
        all_facts = self._settlements.list_participant_facts(
            int(program_id), attended_statuses=self._attended_statuses
        )

        rows = tuple(
            ParticipantSettlement(
                participant_id=f.participant_id,
                user_id=f.user_id,
                decision=self._decide(setting, f),
            )
            for f in all_facts
        )

        settlement = ProgramSettlement(
            program_id=setting.program_id,
            policy_type=setting.policy_type,
            deposit_amount=setting.deposit_amount,
            participants=rows,
            total=len(rows),
            survey_responded=sum(1 for f in all_facts if f.survey_submitted),
            eligible=sum(1 for r in rows if r.decision.eligible),
            forfeited=sum(1 for r in rows if not r.decision.eligible),
            total_refund_amount=sum(r.decision.refund_amount for r in rows if r.decision.eligible),
        )
        logger.info(
            "Settled program {} ({}): {} participants, {} eligible, total refund {}",
            settlement.program_id,
            settlement.policy_type.value,
            settlement.total,
            settlement.eligible,
            settlement.total_refund_amount,
        )
        return settlement

    def settle_per_session(self, program_id: int, participant_id: int) -> PerSessionRefundResult:
        setting = self._setting(program_id)
        facts = self._settlements.get_participant_facts(
            int(program_id), int(participant_id), attended_statuses=self._attended_statuses
        )
        if facts is None:
            raise ValidationError("참가자를 찾을 수 없습니다")

        sessions = self._settlements.list_session_facts(
            int(program_id),
            int(participant_id),
            attended_statuses=self._attended_statuses,
            held_until=self._clock().date(),
        )
        result = self._per_session.evaluate(
            setting.deposit_per_session,
            [
                SessionRefundInput(
                    attended=s.attended,
                    report_submitted=s.report_submitted,
                    report_approved=s.report_approved,
                )
                for s in sessions
            ],
            require_report=setting.report_required,
            survey_submitted=facts.survey_submitted,
            survey_required=setting.survey_required,
        )
        logger.info(
            "Per-session settlement program {} participant {}: {} sessions, total {}",
            setting.program_id,
            facts.participant_id,
            len(result.session_results),
            result.total_refund,
        )
        return result
