from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..core.enums import RefundPolicyType, SessionRefundReason


@dataclass(frozen=True)
class RefundPolicyCriteria:
    """One tier of a refund policy table (rates are percentages)."""

    min_attendance_rate: int
    refund_rate: int
    label: str
    min_report_rate: Optional[int] = None


@dataclass(frozen=True)
class RefundPolicyTable:
    """Validated, ordered policy table. Build with `load_policy_table`."""

    policy_type: RefundPolicyType
    criteria: Tuple[RefundPolicyCriteria, ...]


@dataclass(frozen=True)
class DepositCalculationInput:
    deposit_amount: int
    policy: RefundPolicyTable
    total_sessions: int = 0
    attended_sessions: int = 0
    submitted_reports: int = 0
    # None means "not reviewed/unknown"; 0 means "none approved".
    approved_reports: Optional[int] = None
    survey_submitted: bool = False
    survey_required: bool = False
    # ONE_TIME programs only.
    attended: Optional[bool] = None

    @property
    def policy_type(self) -> RefundPolicyType:
        return self.policy.policy_type


@dataclass(frozen=True)
class RefundDecision:
    attendance_rate: int
    report_rate: int
    refund_rate: int
    refund_amount: int
    eligible: bool
    reason: str
    matched_policy: Optional[RefundPolicyCriteria] = None
    ineligible_reason: Optional[str] = None


@dataclass(frozen=True)
class SessionRefundInput:
    attended: bool
    report_submitted: bool = False
    # None = not reviewed yet, which does not block the refund.
    report_approved: Optional[bool] = None


@dataclass(frozen=True)
class SessionRefundLine:
    session_index: int
    refundable: bool
    amount: int
    reason_code: SessionRefundReason
    reason: str


@dataclass(frozen=True)
class PerSessionRefundResult:
    total_refund: int
    session_results: Tuple[SessionRefundLine, ...]


@dataclass(frozen=True)
class DepositSetting:
    """보증금 설정 (프로그램 단위)."""

    program_id: int
    deposit_amount: int
    policy: RefundPolicyTable
    total_sessions: int
    deposit_per_session: int = 0
    survey_required: bool = False
    report_required: bool = False

    @property
    def policy_type(self) -> RefundPolicyType:
        return self.policy.policy_type


@dataclass(frozen=True)
class ParticipantSettlementFacts:
    """Raw counts for one participant, as loaded from storage."""

    participant_id: int
    user_id: int
    attended_sessions: int
    submitted_reports: int
    approved_reports: Optional[int]
    survey_submitted: bool
    # Per-application override of the program deposit.
    deposit_amount: Optional[int] = None


@dataclass(frozen=True)
class SessionReportFacts:
    """Per held session: attendance status and the participant's report state."""

    session_id: int
    session_no: int
    attended: bool
    report_submitted: bool
    report_approved: Optional[bool]


@dataclass(frozen=True)
class ParticipantSettlement:
    participant_id: int
    user_id: int
    decision: RefundDecision


@dataclass(frozen=True)
class ProgramSettlement:
    program_id: int
    policy_type: RefundPolicyType
    deposit_amount: int
    participants: Tuple[ParticipantSettlement, ...]
    total: int
    survey_responded: int
    eligible: int
    forfeited: int
    total_refund_amount: int
