from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import Flask, jsonify, session
from loguru import logger

from ..core.enums import Role
from ..core.exceptions import PolicyConfigurationError, PolicyNoMatchError, ValidationError
from ..container import Container
from .model import RefundDecision, RefundPolicyCriteria
from .policies import format_krw, refund_status_label


def _criteria_json(c: Optional[RefundPolicyCriteria]) -> Optional[dict]:
    if c is None:
        return None
    return {
        "minAttendance": c.min_attendance_rate,
        "minReport": c.min_report_rate,
        "refundRate": c.refund_rate,
        "label": c.label,
    }


def decision_json(d: RefundDecision) -> dict:
    return {
        "attendanceRate": d.attendance_rate,
        "reportRate": d.report_rate,
        "refundRate": d.refund_rate,
        "refundAmount": d.refund_amount,
        "refundAmountText": format_krw(d.refund_amount),
        "statusLabel": refund_status_label(d.refund_rate),
        "eligible": d.eligible,
        "reason": d.reason,
        "ineligibleReason": d.ineligible_reason,
        "matchedPolicy": _criteria_json(d.matched_policy),
    }


def register(app: Flask, container: Container) -> None:
    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "로그인이 필요합니다"}), 401

            if session.get("role") != Role.ADMIN.value:
                return jsonify({"success": False, "message": "권한이 없습니다."}), 403

            return view(*args, **kwargs)

        return wrapper

    @app.route("/admin/programs/<int:program_id>/refunds", methods=["GET"], endpoint="admin_program_refunds")
    @admin_required
    def program_refunds(program_id: int):
        try:
            settlement = container.settlement_service.settle_program(program_id)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        except (PolicyConfigurationError, PolicyNoMatchError) as e:
            return jsonify({"success": False, "message": f"반환 정책 설정 오류: {e}"}), 500
        except Exception:
            logger.exception("Refund settlement failed for program {}", program_id)
            return jsonify({"success": False, "message": "보증금 정산 중 오류가 발생했습니다"}), 500

        return jsonify(
            {
                "success": True,
                "programId": settlement.program_id,
                "policyType": settlement.policy_type.value,
                "depositAmount": settlement.deposit_amount,
                "refunds": [
                    {"participantId": p.participant_id, "userId": p.user_id, **decision_json(p.decision)}
                    for p in settlement.participants
                ],
                "summary": {
                    "total": settlement.total,
                    "surveyResponded": settlement.survey_responded,
                    "eligible": settlement.eligible,
                    "forfeited": settlement.forfeited,
                    "totalRefundAmount": settlement.total_refund_amount,
                },
            }
        )

    @app.route(
        "/admin/programs/<int:program_id>/refunds/<int:participant_id>/sessions",
        methods=["GET"],
        endpoint="admin_participant_session_refunds",
    )
    @admin_required
    def participant_session_refunds(program_id: int, participant_id: int):
        try:
            result = container.settlement_service.settle_per_session(program_id, participant_id)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        except (PolicyConfigurationError, PolicyNoMatchError) as e:
            return jsonify({"success": False, "message": f"반환 정책 설정 오류: {e}"}), 500
        except Exception:
            logger.exception("Per-session settlement failed for program {} participant {}", program_id, participant_id)
            return jsonify({"success": False, "message": "보증금 정산 중 오류가 발생했습니다"}), 500

        return jsonify(
            {
                "success": True,
                "programId": program_id,
                "participantId": participant_id,
                "totalRefund": result.total_refund,
                "sessionResults": [
                    {
                        "session": line.session_index,
                        "refundable": line.refundable,
                        "amount": line.amount,
                        "reasonCode": line.reason_code.value,
                        "reason": line.reason,
                    }
                    for line in result.session_results
                ],
            }
        )

    @app.route("/programs/<int:program_id>/refund/me", methods=["GET"], endpoint="my_refund_eligibility")
    def my_refund_eligibility(program_id: int):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "로그인이 필요합니다"}), 401

        try:
            decision = container.settlement_service.settle_for_user(program_id, int(session["user_id"]))
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        except (PolicyConfigurationError, PolicyNoMatchError) as e:
            return jsonify({"success": False, "message": f"반환 정책 설정 오류: {e}"}), 500
        except Exception:
            logger.exception("Refund eligibility lookup failed for program {}", program_id)
            return jsonify({"success": False, "message": "보증금 환급 정보를 불러오지 못했습니다"}), 500

        return jsonify({"success": True, "programId": program_id, **decision_json(decision)})
