from __future__ import annotations

from functools import wraps

from flask import Flask, jsonify, request, session
from loguru import logger

from ..common.validators import require_positive_int
from ..core.enums import AttendanceStatus, CheckInError, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container
from .model import DirectCheckIn, parse_check_in_request

_ERROR_HTTP_STATUS = {
    CheckInError.INVALID_TOKEN: 404,
    CheckInError.EXPIRED_TOKEN: 410,
    CheckInError.NOT_PARTICIPANT: 403,
    CheckInError.PARTICIPANT_INACTIVE: 403,
    CheckInError.SESSION_NOT_FOUND: 404,
    CheckInError.START_TIME_MISSING: 409,
    CheckInError.OUTSIDE_CHECKIN_WINDOW: 409,
}


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "로그인이 필요합니다"}), 401
            return view(*args, **kwargs)

        return wrapper

    def staff_required(view):
        """Allow Staff and Admin roles (program operators)."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "로그인이 필요합니다"}), 401

            if session.get("role") not in (Role.STAFF.value, Role.ADMIN.value):
                return jsonify({"success": False, "message": "운영진만 사용할 수 있습니다"}), 403

            return view(*args, **kwargs)

        return wrapper

    def _is_staff() -> bool:
        return session.get("role") in (Role.STAFF.value, Role.ADMIN.value)

    @app.route("/attendance/qr/generate", methods=["POST"], endpoint="attendance_qr_generate")
    @staff_required
    def qr_generate():
        try:
            data = request.get_json(silent=True) or {}
            session_id = require_positive_int(data.get("sessionOccurrenceId"), "sessionOccurrenceId")
            issued = container.token_store.issue(
                session_id,
                data.get("validMinutes"),
                created_by=int(session["user_id"]),
            )
            return (
                jsonify(
                    {
                        "success": True,
                        "token": issued.token,
                        "checkInUrl": container.token_store.check_in_url(issued.token),
                        "validUntil": issued.valid_until.isoformat(),
                    }
                ),
                201,
            )
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("QR token generation failed")
            return jsonify({"success": False, "message": "QR 코드 생성 중 오류가 발생했습니다"}), 500

    @app.route("/attendance/qr/status/<int:session_id>", methods=["GET"], endpoint="attendance_qr_status")
    @staff_required
    def qr_status(session_id: int):
        status = container.token_store.status(session_id)
        return jsonify(
            {
                "success": True,
                "hasQR": status.has_token,
                "isExpired": status.is_expired,
                "expiresAt": status.expires_at.isoformat() if status.expires_at else None,
                "token": status.token,
            }
        )

    @app.route("/attendance/check", methods=["POST"], endpoint="attendance_check")
    @login_required
    def check():
        try:
            parsed = parse_check_in_request(request.get_json(silent=True))
            if isinstance(parsed, DirectCheckIn):
                if not _is_staff():
                    raise AuthorizationError("직접 출석 처리는 운영진만 할 수 있습니다")
                outcome = container.attendance_recorder.check_in(parsed.session_id, parsed.participant_id)
            else:
                outcome = container.attendance_recorder.check_in_with_token(parsed.token, int(session["user_id"]))
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except AuthorizationError as e:
            return jsonify({"success": False, "message": str(e)}), 403
        except Exception:
            logger.exception("Check-in failed")
            return jsonify({"success": False, "message": "출석 처리 중 오류가 발생했습니다"}), 500

        if not outcome.ok:
            return (
                jsonify({"success": False, "error": outcome.error.value, "message": outcome.message}),
                _ERROR_HTTP_STATUS[outcome.error],
            )

        return jsonify(
            {
                "success": True,
                "status": outcome.status.value,
                "alreadyCheckedIn": outcome.already_checked_in,
                "lateMinutes": outcome.late_minutes,
                "message": outcome.message,
            }
        )

    @app.route("/attendance/manual", methods=["POST"], endpoint="attendance_manual")
    @staff_required
    def manual():
        try:
            data = request.get_json(silent=True) or {}
            session_id = require_positive_int(data.get("sessionOccurrenceId"), "sessionOccurrenceId")
            participant_id = require_positive_int(data.get("participantId"), "participantId")
            try:
                status = AttendanceStatus(str(data.get("status") or "").upper())
            except ValueError:
                raise ValidationError("status 값이 올바르지 않습니다")

            record = container.attendance_recorder.mark_manually(
                session_id, participant_id, status, note=data.get("note")
            )
            return jsonify(
                {
                    "success": True,
                    "sessionOccurrenceId": record.session_id,
                    "participantId": record.participant_id,
                    "status": record.status.value,
                    "checkedAt": record.checked_at.isoformat() if record.checked_at else None,
                    "note": record.note,
                }
            )
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("Manual attendance update failed")
            return jsonify({"success": False, "message": "출석 수정 중 오류가 발생했습니다"}), 500

    @app.route("/attendance/sessions/<int:session_id>/summary", methods=["GET"], endpoint="attendance_session_summary")
    @staff_required
    def session_summary(session_id: int):
        try:
            summary = container.attendance_recorder.session_summary(session_id)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        return jsonify(
            {
                "success": True,
                "sessionOccurrenceId": summary.session_id,
                "total": summary.total,
                "present": summary.present,
                "late": summary.late,
                "absent": summary.absent,
                "excused": summary.excused,
                "attendanceRate": summary.attendance_rate,
            }
        )

    @app.route("/attendance/programs/<int:program_id>/me", methods=["GET"], endpoint="attendance_my_program")
    @login_required
    def my_attendance(program_id: int):
        rows = container.attendance_recorder.attendance_for_user(program_id, int(session["user_id"]))
        return jsonify(
            {
                "success": True,
                "programId": program_id,
                "attendances": [
                    {
                        "sessionOccurrenceId": a.session_id,
                        "sessionNo": a.session_no,
                        "title": a.title,
                        "date": a.session_date.isoformat(),
                        "status": a.status.value,
                        "checkedAt": a.checked_at.isoformat() if a.checked_at else None,
                    }
                    for a in rows
                ],
            }
        )
