from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import DepositSetting, ParticipantSettlementFacts, SessionReportFacts
from .policies import policy_table_from_json
from .repository import SettlementRepository

# Drafts are not submissions.
_SUBMITTED = "r.status <> 'DRAFT'"


def _status_values(statuses: Collection[AttendanceStatus]) -> list[str]:
    values = [AttendanceStatus(s).value for s in statuses]
    if not values:
        raise ValidationError("출석으로 인정할 상태가 비어 있습니다")
    return values


def _to_facts(r: dict) -> ParticipantSettlementFacts:
    submitted = int(r.get("submitted_reports") or 0)
    reviewed = int(r.get("reviewed_reports") or 0)
    rejected = reviewed - int(r.get("approved_reports") or 0)
    return ParticipantSettlementFacts(
        participant_id=int(r["participant_id"]),
        user_id=int(r["user_id"]),
        attended_sessions=int(r.get("attended_sessions") or 0),
        submitted_reports=submitted,
        # Only explicit rejections are held against the participant; reports
        # still awaiting review count. Nothing reviewed yet: no approval data.
        approved_reports=submitted - rejected if reviewed > 0 else None,
        survey_submitted=as_bool(r.get("survey_submitted")),
        deposit_amount=int(r["app_deposit_amount"]) if r.get("app_deposit_amount") is not None else None,
    )


class MySQLSettlementRepository(SettlementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_deposit_setting(self, program_id: int) -> Optional[DepositSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT program_id, deposit_amount, deposit_per_session, condition_type, refund_policy,
                       total_sessions, survey_required, report_required
                FROM deposit_settings
                WHERE program_id=%s
                """,
                (int(program_id),),
            )
            r = fetchone(cur)
            if not r:
                return None

        return DepositSetting(
            program_id=int(r["program_id"]),
            deposit_amount=int(r.get("deposit_amount") or 0),
            policy=policy_table_from_json(r["condition_type"], r.get("refund_policy")),
            total_sessions=int(r.get("total_sessions") or 0),
            deposit_per_session=int(r.get("deposit_per_session") or 0),
            survey_required=as_bool(r.get("survey_required")),
            report_required=as_bool(r.get("report_required")),
        )

    def _query_facts(
        self,
        program_id: int,
        participant_id: Optional[int],
        attended_statuses: Collection[AttendanceStatus],
    ) -> list[dict]:
        values = _status_values(attended_statuses)
        placeholders = ",".join(["%s"] * len(values))

        sql = f"""
            SELECT p.participant_id, p.user_id,
                   (SELECT COUNT(*)
                      FROM attendance_records a
                      JOIN program_sessions s ON s.session_id = a.session_id
                     WHERE a.participant_id = p.participant_id
                       AND s.program_id = p.program_id
                       AND a.status IN ({placeholders})) AS attended_sessions,
                   (SELECT COUNT(*) FROM program_reports r
                     WHERE r.participant_id = p.participant_id AND r.program_id = p.program_id
                       AND {_SUBMITTED}) AS submitted_reports,
                   (SELECT COUNT(r.approved) FROM program_reports r
                     WHERE r.participant_id = p.participant_id AND r.program_id = p.program_id
                       AND {_SUBMITTED}) AS reviewed_reports,
                   (SELECT COALESCE(SUM(r.approved = 1), 0) FROM program_reports r
                     WHERE r.participant_id = p.participant_id AND r.program_id = p.program_id
                       AND {_SUBMITTED}) AS approved_reports,
                   app.survey_submitted,
                   app.deposit_amount AS app_deposit_amount
            FROM program_participants p
            LEFT JOIN program_applications app ON app.program_id = p.program_id AND app.user_id = p.user_id
            WHERE p.program_id = %s
        """
        params: list[object] = [*values, int(program_id)]
        if participant_id is not None:
            sql += " AND p.participant_id = %s"
            params.append(int(participant_id))
        sql += " ORDER BY p.participant_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def get_participant_facts(
        self,
        program_id: int,
        participant_id: int,
        *,
        attended_statuses: Collection[AttendanceStatus],
    ) -> Optional[ParticipantSettlementFacts]:
        rows = self._query_facts(program_id, participant_id, attended_statuses)
        return _to_facts(rows[0]) if rows else None

    def list_participant_facts(
        self,
        program_id: int,
        *,
        attended_statuses: Collection[AttendanceStatus],
    ) -> Sequence[ParticipantSettlementFacts]:
        return [_to_facts(r) for r in self._query_facts(program_id, None, attended_statuses)]

    def list_session_facts(
        self,
        program_id: int,
        participant_id: int,
        *,
        attended_statuses: Collection[AttendanceStatus],
        held_until: Optional[date] = None,
    ) -> Sequence[SessionReportFacts]:
        attended_values = set(_status_values(attended_statuses))

        sql = """
            SELECT s.session_id, s.session_no, a.status AS attendance_status,
                   r.report_id, r.approved
            FROM program_sessions s
            LEFT JOIN attendance_records a
                   ON a.session_id = s.session_id AND a.participant_id = %s
            LEFT JOIN program_reports r
                   ON r.report_id = (
                        SELECT MAX(r2.report_id) FROM program_reports r2
                        WHERE r2.session_id = s.session_id AND r2.participant_id = %s AND r2.status <> 'DRAFT'
                   )
            WHERE s.program_id = %s
        """
        params: list[object] = [int(participant_id), int(participant_id), int(program_id)]
        if held_until is not None:
            sql += " AND s.session_date <= %s"
            params.append(held_until)
        sql += " ORDER BY s.session_no ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)

        return [
            SessionReportFacts(
                session_id=int(r["session_id"]),
                session_no=int(r["session_no"]),
                attended=r.get("attendance_status") in attended_values,
                report_submitted=r.get("report_id") is not None,
                report_approved=None if r.get("approved") is None else as_bool(r["approved"]),
            )
            for r in rows
        ]
