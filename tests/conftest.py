from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Dict, List, Optional, Tuple

import pytest

from src.attendance_refund.attendance_refund.attendance.model import AttendanceRecord, CheckInWrite
from src.attendance_refund.attendance_refund.container import Container, wire
from src.attendance_refund.attendance_refund.core.enums import AttendanceStatus, CheckInMethod, MembershipStatus
from src.attendance_refund.attendance_refund.participants.model import Participant
from src.attendance_refund.attendance_refund.sessions.model import SessionOccurrence
from src.attendance_refund.attendance_refund.tokens.model import CheckInToken


class FakeSessionRepo:
    def __init__(self):
        self.items: Dict[int, SessionOccurrence] = {}

    def get_by_id(self, session_id):
        return self.items.get(int(session_id))

    def list_for_program(self, program_id):
        return sorted((s for s in self.items.values() if s.program_id == int(program_id)), key=lambda s: s.session_no)


class FakeParticipantRepo:
    def __init__(self):
        self.items: Dict[int, Participant] = {}

    def get_by_id(self, participant_id):
        return self.items.get(int(participant_id))

    def get_for_program_and_user(self, *, program_id, user_id):
        for p in self.items.values():
            if p.program_id == int(program_id) and p.user_id == int(user_id):
                return p
        return None

    def list_for_program(self, program_id):
        return [p for p in sorted(self.items.values(), key=lambda p: p.participant_id) if p.program_id == int(program_id)]


class FakeTokenRepo:
    def __init__(self, sessions: FakeSessionRepo):
        self._sessions = sessions
        self._next_id = 1
        self.items: Dict[int, CheckInToken] = {}

    def get_by_token(self, token):
        for t in self.items.values():
            if t.token == token:
                return t
        return None

    def get_active_for_session(self, session_id):
        for t in self.items.values():
            if t.session_id == int(session_id) and t.is_active:
                return t
        return None

    def replace_active(self, *, session_id, token, valid_from, valid_until, created_by=None):
        if self._sessions.get_by_id(session_id) is None:
            return None
        for tid, t in list(self.items.items()):
            if t.session_id == int(session_id) and t.is_active:
                self.items[tid] = replace(t, is_active=False)
        issued = CheckInToken(
            token_id=self._next_id,
            token=token,
            session_id=int(session_id),
            valid_from=valid_from,
            valid_until=valid_until,
            is_active=True,
            created_by=created_by,
        )
        self.items[issued.token_id] = issued
        self._next_id += 1
        return issued


class FakeAttendanceRepo:
    def __init__(self):
        self._next_id = 1
        self.items: Dict[Tuple[int, int], AttendanceRecord] = {}
        self.writes = 0

    def get_for_session_and_participant(self, session_id, participant_id):
        return self.items.get((int(session_id), int(participant_id)))

    def _store(self, *, session_id, participant_id, **values):
        key = (int(session_id), int(participant_id))
        current = self.items.get(key)
        if current is None:
            current = AttendanceRecord(
                attendance_id=self._next_id,
                session_id=key[0],
                participant_id=key[1],
                status=AttendanceStatus.ABSENT,
                checked_at=None,
                method=CheckInMethod.MANUAL,
            )
            self._next_id += 1
        self.items[key] = replace(current, **values)
        self.writes += 1
        return self.items[key]

    def upsert_check_in(self, *, session_id, participant_id, status, checked_at, method, token_id=None):
        existing = self.get_for_session_and_participant(session_id, participant_id)
        if existing is not None and existing.status.counts_as_checked_in:
            return CheckInWrite(record=existing, applied=False)
        record = self._store(
            session_id=session_id,
            participant_id=participant_id,
            status=status,
            checked_at=checked_at,
            method=method,
            token_id=token_id,
        )
        return CheckInWrite(record=record, applied=True)

    def upsert_manual(self, *, session_id, participant_id, status, checked_at, note=None):
        return self._store(
            session_id=session_id,
            participant_id=participant_id,
            status=status,
            checked_at=checked_at,
            method=CheckInMethod.MANUAL,
            note=note,
        )

    def list_for_session(self, session_id):
        return [r for (sid, _), r in sorted(self.items.items()) if sid == int(session_id)]

    def list_for_participant(self, participant_id):
        return [r for (_, pid), r in sorted(self.items.items()) if pid == int(participant_id)]


class FakeSettlementRepo:
    def __init__(self):
        self.settings = {}
        self.facts: Dict[int, list] = {}
        self.session_facts: Dict[Tuple[int, int], list] = {}
        self.last_attended_statuses = None

    def get_deposit_setting(self, program_id):
        return self.settings.get(int(program_id))

    def get_participant_facts(self, program_id, participant_id, *, attended_statuses):
        self.last_attended_statuses = tuple(attended_statuses)
        for f in self.facts.get(int(program_id), []):
            if f.participant_id == int(participant_id):
                return f
        return None

    def list_participant_facts(self, program_id, *, attended_statuses):
        self.last_attended_statuses = tuple(attended_statuses)
        return list(self.facts.get(int(program_id), []))

    def list_session_facts(self, program_id, participant_id, *, attended_statuses, held_until=None):
        return list(self.session_facts.get((int(program_id), int(participant_id)), []))


@dataclass
class World:
    """In-memory repositories plus services wired the same way as production."""

    sessions: FakeSessionRepo = field(default_factory=FakeSessionRepo)
    participants: FakeParticipantRepo = field(default_factory=FakeParticipantRepo)
    attendance: FakeAttendanceRepo = field(default_factory=FakeAttendanceRepo)
    settlements: FakeSettlementRepo = field(default_factory=FakeSettlementRepo)
    tokens: Optional[FakeTokenRepo] = None

    def __post_init__(self):
        if self.tokens is None:
            self.tokens = FakeTokenRepo(self.sessions)

    def build(self, **options) -> Container:
        return wire(
            sessions_repo=self.sessions,
            participants_repo=self.participants,
            tokens_repo=self.tokens,
            attendance_repo=self.attendance,
            settlements_repo=self.settlements,
            **options,
        )

    def add_session(
        self, session_id, *, program_id=1, session_no=1, day=date(2026, 3, 7), start=time(19, 0), end=None, title=None
    ):
        s = SessionOccurrence(
            session_id=session_id,
            program_id=program_id,
            session_no=session_no,
            session_date=day,
            start_time=start,
            title=title,
            end_time=end,
        )
        self.sessions.items[session_id] = s
        return s

    def add_participant(self, participant_id, *, program_id=1, user_id=None, status=MembershipStatus.ACTIVE):
        p = Participant(
            participant_id=participant_id,
            program_id=program_id,
            user_id=user_id if user_id is not None else 100 + participant_id,
            status=status,
        )
        self.participants.items[participant_id] = p
        return p

    def records(self) -> List[AttendanceRecord]:
        return list(self.attendance.items.values())


@pytest.fixture
def fixed_now():
    # Session 1 in the world fixture starts at exactly this moment.
    return datetime(2026, 3, 7, 19, 0, 0)


@pytest.fixture
def world():
    w = World()
    w.add_session(1)
    w.add_participant(1)
    return w
