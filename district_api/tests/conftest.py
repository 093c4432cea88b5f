"""
Test configuration and fixtures.

Provides:
- In-memory fake repositories standing in for the PostgreSQL-backed ones
- A fake AsyncSession that only records commit/rollback calls
- Services wired to the fakes, and an HTTPX AsyncClient with the service
  dependencies overridden

Nothing here needs a database.
"""
from __future__ import annotations

import os
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("AUTO_SEED", "false")

from src.db.models.requests import DataRequest, RequestAssignee
from src.db.models.users import User
from src.db.models.visits import FieldVisit, LocationSample, VisitSession
from src.services.location_tracking import LocationTrackingService
from src.services.requests import RequestService
from src.services.visits import VisitService


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _stamp(row: Any) -> Any:
    row.id = row.id or uuid.uuid4()
    row.created_at = row.created_at or _now()
    row.updated_at = _now()
    return row


class StoreError(RuntimeError):
    """Raised by fakes configured to fail."""


class FakeSession:
    """Stands in for AsyncSession; services only call commit/rollback on it directly."""

    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


class FakeUserRepo:
    def __init__(self) -> None:
        self.users: dict[uuid.UUID, User] = {}

    def put(self, **fields: Any) -> User:
        fields.setdefault("name", "User")
        fields.setdefault("phone_number", f"0300{uuid.uuid4().int % 10**7:07d}")
        fields.setdefault("hashed_password", "x")
        fields.setdefault("status", "active")
        user = _stamp(User(**fields))
        self.users[user.id] = user
        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return self.users.get(user_id)


class FakeRequestRepo:
    def __init__(self) -> None:
        self.requests: dict[uuid.UUID, DataRequest] = {}
        self.assignees: dict[uuid.UUID, RequestAssignee] = {}
        self.school_name_lookups: List[str] = []

    def put_request(self, **fields: Any) -> DataRequest:
        fields.setdefault("title", "Enrolment figures")
        fields.setdefault("created_by_name", "Creator")
        fields.setdefault("priority", "medium")
        fields.setdefault("status", "active")
        fields.setdefault("is_archived", False)
        fields.setdefault("due_date", _now())
        fields.setdefault("fields", [])
        req = _stamp(DataRequest(**fields))
        self.requests[req.id] = req
        return req

    def put_assignee(self, request: DataRequest, **fields: Any) -> RequestAssignee:
        fields.setdefault("user_id", uuid.uuid4())
        fields.setdefault("user_name", "Assignee")
        fields.setdefault("user_role", "HEAD_TEACHER")
        fields.setdefault("status", "pending")
        fields.setdefault("field_responses", [])
        row = _stamp(RequestAssignee(request_id=request.id, **fields))
        self.assignees[row.id] = row
        return row

    async def list_active_requests(self) -> List[DataRequest]:
        rows = [r for r in self.requests.values() if not r.is_archived]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)

    async def get_request(self, request_id: uuid.UUID) -> Optional[DataRequest]:
        return self.requests.get(request_id)

    async def create_request(self, values: dict, assignees: Iterable = ()) -> DataRequest:
        req = self.put_request(**values)
        for a in assignees:
            self.put_assignee(req, **a.model_dump())
        return req

    async def update_request(self, request_id: uuid.UUID, values: dict) -> Optional[DataRequest]:
        req = self.requests.get(request_id)
        if req is not None:
            for k, v in values.items():
                setattr(req, k, v)
            req.updated_at = _now()
        return req

    async def delete_request(self, request_id: uuid.UUID) -> int:
        for a in [a for a in self.assignees.values() if a.request_id == request_id]:
            del self.assignees[a.id]
        return 1 if self.requests.pop(request_id, None) is not None else 0

    async def list_assignees(self, request_id: uuid.UUID) -> List[RequestAssignee]:
        return [a for a in self.assignees.values() if a.request_id == request_id]

    async def list_assignees_for_requests(self, request_ids) -> List[RequestAssignee]:
        wanted = set(request_ids)
        return [a for a in self.assignees.values() if a.request_id in wanted]

    async def find_assignees_by_school_name(self, request_ids, school_name: str) -> List[RequestAssignee]:
        self.school_name_lookups.append(school_name)
        wanted = set(request_ids)
        return [
            a for a in self.assignees.values()
            if a.request_id in wanted and a.school_name and a.school_name.upper() == school_name.upper()
        ]

    async def find_assignees_by_school_id(self, request_ids, school_id: uuid.UUID) -> List[RequestAssignee]:
        wanted = set(request_ids)
        return [a for a in self.assignees.values() if a.request_id in wanted and a.school_id == school_id]

    async def get_assignee(self, assignee_id: uuid.UUID) -> Optional[RequestAssignee]:
        return self.assignees.get(assignee_id)

    async def create_assignee(self, request_id: uuid.UUID, payload) -> RequestAssignee:
        return self.put_assignee(self.requests[request_id], **payload.model_dump())

    async def update_assignee(self, assignee_id: uuid.UUID, values: dict) -> Optional[RequestAssignee]:
        row = self.assignees.get(assignee_id)
        if row is not None:
            for k, v in values.items():
                setattr(row, k, v)
        return row


class FakeSampleRepo:
    def __init__(self) -> None:
        self.samples: List[LocationSample] = []
        self.fail_relink = False

    def put(self, entity_id: uuid.UUID, entity_type: str = "visit_session", **fields: Any) -> LocationSample:
        fields.setdefault("user_id", uuid.uuid4())
        fields.setdefault("recorded_at", _now())
        fields.setdefault("latitude", 33.6)
        fields.setdefault("longitude", 73.0)
        row = _stamp(LocationSample(entity_id=entity_id, entity_type=entity_type, **fields))
        self.samples.append(row)
        return row

    async def add_samples(self, *, entity_id, entity_type, user_id, samples) -> int:
        count = 0
        for s in samples:
            self.put(
                entity_id, entity_type, user_id=user_id, recorded_at=s.recorded_at,
                latitude=s.latitude, longitude=s.longitude, accuracy=s.accuracy,
            )
            count += 1
        return count

    async def list_samples(self, entity_id: uuid.UUID) -> List[LocationSample]:
        rows = [s for s in self.samples if s.entity_id == entity_id]
        return sorted(rows, key=lambda s: s.recorded_at)

    async def relink_samples(self, old_entity_id, new_entity_id, new_entity_type) -> int:
        if self.fail_relink:
            raise StoreError("connection reset by peer")
        moved = 0
        for s in self.samples:
            if s.entity_id == old_entity_id:
                s.entity_id = new_entity_id
                s.entity_type = new_entity_type
                moved += 1
        return moved


class FakeVisitSessionRepo:
    def __init__(self) -> None:
        self.sessions: dict[uuid.UUID, VisitSession] = {}
        self.fail_updates = False

    def put(self, **fields: Any) -> VisitSession:
        fields.setdefault("aeo_id", uuid.uuid4())
        fields.setdefault("aeo_name", "AEO Chakra")
        fields.setdefault("school_name", "GGPS CHAKRA")
        fields.setdefault("start_timestamp", _now())
        fields.setdefault("start_location_source", "auto")
        fields.setdefault("status", "in_progress")
        row = _stamp(VisitSession(**fields))
        self.sessions[row.id] = row
        return row

    async def list_sessions(self, *, aeo_id=None) -> List[VisitSession]:
        return [s for s in self.sessions.values() if aeo_id is None or s.aeo_id == aeo_id]

    async def get_session(self, session_id) -> Optional[VisitSession]:
        return self.sessions.get(session_id)

    async def get_active_session(self, aeo_id) -> Optional[VisitSession]:
        for s in self.sessions.values():
            if s.aeo_id == aeo_id and s.status == "in_progress":
                return s
        return None

    async def create_session(self, payload, started_at) -> VisitSession:
        return self.put(start_timestamp=started_at, **payload.model_dump())

    async def update_session(self, session_id, values: dict) -> Optional[VisitSession]:
        if self.fail_updates:
            raise StoreError("session table locked")
        row = self.sessions.get(session_id)
        if row is not None:
            for k, v in values.items():
                setattr(row, k, v)
        return row


class FakeFieldVisitRepo:
    def __init__(self) -> None:
        self.visits: dict[uuid.UUID, FieldVisit] = {}
        self.detached: List[uuid.UUID] = []

    async def list_visits(self, *, visit_type: str, aeo_id=None) -> List[FieldVisit]:
        return [
            v for v in self.visits.values()
            if v.visit_type == visit_type and (aeo_id is None or v.aeo_id == aeo_id)
        ]

    async def get_visit(self, visit_id) -> Optional[FieldVisit]:
        return self.visits.get(visit_id)

    async def list_school_visits(self, school_id, *, limit=None) -> List[FieldVisit]:
        rows = [v for v in self.visits.values() if v.school_id == school_id]
        rows.sort(key=lambda v: v.submitted_at, reverse=True)
        return rows[:limit] if limit else rows

    async def get_latest_school_visit(self, school_id) -> Optional[FieldVisit]:
        rows = await self.list_school_visits(school_id, limit=1)
        return rows[0] if rows else None

    async def detach(self, visit: FieldVisit) -> None:
        self.detached.append(visit.id)

    async def latest_visit_per_school(self) -> dict:
        latest: dict = {}
        for v in sorted(self.visits.values(), key=lambda v: v.submitted_at):
            if v.school_id is not None:
                latest[v.school_id] = v
        return latest

    async def create_visit(self, visit_type: str, payload, submitted_at) -> FieldVisit:
        values = payload.model_dump(exclude={"submitted_at"})
        row = _stamp(FieldVisit(visit_type=visit_type, submitted_at=submitted_at, **values))
        self.visits[row.id] = row
        return row


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def users() -> FakeUserRepo:
    return FakeUserRepo()


@pytest.fixture
def request_repo() -> FakeRequestRepo:
    return FakeRequestRepo()


@pytest.fixture
def samples() -> FakeSampleRepo:
    return FakeSampleRepo()


@pytest.fixture
def session_repo() -> FakeVisitSessionRepo:
    return FakeVisitSessionRepo()


@pytest.fixture
def visit_repo() -> FakeFieldVisitRepo:
    return FakeFieldVisitRepo()


@pytest.fixture
def request_service(fake_session, request_repo, users) -> RequestService:
    svc = RequestService(fake_session)
    svc.request_repo = request_repo
    svc.user_repo = users
    return svc


@pytest.fixture
def tracking_service(fake_session, samples) -> LocationTrackingService:
    svc = LocationTrackingService(fake_session)
    svc.sample_repo = samples
    return svc


@pytest.fixture
def visit_service(fake_session, session_repo, visit_repo, tracking_service) -> VisitService:
    svc = VisitService(fake_session)
    svc.session_repo = session_repo
    svc.visit_repo = visit_repo
    svc.tracker = tracking_service
    return svc


@pytest.fixture
async def client(request_service, visit_service, tracking_service):
    """HTTPX client against the app with every service dependency pointed at the fakes."""
    from src.api.main import app
    from src.core.deps import get_location_service, get_request_service, get_visit_service

    app.dependency_overrides[get_request_service] = lambda: request_service
    app.dependency_overrides[get_visit_service] = lambda: visit_service
    app.dependency_overrides[get_location_service] = lambda: tracking_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
