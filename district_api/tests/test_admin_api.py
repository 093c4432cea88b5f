from __future__ import annotations

import io
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

import pandas as pd
import pytest
from passlib.hash import bcrypt

from src.api.routes import organization as organization_routes
from src.api.routes import reports as report_routes
from src.api.routes import users as user_routes
from src.api.routes.reports import attendance_pct, build_school_report_frame
from src.core.deps import get_db_session
from src.db.models.organization import District, School
from src.db.models.users import User
from src.db.models.visits import FieldVisit

pytestmark = pytest.mark.anyio


def _stamp(row):
    row.id = row.id or uuid.uuid4()
    row.created_at = row.updated_at = datetime.now(tz=timezone.utc)
    return row


class InMemoryUsers:
    def __init__(self) -> None:
        self.rows: dict[uuid.UUID, User] = {}

    async def get_user_by_id(self, user_id) -> Optional[User]:
        return self.rows.get(user_id)

    async def get_user_by_phone(self, phone_number) -> Optional[User]:
        return next((u for u in self.rows.values() if u.phone_number == phone_number), None)

    async def list_users(self, *, role=None, status=None, limit=100, offset=0):
        return [u for u in self.rows.values() if (role is None or u.role == role) and (status is None or u.status == status)]

    async def create_user(self, *, hashed_password: str, **fields: Any) -> User:
        user = _stamp(User(hashed_password=hashed_password, **fields))
        self.rows[user.id] = user
        return user

    async def update_user(self, user_id, values) -> Optional[User]:
        user = self.rows.get(user_id)
        if user is not None:
            for k, v in values.items():
                setattr(user, k, v)
        return user

    async def delete_user(self, user_id) -> int:
        return 1 if self.rows.pop(user_id, None) else 0


class InMemoryDistricts:
    def __init__(self) -> None:
        self.rows: dict[uuid.UUID, District] = {}

    async def list_districts(self):
        return list(self.rows.values())

    async def get_district(self, district_id):
        return self.rows.get(district_id)

    async def get_district_by_code(self, code):
        return next((d for d in self.rows.values() if d.code == code), None)

    async def create_district(self, payload):
        row = _stamp(District(**payload.model_dump()))
        self.rows[row.id] = row
        return row


@pytest.fixture
async def admin_client(client, monkeypatch):
    from src.api.main import app

    user_store, district_store = InMemoryUsers(), InMemoryDistricts()
    monkeypatch.setattr(user_routes, "UserRepository", lambda session: user_store)
    monkeypatch.setattr(organization_routes, "DistrictRepository", lambda session: district_store)
    app.dependency_overrides[get_db_session] = lambda: None
    yield client, user_store


async def test_create_user_hashes_password_and_hides_it(admin_client):
    client, store = admin_client
    payload = {"name": "HT Jawa", "phone_number": "03001234567", "password": "secret1", "role": "HEAD_TEACHER",
               "school_name": "GES JAWA"}

    resp = await client.post("/api/v1/admin/users", json=payload)

    assert resp.status_code == 201
    body = resp.json()
    assert "password" not in body and "hashed_password" not in body
    stored = store.rows[uuid.UUID(body["id"])]
    assert stored.hashed_password != "secret1"
    assert bcrypt.verify("secret1", stored.hashed_password)

    dup = await client.post("/api/v1/admin/users", json=payload)
    assert dup.status_code == 409


async def test_user_role_must_be_known(admin_client):
    client, _ = admin_client
    resp = await client.post(
        "/api/v1/admin/users",
        json={"name": "X", "phone_number": "03009999999", "password": "secret1", "role": "PRINCIPAL"},
    )
    assert resp.status_code == 422


async def test_approve_and_restrict(admin_client):
    client, store = admin_client
    created = (await client.post(
        "/api/v1/admin/users",
        json={"name": "T", "phone_number": "03007654321", "password": "secret1", "role": "TEACHER",
              "status": "pending"},
    )).json()

    approved = await client.patch(f"/api/v1/admin/users/{created['id']}/approve")
    assert approved.json()["status"] == "active"
    restricted = await client.patch(f"/api/v1/admin/users/{created['id']}/restrict")
    assert restricted.json()["status"] == "restricted"
    lifted = await client.patch(f"/api/v1/admin/users/{created['id']}/approve")
    assert lifted.json()["status"] == "active"
    assert (await client.patch(f"/api/v1/admin/users/{uuid.uuid4()}/approve")).status_code == 404
    assert (await client.post(f"/api/v1/admin/users/{created['id']}/approve")).status_code == 405


async def test_duplicate_district_code_conflicts(admin_client):
    client, _ = admin_client
    first = await client.post("/api/v1/admin/districts", json={"name": "Rawalpindi", "code": "RWP"})
    assert first.status_code == 201
    second = await client.post("/api/v1/admin/districts", json={"name": "Rawalpindi 2", "code": "RWP"})
    assert second.status_code == 409


def test_attendance_pct():
    assert attendance_pct(45, 60) == 75.0
    assert attendance_pct(0, 0) is None
    assert attendance_pct(None, 10) == 0.0


def test_school_report_frame_includes_latest_visit():
    chakra = _stamp(School(name="GGPS CHAKRA", code="S1", total_students=200, present_students=150,
                           total_teachers=8, present_teachers=8))
    jawa = _stamp(School(name="GES JAWA", code="S2", total_students=0, present_students=0,
                         total_teachers=5, present_teachers=4))
    visit = _stamp(FieldVisit(visit_type="monitoring", aeo_name="AEO Chakra", visit_date=date(2024, 5, 2)))

    df = build_school_report_frame([chakra, jawa], {chakra.id: visit})

    assert list(df["school"]) == ["GGPS CHAKRA", "GES JAWA"]
    first, second = df.iloc[0], df.iloc[1]
    assert first["student_attendance_pct"] == 75.0
    assert first["last_visit_type"] == "monitoring"
    assert first["last_visited_by"] == "AEO Chakra"
    assert pd.isna(second["student_attendance_pct"])
    assert second["teacher_attendance_pct"] == 80.0
    assert second["last_visit_type"] is None


async def test_schools_report_csv(client, monkeypatch):
    from src.api.main import app

    school = _stamp(School(name="GGPS CHAKRA", code="S1", total_students=10, present_students=9,
                           total_teachers=2, present_teachers=2))

    class Schools:
        def __init__(self, session):
            pass

        async def list_schools(self, *, cluster_id=None, district_id=None):
            return [school]

    class Visits:
        def __init__(self, session):
            pass

        async def latest_visit_per_school(self):
            return {}

    monkeypatch.setattr(report_routes, "SchoolRepository", Schools)
    monkeypatch.setattr(report_routes, "FieldVisitRepository", Visits)
    app.dependency_overrides[get_db_session] = lambda: None

    resp = await client.get("/api/v1/reports/schools", params={"format": "csv"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="schools_report.csv"' in resp.headers["content-disposition"]
    df = pd.read_csv(io.StringIO(resp.text))
    assert df.loc[0, "school"] == "GGPS CHAKRA"
    assert df.loc[0, "student_attendance_pct"] == 90.0


async def test_schools_report_xlsx(client, monkeypatch):
    from src.api.main import app

    class Schools:
        def __init__(self, session):
            pass

        async def list_schools(self, *, cluster_id=None, district_id=None):
            return []

    class Visits:
        def __init__(self, session):
            pass

        async def latest_visit_per_school(self):
            return {}

    monkeypatch.setattr(report_routes, "SchoolRepository", Schools)
    monkeypatch.setattr(report_routes, "FieldVisitRepository", Visits)
    app.dependency_overrides[get_db_session] = lambda: None

    resp = await client.get("/api/v1/reports/schools", params={"format": "xlsx"})

    assert resp.status_code == 200
    assert resp.content[:2] == b"PK"
