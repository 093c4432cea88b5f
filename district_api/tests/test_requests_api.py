from __future__ import annotations

import uuid

import pytest

pytestmark = pytest.mark.anyio


async def test_health(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Healthy"
    assert resp.headers["X-Correlation-ID"]


async def test_correlation_id_is_echoed(client):
    resp = await client.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})
    assert resp.headers["X-Correlation-ID"] == "abc-123"


async def test_list_requests_applies_visibility(client, request_repo):
    district = uuid.uuid4()
    aeo_req = request_repo.put_request(
        title="AEO survey", created_by=uuid.uuid4(), created_by_role="AEO", created_by_district_id=district
    )
    request_repo.put_request(title="Other district", created_by=uuid.uuid4(), created_by_role="AEO",
                             created_by_district_id=uuid.uuid4())

    resp = await client.get(
        "/api/v1/requests",
        params={"user_id": str(uuid.uuid4()), "user_role": "DEO", "district_id": str(district)},
    )

    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()] == [str(aeo_req.id)]


async def test_list_requests_for_ddeo_hides_aeo_request(client, request_repo):
    district = uuid.uuid4()
    request_repo.put_request(created_by=uuid.uuid4(), created_by_role="AEO", created_by_district_id=district)
    resp = await client.get(
        "/api/v1/requests",
        params={"user_id": str(uuid.uuid4()), "user_role": "DDEO", "district_id": str(district)},
    )
    assert resp.json() == []


async def test_list_requests_uses_user_header(client, request_repo):
    me = uuid.uuid4()
    mine = request_repo.put_request(created_by=me, created_by_role="TEACHER")
    resp = await client.get("/api/v1/requests", headers={"X-User-ID": str(me)})
    assert [r["id"] for r in resp.json()] == [str(mine.id)]


async def test_list_requests_requires_a_user(client):
    resp = await client.get("/api/v1/requests")
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["type"] == "http_error"
    assert body["path"] == "/api/v1/requests"


async def test_invalid_user_id_is_a_validation_error(client):
    resp = await client.get("/api/v1/requests", params={"user_id": "not-a-uuid"})
    assert resp.status_code == 422
    assert resp.json()["error"]["type"] == "validation_error"


async def test_create_and_get_request_with_assignees(client):
    creator = uuid.uuid4()
    payload = {
        "title": "Furniture census",
        "created_by": str(creator),
        "created_by_name": "AEO Chakra",
        "created_by_role": "AEO",
        "priority": "high",
        "assignees": [
            {"user_id": str(uuid.uuid4()), "user_name": "HT Chakra", "user_role": "HEAD_TEACHER",
             "school_name": "GGPS CHAKRA"},
        ],
    }
    created = await client.post("/api/v1/requests", json=payload)
    assert created.status_code == 201
    body = created.json()
    assert body["priority"] == "high"
    assert body["assignees"][0]["school_name"] == "GGPS CHAKRA"

    fetched = await client.get(f"/api/v1/requests/{body['id']}")
    assert fetched.status_code == 200
    assert len(fetched.json()["assignees"]) == 1


async def test_unknown_role_in_payload_is_rejected(client):
    resp = await client.post(
        "/api/v1/requests",
        json={"title": "x", "created_by": str(uuid.uuid4()), "created_by_role": "PRINCIPAL"},
    )
    assert resp.status_code == 422


async def test_missing_request_is_404(client):
    resp = await client.get(f"/api/v1/requests/{uuid.uuid4()}", headers={"X-User-ID": "u-1"})
    assert resp.status_code == 404
    body = resp.json()
    assert body["status"] == 404
    assert body["user_id"] == "u-1"


async def test_patch_assignee_completion(client, request_repo):
    req = request_repo.put_request(created_by=uuid.uuid4(), created_by_role="AEO")
    row = request_repo.put_assignee(req)
    resp = await client.patch(f"/api/v1/assignees/{row.id}", json={"status": "completed"})
    assert resp.status_code == 200
    assert resp.json()["submitted_at"] is not None


async def test_delete_request(client, request_repo):
    req = request_repo.put_request(created_by=uuid.uuid4(), created_by_role="AEO")
    request_repo.put_assignee(req)
    resp = await client.delete(f"/api/v1/requests/{req.id}")
    assert resp.status_code == 204
    assert request_repo.requests == {}
    assert request_repo.assignees == {}
    again = await client.delete(f"/api/v1/requests/{req.id}")
    assert again.status_code == 404
