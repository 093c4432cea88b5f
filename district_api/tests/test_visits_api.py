from __future__ import annotations

import uuid

import pytest

pytestmark = pytest.mark.anyio


def visit_body(aeo_id, session_id=None) -> dict:
    body = {
        "aeo_id": str(aeo_id),
        "aeo_name": "AEO Chakra",
        "school_name": "GES JAWA",
        "visit_date": "2024-05-02",
        "form_data": {"classrooms_observed": 3},
    }
    if session_id:
        body["session_id"] = str(session_id)
    return body


async def test_visit_submission_reports_gps_link(client, session_repo, samples):
    session = session_repo.put()
    samples.put(session.id)
    samples.put(session.id)

    resp = await client.post("/api/v1/activities/monitoring", json=visit_body(session.aeo_id, session.id))

    assert resp.status_code == 201
    body = resp.json()
    assert body["visit_type"] == "monitoring"
    assert body["gps_link"] == {"ok": True, "updated_count": 2, "error": None}


async def test_visit_submission_survives_link_failure(client, session_repo, samples):
    session = session_repo.put()
    samples.put(session.id)
    samples.fail_relink = True

    resp = await client.post("/api/v1/activities/mentoring", json=visit_body(session.aeo_id, session.id))

    assert resp.status_code == 201
    assert resp.json()["gps_link"]["ok"] is False


async def test_visit_without_session_has_no_gps_link(client):
    resp = await client.post("/api/v1/activities/office", json=visit_body(uuid.uuid4()))
    assert resp.status_code == 201
    assert resp.json()["gps_link"] is None


async def test_unknown_visit_type_is_rejected(client):
    resp = await client.post("/api/v1/activities/inspection", json=visit_body(uuid.uuid4()))
    assert resp.status_code == 422


async def test_list_and_get_visits(client):
    aeo = uuid.uuid4()
    created = (await client.post("/api/v1/activities/other", json=visit_body(aeo))).json()

    listed = await client.get("/api/v1/activities/other", params={"aeo_id": str(aeo)})
    assert [v["id"] for v in listed.json()] == [created["id"]]

    assert (await client.get(f"/api/v1/activities/other/{created['id']}")).status_code == 200
    assert (await client.get(f"/api/v1/activities/office/{created['id']}")).status_code == 404


async def test_school_visit_history_and_latest(client):
    school_id = str(uuid.uuid4())
    first = visit_body(uuid.uuid4())
    first.update(school_id=school_id, submitted_at="2024-05-01T09:00:00Z")
    second = visit_body(uuid.uuid4())
    second.update(school_id=school_id, submitted_at="2024-05-03T09:00:00Z")
    older = (await client.post("/api/v1/activities/monitoring", json=first)).json()
    newer = (await client.post("/api/v1/activities/mentoring", json=second)).json()

    history = await client.get(f"/api/v1/activities/schools/{school_id}/history")
    assert history.status_code == 200
    assert [v["id"] for v in history.json()] == [newer["id"], older["id"]]

    limited = await client.get(f"/api/v1/activities/schools/{school_id}/history", params={"limit": 1})
    assert [v["id"] for v in limited.json()] == [newer["id"]]

    latest = await client.get(f"/api/v1/activities/schools/{school_id}/latest")
    assert latest.json()["visit_type"] == "mentoring"

    never_visited = await client.get(f"/api/v1/activities/schools/{uuid.uuid4()}/latest")
    assert never_visited.status_code == 200
    assert never_visited.json() is None


async def test_link_to_visit_endpoint_is_idempotent(client, samples):
    session_id, visit_id = uuid.uuid4(), uuid.uuid4()
    for _ in range(3):
        samples.put(session_id)
    body = {"session_id": str(session_id), "visit_id": str(visit_id), "visit_type": "monitoring"}

    first = await client.patch("/api/v1/location-tracking/link-to-visit", json=body)
    second = await client.patch("/api/v1/location-tracking/link-to-visit", json=body)

    assert first.json() == {"updated_count": 3}
    assert second.json() == {"updated_count": 0}


async def test_link_to_visit_validates_ids(client):
    body = {"session_id": "abc", "visit_id": str(uuid.uuid4()), "visit_type": "monitoring"}
    resp = await client.patch("/api/v1/location-tracking/link-to-visit", json=body)
    assert resp.status_code == 422


async def test_record_and_list_samples(client):
    session_id = uuid.uuid4()
    batch = {
        "session_id": str(session_id),
        "user_id": str(uuid.uuid4()),
        "samples": [
            {"recorded_at": "2024-05-02T09:00:00Z", "latitude": 33.6, "longitude": 73.04},
            {"recorded_at": "2024-05-02T09:01:00Z", "latitude": 33.61, "longitude": 73.05, "accuracy": 5},
        ],
    }
    resp = await client.post("/api/v1/location-tracking/samples", json=batch)
    assert resp.status_code == 201
    assert resp.json() == {"recorded_count": 2}

    listed = await client.get(f"/api/v1/location-tracking/{session_id}/samples")
    assert [s["entity_type"] for s in listed.json()] == ["visit_session", "visit_session"]


async def test_empty_sample_batch_is_rejected(client):
    batch = {"session_id": str(uuid.uuid4()), "user_id": str(uuid.uuid4()), "samples": []}
    resp = await client.post("/api/v1/location-tracking/samples", json=batch)
    assert resp.status_code == 422


async def test_session_lifecycle(client):
    aeo = uuid.uuid4()
    start = {"aeo_id": str(aeo), "aeo_name": "AEO", "school_name": "GGPS CHAKRA", "start_location_source": "auto"}

    created = await client.post("/api/v1/visit-sessions", json=start)
    assert created.status_code == 201
    sid = created.json()["id"]

    dup = await client.post("/api/v1/visit-sessions", json=start)
    assert dup.status_code == 409
    assert dup.json()["error"]["type"] == "http_error"

    active = await client.get(f"/api/v1/visit-sessions/active/{aeo}")
    assert active.json()["id"] == sid

    ended = await client.post(f"/api/v1/visit-sessions/{sid}/end", json={"end_latitude": 33.6})
    assert ended.json()["status"] == "completed"

    assert (await client.get(f"/api/v1/visit-sessions/active/{aeo}")).json() is None
    assert (await client.post(f"/api/v1/visit-sessions/{sid}/cancel")).status_code == 409
    assert (await client.post(f"/api/v1/visit-sessions/{uuid.uuid4()}/cancel")).status_code == 404
