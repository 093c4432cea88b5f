from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from src.schemas.location import SESSION_ENTITY_TYPE, LocationSampleBatch, LocationSampleIn
from src.services.location_tracking import LinkOutcome

pytestmark = pytest.mark.anyio


async def test_link_moves_all_session_samples_then_nothing(tracking_service, samples):
    session_id, visit_id, other_session = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    for _ in range(3):
        samples.put(session_id)
    samples.put(other_session)

    first = await tracking_service.link(session_id, visit_id, "monitoring")
    second = await tracking_service.link(session_id, visit_id, "monitoring")

    assert first.updated_count == 3
    assert second.updated_count == 0
    moved = await tracking_service.list_samples(visit_id)
    assert len(moved) == 3
    assert {s.entity_type for s in moved} == {"monitoring"}
    assert len(await tracking_service.list_samples(other_session)) == 1


async def test_link_with_no_samples_returns_zero(tracking_service):
    result = await tracking_service.link(uuid.uuid4(), uuid.uuid4(), "office")
    assert result.updated_count == 0


async def test_link_propagates_store_errors(tracking_service, samples):
    samples.fail_relink = True
    with pytest.raises(RuntimeError):
        await tracking_service.link(uuid.uuid4(), uuid.uuid4(), "mentoring")


async def test_try_link_reports_failure_and_rolls_back(tracking_service, samples, fake_session, caplog):
    session_id = uuid.uuid4()
    samples.put(session_id)
    samples.fail_relink = True

    with caplog.at_level(logging.ERROR, logger="src.services.location_tracking"):
        outcome = await tracking_service.try_link(session_id, uuid.uuid4(), "monitoring")

    assert outcome == LinkOutcome(ok=False, updated_count=0, error="connection reset by peer")
    assert fake_session.rollbacks == 1
    assert str(session_id) in caplog.text
    # samples stay on the session so a later retry can still move them
    assert len(await tracking_service.list_samples(session_id)) == 1


async def test_try_link_success(tracking_service, samples):
    session_id = uuid.uuid4()
    samples.put(session_id)
    samples.put(session_id)
    outcome = await tracking_service.try_link(session_id, uuid.uuid4(), "other")
    assert outcome == LinkOutcome(ok=True, updated_count=2)


async def test_record_samples_tags_them_with_the_session(tracking_service):
    session_id, user_id = uuid.uuid4(), uuid.uuid4()
    t0 = datetime(2024, 5, 2, 9, 0, tzinfo=timezone.utc)
    batch = LocationSampleBatch(
        session_id=session_id,
        user_id=user_id,
        samples=[
            LocationSampleIn(recorded_at=t0 + timedelta(minutes=1), latitude=33.61, longitude=73.05),
            LocationSampleIn(recorded_at=t0, latitude=33.60, longitude=73.04, accuracy=8.5),
        ],
    )

    assert await tracking_service.record_samples(batch) == 2

    stored = await tracking_service.list_samples(session_id)
    assert [s.recorded_at for s in stored] == [t0, t0 + timedelta(minutes=1)]
    assert {s.entity_type for s in stored} == {SESSION_ENTITY_TYPE}
    assert {s.user_id for s in stored} == {user_id}
