from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from study_blocks.errors import Conflict, InvalidInput, NotFound, TooSoon
from study_blocks.services.block_service import BlockService

from conftest import NOW


def create(service, start="09:20", duration=30, subject="Math", owner="user-1", date="2026-10-19"):
    return service.create_block(owner, f"{owner}@example.com", subject, date, start, duration)


def test_create_block_computes_derived_times(service, store) -> None:
    block_id = create(service, start="09:20", duration=30)

    block = store.blocks[block_id]
    assert block.start_time == datetime(2026, 10, 19, 9, 20, tzinfo=timezone.utc)
    assert block.end_time == block.start_time + timedelta(minutes=30)
    assert block.notification_time == block.start_time - timedelta(minutes=10)
    assert block.notification_sent is False
    assert block.notification_sent_at is None
    assert block.status == "upcoming"
    assert block.created_at == NOW
    assert store.inserts == 1


def test_create_block_trims_subject(service, store) -> None:
    block_id = create(service, subject="  Physics  ")
    assert store.blocks[block_id].subject == "Physics"


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"subject": "   "}, "subject"),
        ({"subject": ""}, "subject"),
        ({"date": ""}, "date"),
        ({"date": "2026-13-01"}, "date"),
        ({"date": "19/10/2026"}, "date"),
        ({"start": ""}, "startTime"),
        ({"start": "25:00"}, "startTime"),
        ({"start": "noon"}, "startTime"),
        ({"duration": 0}, "duration"),
        ({"duration": 481}, "duration"),
        ({"duration": "abc"}, "duration"),
        ({"duration": None}, "duration"),
    ],
)
def test_create_block_rejects_invalid_input(service, store, kwargs, field) -> None:
    with pytest.raises(InvalidInput) as exc_info:
        create(service, **kwargs)
    assert exc_info.value.field == field
    assert store.inserts == 0


def test_duration_bounds_are_inclusive(service) -> None:
    create(service, start="09:20", duration=1)
    create(service, start="10:00", duration=480)


def test_duration_accepts_numeric_string(service, store) -> None:
    block_id = create(service, duration="45")
    assert store.blocks[block_id].duration == 45


def test_too_soon_when_notification_time_is_now(service, store) -> None:
    # 09:10 start -> notification at 09:00 == now
    with pytest.raises(TooSoon):
        create(service, start="09:10")
    assert store.inserts == 0


def test_too_soon_for_past_start(service) -> None:
    with pytest.raises(TooSoon):
        create(service, start="08:00")


def test_one_minute_past_lead_time_is_accepted(service) -> None:
    assert create(service, start="09:11")


def test_conflict_example_sequence(service, store) -> None:
    first_id = create(service, start="09:20", duration=30)

    with pytest.raises(Conflict) as exc_info:
        create(service, start="09:25", duration=10, subject="History")
    assert exc_info.value.subject == "Math"
    assert exc_info.value.start_time == store.blocks[first_id].start_time.isoformat()

    # starts exactly when the first one ends
    create(service, start="09:50", duration=15, subject="History")
    assert store.inserts == 2


@pytest.mark.parametrize(
    "start, duration",
    [
        ("09:10", 20),   # existing starts inside new, new ends inside existing
        ("09:40", 30),   # new starts inside existing
        ("09:20", 30),   # identical interval
        ("09:25", 10),   # existing contains new
        ("09:15", 60),   # new contains existing
    ],
)
def test_overlapping_intervals_conflict(service, store, start, duration) -> None:
    create(service, start="09:20", duration=30)
    service.clock = lambda: NOW - timedelta(hours=1)
    with pytest.raises(Conflict):
        create(service, start=start, duration=duration, subject="Other")


def test_block_ending_at_existing_start_is_allowed(service) -> None:
    create(service, start="10:00", duration=30)
    create(service, start="09:30", duration=30, subject="Before")


def test_other_owner_does_not_conflict(service, store) -> None:
    create(service, start="09:20", duration=30, owner="user-1")
    create(service, start="09:20", duration=30, owner="user-2")
    assert store.inserts == 2


def test_wall_clock_is_interpreted_in_configured_timezone(store, clock) -> None:
    seoul = BlockService(store, ZoneInfo("Asia/Seoul"), clock=clock)
    block_id = seoul.create_block("user-1", "one@example.com", "Math", "2026-10-19", "19:00", 30)

    assert store.blocks[block_id].start_time == datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def test_nonexistent_local_time_is_rejected(store) -> None:
    new_york = BlockService(store, ZoneInfo("America/New_York"),
                            clock=lambda: datetime(2026, 3, 1, tzinfo=timezone.utc))
    with pytest.raises(InvalidInput) as exc_info:
        new_york.create_block("user-1", "one@example.com", "Math", "2026-03-08", "02:30", 30)
    assert exc_info.value.field == "startTime"


def test_end_of_calendar_date_is_invalid_input(service, store) -> None:
    with pytest.raises(InvalidInput) as exc_info:
        create(service, date="9999-12-31", start="23:00", duration=480)
    assert exc_info.value.field == "date"
    assert store.inserts == 0


def test_start_of_calendar_date_is_invalid_input(store, clock) -> None:
    seoul = BlockService(store, ZoneInfo("Asia/Seoul"), clock=clock)
    with pytest.raises(InvalidInput) as exc_info:
        seoul.create_block("user-1", "one@example.com", "Math", "0001-01-01", "05:00", 30)
    assert exc_info.value.field == "date"

    utc = BlockService(store, ZoneInfo("UTC"), clock=clock)
    with pytest.raises(InvalidInput) as exc_info:
        utc.create_block("user-1", "one@example.com", "Math", "0001-01-01", "00:05", 30)
    assert exc_info.value.field == "date"


def test_list_blocks_sorted_by_start(service) -> None:
    create(service, start="12:00", subject="Late")
    create(service, start="09:20", subject="Early")
    create(service, start="10:00", subject="Middle")
    create(service, start="09:20", subject="Someone else", owner="user-2")

    subjects = [b.subject for b in service.list_blocks("user-1")]
    assert subjects == ["Early", "Middle", "Late"]


def test_list_blocks_empty(service) -> None:
    assert service.list_blocks("nobody") == []


def test_delete_own_block(service, store) -> None:
    block_id = create(service)
    service.delete_block("user-1", block_id)
    assert block_id not in store.blocks


def test_delete_foreign_block_is_not_found(service, store) -> None:
    block_id = create(service)
    with pytest.raises(NotFound) as foreign:
        service.delete_block("user-2", block_id)
    with pytest.raises(NotFound) as missing:
        service.delete_block("user-2", str(uuid.uuid4()))

    assert block_id in store.blocks
    assert foreign.value.message == missing.value.message


def test_delete_malformed_id_is_not_found(service) -> None:
    with pytest.raises(NotFound):
        service.delete_block("user-1", "not-a-uuid")


def test_delete_requires_id(service) -> None:
    with pytest.raises(InvalidInput) as exc_info:
        service.delete_block("user-1", "")
    assert exc_info.value.field == "blockId"
