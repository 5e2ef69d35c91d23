from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from study_blocks.auth import CurrentUser
from study_blocks.config import Settings
from study_blocks.errors import Unauthenticated
from study_blocks.main import create_app
from study_blocks.models.study_block import StudyBlock
from study_blocks.services.block_service import BlockService
from study_blocks.services.dispatcher import NotificationDispatcher
from study_blocks.services.email_sender import SendResult


NOW = datetime(2026, 10, 19, 9, 0, 0, tzinfo=timezone.utc)
CRON_SECRET = "cron-secret"


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeBlockStore:
    """In-memory stand-in for BlockStore with the same method surface."""

    def __init__(self) -> None:
        self.blocks: Dict[str, StudyBlock] = {}
        self.inserts = 0

    def insert(self, record: Dict) -> str:
        block_id = str(uuid.uuid4())
        self.blocks[block_id] = StudyBlock.model_validate({**record, "id": block_id})
        self.inserts += 1
        return block_id

    def add(self, **fields) -> StudyBlock:
        block_id = fields.pop("id", None) or str(uuid.uuid4())
        start = fields.pop("start_time")
        duration = fields.pop("duration", 30)
        data = {
            "id": block_id,
            "user_id": "user-1",
            "user_email": "one@example.com",
            "subject": "Math",
            "duration": duration,
            "start_time": start,
            "end_time": start + timedelta(minutes=duration),
            "notification_time": start - timedelta(minutes=10),
            "created_at": NOW,
        }
        data.update(fields)
        block = StudyBlock.model_validate(data)
        self.blocks[block_id] = block
        return block

    def list_by_owner(self, user_id: str) -> List[StudyBlock]:
        owned = [b for b in self.blocks.values() if b.user_id == user_id]
        return sorted(owned, key=lambda b: b.start_time)

    def find_overlapping(self, user_id: str, start: datetime, end: datetime) -> Optional[StudyBlock]:
        for block in self.list_by_owner(user_id):
            if block.start_time < end and block.end_time > start:
                return block
        return None

    def delete_owned(self, user_id: str, block_id: str) -> bool:
        block = self.blocks.get(block_id)
        if block is None or block.user_id != user_id:
            return False
        del self.blocks[block_id]
        return True

    def count_all(self) -> int:
        return len(self.blocks)

    def find_due(self, now: datetime) -> List[StudyBlock]:
        due = [
            b for b in self.blocks.values()
            if not b.notification_sent and b.notification_time <= now and b.start_time > now
        ]
        return sorted(due, key=lambda b: b.start_time)

    def claim(self, block_id: str, now: datetime, lease: timedelta) -> bool:
        block = self.blocks.get(block_id)
        if block is None or block.notification_sent:
            return False
        if block.notification_claimed_at is not None and block.notification_claimed_at >= now - lease:
            return False
        self.blocks[block_id] = block.model_copy(update={"notification_claimed_at": now})
        return True

    def release_claim(self, block_id: str, claimed_at: datetime) -> None:
        block = self.blocks.get(block_id)
        if block and not block.notification_sent and block.notification_claimed_at == claimed_at:
            self.blocks[block_id] = block.model_copy(update={"notification_claimed_at": None})

    def mark_sent(self, block_id: str, sent_at: datetime) -> None:
        block = self.blocks[block_id]
        self.blocks[block_id] = block.model_copy(
            update={"notification_sent": True, "notification_sent_at": sent_at}
        )

    def ping(self) -> bool:
        return True


class FakeSender:
    def __init__(self) -> None:
        self.sent: List[tuple] = []
        self.fail_for: Dict[str, str] = {}
        self.raise_for: Dict[str, Exception] = {}

    def send(self, recipient: str, subject: str, start_time: datetime) -> SendResult:
        if subject in self.raise_for:
            raise self.raise_for[subject]
        if subject in self.fail_for:
            return SendResult(ok=False, error=self.fail_for[subject])
        self.sent.append((recipient, subject, start_time))
        return SendResult(ok=True, message_id=f"<{len(self.sent)}@example.com>")


class FakeIdentity:
    def __init__(self) -> None:
        self.users = {
            "token-1": CurrentUser(id="user-1", email="one@example.com"),
            "token-2": CurrentUser(id="user-2", email="two@example.com"),
        }

    def get_user(self, token: str) -> CurrentUser:
        user = self.users.get(token)
        if user is None:
            raise Unauthenticated("로그인이 필요합니다.")
        return user


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeBlockStore:
    return FakeBlockStore()


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def service(store, clock) -> BlockService:
    return BlockService(store, ZoneInfo("UTC"), clock=clock)


@pytest.fixture
def dispatcher(store, sender, clock) -> NotificationDispatcher:
    return NotificationDispatcher(store, sender, clock=clock)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="http://localhost:54321",
        supabase_key="test-key",
        cron_secret=CRON_SECRET,
        smtp_user="sender@example.com",
        smtp_password="secret",
        smtp_from_address="sender@example.com",
        timezone="UTC",
    )


@pytest.fixture
def client(settings, store, sender, clock):
    app = create_app(settings=settings, store=store, identity=FakeIdentity(),
                     sender=sender, clock=clock)
    with TestClient(app) as test_client:
        yield test_client
