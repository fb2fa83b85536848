import datetime
import uuid
from contextlib import contextmanager
from types import SimpleNamespace
from typing import List, Optional

import numpy as np
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from face_attendance.exceptions import CameraUnavailable, DuplicateEmail, StoreError
from face_attendance.models import Base
from face_attendance.services.extractor import Detection

DIM = 128


def descriptor_at(distance: float, axis: int = 0) -> List[float]:
    """A descriptor exactly ``distance`` away from the all-zero descriptor."""
    vector = [0.0] * DIM
    vector[axis] = distance
    return vector


LIVE = [0.0] * DIM


def make_detection(descriptor: List[float]) -> Detection:
    return Detection(
        bbox=(10, 110, 110, 10),
        landmarks={"nose_tip": [(60, 60)]},
        descriptor=list(descriptor),
    )


class StubExtractor:
    """Returns queued detections in order; None means no face."""

    def __init__(self, *results: Optional[Detection]):
        self.results = list(results)
        self.calls = 0
        self.is_initialized = True

    def initialize(self) -> None:
        pass

    def detect(self, frame) -> Optional[Detection]:
        self.calls += 1
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0] if self.results else None


class FakeStore:
    """In-memory stand-in for AttendanceStore."""

    def __init__(self):
        self.users: list = []
        self.records: list = []
        self.calls: list = []
        self.fail_insert_user: Optional[Exception] = None
        self.fail_insert_attendance: Optional[Exception] = None

    def add_user(self, name, email, descriptor, user_id=None):
        user = SimpleNamespace(
            id=user_id or uuid.uuid4(),
            name=name,
            email=email,
            face_descriptor=descriptor,
            created_at=datetime.datetime.now(datetime.timezone.utc),
            enrolled=descriptor is not None,
        )
        self.users.append(user)
        return user

    async def insert_user(self, name, email, descriptor):
        self.calls.append("insert_user")
        if self.fail_insert_user is not None:
            raise self.fail_insert_user
        if any(u.email == email.lower() for u in self.users):
            raise DuplicateEmail()
        return self.add_user(name, email.lower(), list(descriptor))

    async def insert_attendance(self, user_id, confidence, check_in_time):
        self.calls.append("insert_attendance")
        if self.fail_insert_attendance is not None:
            raise self.fail_insert_attendance
        user = next(u for u in self.users if u.id == user_id)
        record = SimpleNamespace(
            id=uuid.uuid4(),
            user_id=user_id,
            face_match_confidence=confidence,
            check_in_time=check_in_time,
            created_at=check_in_time,
            user=user,
        )
        self.records.append(record)
        return record

    async def list_users_with_descriptor(self):
        self.calls.append("list_users_with_descriptor")
        return [u for u in self.users if u.face_descriptor is not None]

    async def list_attendance(self, limit=50):
        self.calls.append("list_attendance")
        ordered = sorted(self.records, key=lambda r: r.check_in_time, reverse=True)
        return ordered[:limit]

    async def count_users(self):
        self.calls.append("count_users")
        return len(self.users)

    async def list_attendance_confidences_since(self, since):
        self.calls.append("list_attendance_confidences_since")
        return [r.face_match_confidence for r in self.records if r.check_in_time >= since]


class FakeCamera:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.acquired = 0
        self.released = 0

    @property
    def open_streams(self) -> int:
        return self.acquired - self.released

    def acquire(self):
        if self.fail:
            raise CameraUnavailable()
        self.acquired += 1
        return object()

    def release(self, stream) -> None:
        self.released += 1

    def sample(self, stream):
        return np.zeros((480, 640, 3), dtype=np.uint8)

    @contextmanager
    def open_camera(self):
        stream = self.acquire()
        try:
            yield stream
        finally:
            self.release(stream)


@pytest.fixture
def frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def store_error():
    return StoreError("connection reset")


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()
