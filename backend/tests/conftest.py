import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tracklog.auth import create_access_token
from tracklog.clock import get_clock
from tracklog.database import Base, get_db
from tracklog.main import app
from tracklog.models.user import User
from tracklog.services.activity_service import ActivityService
from tracklog.services.heatmap_service import HeatmapService
from tracklog.services.tag_service import TagService
from tracklog.services.task_service import ActivityTaskService
from tracklog.services.time_entry_service import TimeEntryService

# One in-memory database shared by every connection of a test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 3, 10, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def db_session() -> Session:
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session: Session, clock: FrozenClock) -> TestClient:
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def create_user(db: Session, username: str, hashed_password: str = "not-a-real-hash") -> User:
    user = User(
        username=username,
        full_name=username.title(),
        email=f"{username}@example.com",
        hashed_password=hashed_password,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def make_user(db_session: Session):
    def _make_user(username: str, hashed_password: str = "not-a-real-hash") -> User:
        return create_user(db_session, username, hashed_password)
    return _make_user


@pytest.fixture
def user(db_session: Session) -> User:
    return create_user(db_session, "alice")


@pytest.fixture
def other_user(db_session: Session) -> User:
    return create_user(db_session, "bob")


def auth_headers_for(user: User) -> dict:
    token = create_access_token({"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(user: User) -> dict:
    return auth_headers_for(user)


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    return auth_headers_for(other_user)


@pytest.fixture
def activity_service(db_session: Session, clock: FrozenClock) -> ActivityService:
    return ActivityService(db_session, clock)


@pytest.fixture
def task_service(db_session: Session, clock: FrozenClock, activity_service: ActivityService) -> ActivityTaskService:
    return ActivityTaskService(db_session, clock, activity_service)


@pytest.fixture
def tag_service(db_session: Session, clock: FrozenClock) -> TagService:
    return TagService(db_session, clock)


@pytest.fixture
def heatmap_service(db_session: Session, clock: FrozenClock) -> HeatmapService:
    return HeatmapService(db_session, clock)


@pytest.fixture
def time_entry_service(
    db_session: Session,
    clock: FrozenClock,
    activity_service: ActivityService,
    task_service: ActivityTaskService,
    tag_service: TagService,
    heatmap_service: HeatmapService,
) -> TimeEntryService:
    return TimeEntryService(
        db_session,
        clock,
        activity_service=activity_service,
        task_service=task_service,
        tag_service=tag_service,
        heatmap_service=heatmap_service,
    )


@pytest.fixture
def activity(activity_service: ActivityService, user: User):
    return activity_service.create(user.id, "Reading")
