"""
conftest.py — Shared Test Fixtures for the Design Studio Portal

Provides an in-memory SQLite database, FastAPI TestClients with auth
overrides, and factory fixtures for core models (User per role, Job,
Department).

Business Rules:
- All tests run against isolated in-memory DB (no prod data risk)
- Auth is overridden so tests don't need real JWTs; anon_client keeps the
  real token path for auth tests
- Each test function gets a fresh DB (tables created and dropped)

Called by: all test files via pytest autodiscovery
Depends on: app.models (Base), app.database (get_db), app.dependencies
"""

import os
os.environ["TESTING"] = "1"  # Must be set before importing app modules

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Department, FileUpload, Job, User

# ── In-memory SQLite engine ──────────────────────────────────────────

TEST_DB_URL = "sqlite://"  # in-memory, fresh per session

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default — turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db: Session, email: str, name: str, role: str, **extra) -> User:
    user = User(
        open_id=f"open-{email}",
        email=email,
        name=name,
        role=role,
        login_method="email",
        is_active=True,
        created_at=datetime.now(timezone.utc),
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """A standard client user."""
    return _make_user(db_session, "client@example.com", "Test Client", "client")


@pytest.fixture()
def other_client(db_session: Session) -> User:
    """A second client, for cross-account access checks."""
    return _make_user(db_session, "other@example.com", "Other Client", "client")


@pytest.fixture()
def designer_user(db_session: Session) -> User:
    return _make_user(db_session, "designer@inventright.com", "Test Designer", "designer")


@pytest.fixture()
def manager_user(db_session: Session) -> User:
    return _make_user(db_session, "manager@inventright.com", "Test Manager", "manager")


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    return _make_user(db_session, "admin@inventright.com", "Test Admin", "admin")


@pytest.fixture()
def test_department(db_session: Session) -> Department:
    dept = Department(name="Sell Sheets", description="Marketing sell sheets", color="#2563EB")
    db_session.add(dept)
    db_session.commit()
    db_session.refresh(dept)
    return dept


@pytest.fixture()
def test_job(db_session: Session, test_user: User, designer_user: User) -> Job:
    """An active (non-draft) job owned by test_user, assigned to designer_user."""
    now = datetime.now(timezone.utc)
    job = Job(
        title="Widget Sell Sheet",
        description="One-page sell sheet",
        client_id=test_user.id,
        designer_id=designer_user.id,
        status="Pending",
        priority="Medium",
        package_type="Sell Sheet",
        is_draft=False,
        archived=False,
        created_at=now,
        updated_at=now,
        last_activity_date=now,
    )
    db_session.add(job)
    db_session.commit()
    db_session.refresh(job)
    return job


@pytest.fixture()
def job_file(db_session: Session, test_job: Job, test_user: User) -> FileUpload:
    f = FileUpload(
        job_id=test_job.id,
        uploaded_by=test_user.id,
        file_name="sketch.png",
        file_url="https://s3.example.com/bucket/jobs/1/sketch.png",
        file_key=f"jobs/{test_job.id}/1700000000000-abc-sketch.png",
        file_size=1234,
        mime_type="image/png",
        file_type="input",
    )
    db_session.add(f)
    db_session.commit()
    db_session.refresh(f)
    return f


def _client_for(db_session: Session, user: User | None):
    """TestClient with get_db pointed at the test session and, when given, auth as `user`."""
    from app.database import get_db
    from app.dependencies import get_optional_user, require_user
    from app.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    if user is not None:
        app.dependency_overrides[require_user] = lambda: user
        app.dependency_overrides[get_optional_user] = lambda: user

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def client(db_session: Session, test_user: User):
    """TestClient authenticated as test_user (client role)."""
    yield from _client_for(db_session, test_user)


@pytest.fixture()
def designer_client(db_session: Session, designer_user: User):
    yield from _client_for(db_session, designer_user)


@pytest.fixture()
def manager_client(db_session: Session, manager_user: User):
    yield from _client_for(db_session, manager_user)


@pytest.fixture()
def admin_client(db_session: Session, admin_user: User):
    yield from _client_for(db_session, admin_user)


@pytest.fixture()
def anon_client(db_session: Session):
    """TestClient with the real auth path (Bearer header / cookie)."""
    yield from _client_for(db_session, None)


@pytest.fixture()
def auth_header():
    """Build an Authorization header carrying a real JWT for a user."""
    from app.services.auth_service import create_token

    def _build(user: User) -> dict:
        return {"Authorization": f"Bearer {create_token(user)}"}

    return _build


@pytest.fixture()
def outsider_client(db_session: Session, other_client: User):
    """TestClient authenticated as a client with no relation to test_job."""
    yield from _client_for(db_session, other_client)
