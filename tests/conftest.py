"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models.session import RecordingSession, ScenarioType
from app.services.blob_store import LocalBlobStore, set_blob_store
from app.services.jwt import get_jwt_service
from app.services.session import SessionService


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="blob_store")
def blob_store_fixture(tmp_path):
    """Local blob store under a temp dir, installed as the app's store."""
    store = LocalBlobStore(tmp_path / "blobs", "http://testserver")
    set_blob_store(store)
    yield store
    set_blob_store(None)


@pytest.fixture(name="client")
def client_fixture(db_session: Session, blob_store: LocalBlobStore):
    """Create a test client with overridden DB dependency and disabled rate limiting."""
    from app.rate_limit import limiter
    from app.services import stitcher as stitcher_module
    from app.services import summary as summary_module
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Point stitch workers and background summary generation at the test DB session
    stitcher_module._session_factory = lambda: db_session
    summary_module._session_factory = lambda: db_session

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()
    stitcher_module._session_factory = None
    summary_module._session_factory = None


@pytest.fixture(name="auth_headers")
def auth_headers_fixture() -> dict:
    """Bearer headers for principal user_123."""
    token = get_jwt_service().create_token("user_123")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="other_headers")
def other_headers_fixture() -> dict:
    """Bearer headers for a second principal."""
    token = get_jwt_service().create_token("user_456")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="recording_session")
def recording_session_fixture(db_session: Session) -> RecordingSession:
    """An active in-person session owned by user_123."""
    return SessionService().create_session(db_session, "user_123", ScenarioType.IN_PERSON, title="Intake")
