import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
# Force dev mode for default test app; auth/production tests patch settings explicitly
os.environ["APP_ENV"] = "dev"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")  # Disable rate limiting in tests
os.environ.pop("ADMIN_API_KEY", None)
os.environ.pop("SPREADSHEET_WEBHOOK_URL", None)

from app.db.base import Base
from app.db.deps import get_db
# Import all models so Base.metadata includes every table
import app.db.models as _models  # noqa: F401
from app.main import app
from app.middleware.rate_limit import reset_rate_limits
from tests.helpers.webhooks import WebhookRecorder

# Test database URL (in-memory SQLite for fast tests)
SQLALCHEMY_DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///:memory:")


def is_sqlite() -> bool:
    """Return True if the test database is SQLite (e.g. in-memory tests)."""
    url = SQLALCHEMY_DATABASE_URL or ""
    return url.startswith("sqlite")


# SQLite needs check_same_thread=False and StaticPool; Postgres does not support check_same_thread
if is_sqlite():
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Make the app (error handler, cleanup job) use the same DB
import app.db.session as _db_session

_db_session.engine = engine
_db_session.SessionLocal = TestingSessionLocal


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database dependency override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True, scope="function")
def clear_rate_limits():
    """Rate limit windows are per process; start every test with empty buckets."""
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture(scope="function")
def webhooks(monkeypatch):
    """
    Route spreadsheet and CRM webhook calls through an httpx.MockTransport.

    Every outbound request is recorded on the returned WebhookRecorder; set
    recorder.responder to change the reply (default: 200 {"ok": true}).
    """
    recorder = WebhookRecorder()
    monkeypatch.setattr("app.services.delivery.spreadsheet.create_httpx_client", recorder.client_factory)
    monkeypatch.setattr("app.services.delivery.crm.create_httpx_client", recorder.client_factory)
    return recorder
