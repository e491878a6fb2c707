"""
Pytest configuration and shared fixtures for the VideoTube backend.
"""
import os
import sys
import tempfile
from pathlib import Path

# Ensure backend package is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

# Test environment, set BEFORE app settings are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOCAL_STORAGE_PATH", tempfile.mkdtemp(prefix="videotube-test-"))

# Patch PostgreSQL UUID type BEFORE any imports
from sqlalchemy.dialects import postgresql
from sqlalchemy import TypeDecorator, CHAR
import uuid as uuid_module


class GUID(TypeDecorator):
    """Platform-independent GUID type. Uses PostgreSQL's UUID type, otherwise uses CHAR(36)."""
    impl = CHAR
    cache_ok = True

    def __init__(self, as_uuid=True):
        """Accept as_uuid parameter for compatibility with PostgreSQL UUID."""
        self.as_uuid = as_uuid
        super().__init__()

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(_original_uuid(as_uuid=self.as_uuid))
        else:
            return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        elif isinstance(value, uuid_module.UUID):
            return value
        else:
            return uuid_module.UUID(value)


# Monkey patch BEFORE models are imported
_original_uuid = postgresql.UUID
postgresql.UUID = GUID

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.

    Uses an in-memory SQLite database for fast, isolated testing.
    UUID type has been patched at module level to work with SQLite.
    """
    from app.db.base import Base
    import app.models  # noqa: F401  (register all tables)

    # Create in-memory SQLite database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_settings():
    """Settings with fixed secrets and a cheap hash cost."""
    from app.core.config import Settings

    return Settings(
        environment="development",
        access_token_secret="test-access-secret",
        refresh_token_secret="test-refresh-secret",
        access_token_expire_minutes=15,
        refresh_token_expire_days=7,
        password_hash_rounds=4,
        rate_limit_enabled=False,
    )


@pytest.fixture
def hasher(test_settings):
    from app.core.security import PasswordHasher

    return PasswordHasher(rounds=test_settings.password_hash_rounds)


@pytest.fixture
def store(hasher):
    from app.services.credential_store import CredentialStore

    return CredentialStore(hash_password=hasher.hash)


@pytest.fixture
def tokens(test_settings, store, hasher):
    from app.services.token_service import TokenService

    return TokenService(test_settings, store, hasher)


@pytest.fixture
def make_user(db, store):
    """Factory creating users through the credential store."""
    from app.schemas import UserCreateFields

    def _make_user(username="alice", email=None, full_name=None, password=TEST_PASSWORD):
        return store.create(
            db,
            UserCreateFields(
                username=username,
                email=email or f"{username}@example.com",
                full_name=full_name or username.capitalize(),
                avatar=f"/media/avatars/{username}.png",
                cover_image=f"/media/cover-images/{username}.png",
                password=password,
            ),
        )

    return _make_user


@pytest.fixture
def make_video(db):
    """Factory creating videos owned by a user."""
    from app.models import Video

    def _make_video(owner, title="Untitled"):
        video = Video(
            owner_id=owner.id if owner is not None else None,
            video_file=f"/media/videos/{title}.mp4",
            thumbnail=f"/media/thumbnails/{title}.png",
            title=title,
            duration_seconds=60.0,
        )
        db.add(video)
        db.commit()
        db.refresh(video)
        return video

    return _make_video


@pytest.fixture
def client(db):
    """Test client for the full app with the test database injected."""
    from fastapi.testclient import TestClient
    from app.main import app
    from app.db.base import get_db

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_password():
    """Plaintext password used by make_user."""
    return TEST_PASSWORD
