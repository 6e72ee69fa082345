import asyncio
import io
import os
import tempfile
import zipfile
from uuid import uuid4

import pytest

# Settings are read once at import time, so the test environment has to be in
# place before anything under artifact_review is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["OBJECT_STORE_BACKEND"] = "fs"
os.environ["LOCAL_OBJECT_STORE_PATH"] = tempfile.mkdtemp(prefix="artifact_review_store_")
os.environ["GRACE_PERIOD_SECONDS"] = "5"
os.environ["MAILER_BACKEND"] = "log"
os.environ["ENVIRONMENT"] = "test"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from artifact_review.core.security import Identity, UserId, hash_password  # noqa: E402
from artifact_review.models import Base, User  # noqa: E402
from artifact_review.storage.object_store import FilesystemObjectStore  # noqa: E402


@pytest.fixture(scope="session")
def client():
    from artifact_review.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def sign_up(client):
    def _sign_up(email: str | None = None, password: str = "password123", **extra) -> dict:
        email = email or f"user-{uuid4().hex[:10]}@example.com"
        resp = client.post("/api/v1/auth/sign-up", json={"email": email, "password": password, **extra})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        return {
            "email": email,
            "user_id": body["user_id"],
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _sign_up


@pytest.fixture
def run_db(tmp_path):
    """Run an async scenario against a fresh SQLite file database.

    Calling the runner more than once inside a test reuses the same file, which
    lets a test read back state through a brand-new session.
    """
    db_path = tmp_path / "unit.db"

    def runner(scenario):
        async def _main():
            engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            maker = async_sessionmaker(engine, expire_on_commit=False)
            try:
                async with maker() as session:
                    return await scenario(session)
            finally:
                await engine.dispose()

        return asyncio.run(_main())

    return runner


@pytest.fixture
def store(tmp_path):
    return FilesystemObjectStore(tmp_path / "objects", "test-bucket")


@pytest.fixture
def make_user():
    async def _make(session, email: str | None = None, password: str | None = None, username: str | None = None) -> Identity:
        user = User(
            email=email,
            username=username,
            is_anonymous=email is None,
            password_hash=hash_password(password) if password else None,
        )
        session.add(user)
        await session.commit()
        return Identity(user_id=UserId(user.user_id))

    return _make


@pytest.fixture
def make_zip():
    def _make(files: dict[str, bytes | str]) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as archive:
            for name, content in files.items():
                archive.writestr(name, content)
        return buf.getvalue()

    return _make
