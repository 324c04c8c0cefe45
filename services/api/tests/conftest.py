"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database; the API client overrides
the session and mailer dependencies so nothing leaves the process.
"""
import os
import re

# Must be set before postboard.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("OTEL_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-bytes")
os.environ.setdefault("MAIL_BACKEND", "console")
os.environ.setdefault("S3_BASE_URL", "https://cdn.example.com/")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import postboard.models  # noqa: F401  (registers tables)
from postboard.clients.mailer import Mailer, get_mailer
from postboard.database import Base, get_db
from postboard.main import app
from postboard.schemas import SignupRequest
from postboard.stores.posts import PostStore
from postboard.stores.users import UserStore

PASSWORD = "secret123"


class RecordingMailer(Mailer):
    """Keeps sent messages in memory instead of delivering them."""

    def __init__(self) -> None:
        super().__init__(backend="console")
        self.outbox: list[dict] = []

    async def send(self, to: str, subject: str, body: str) -> None:
        self.outbox.append({"to": to, "subject": subject, "body": body})

    def last_otp(self, to: str) -> str:
        for msg in reversed(self.outbox):
            if msg["to"] == to and (m := re.search(r"code is (\d+)", msg["body"])):
                return m.group(1)
        raise AssertionError(f"no verification email sent to {to}")

    def last_reset_token(self, to: str) -> str:
        for msg in reversed(self.outbox):
            if msg["to"] == to and (m := re.search(r"token=([0-9a-f-]+)", msg["body"])):
                return m.group(1)
        raise AssertionError(f"no reset email sent to {to}")


def signup_body(email: str, first: str = "Ada", last: str = "Lovelace", **overrides) -> dict:
    body = {
        "email": email,
        "password": PASSWORD,
        "user_type": "individual",
        "first_name": first,
        "last_name": last,
        "mobile": "5550100",
        "country_code": "+1",
        "country": "US",
        "pincode": "94105",
        "city": "San Francisco",
        "qualification": "BSc",
        "dob": "1990-01-01",
        "exp_in_year": "3",
        "skills": "python",
        "marital_status": "single",
        "profile_pic": f"https://cdn.example.com/{first.lower()}.png",
    }
    body.update(overrides)
    return body


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def user_store(session) -> UserStore:
    return UserStore(session)


@pytest.fixture
def post_store(session) -> PostStore:
    return PostStore(session)


@pytest.fixture
def make_user(user_store):
    """Create a verified user directly through the store."""

    async def _make(email: str, first: str = "Ada", last: str = "Lovelace"):
        user = await user_store.create(SignupRequest(**signup_body(email, first, last)))
        await user_store.verify_email(email, user.email_verification_otp)
        return user

    return _make


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest_asyncio.fixture
async def client(session_factory, mailer):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def register(client, mailer):
    """Sign up, verify and log in through the API; returns (user, auth headers)."""

    async def _register(email: str, first: str = "Ada", last: str = "Lovelace"):
        resp = await client.post("/api/auth/signup", json=signup_body(email, first, last))
        assert resp.status_code == 200, resp.text
        otp = mailer.last_otp(email)
        resp = await client.post("/api/auth/verify-email", json={"email": email, "otp": otp})
        assert resp.status_code == 200, resp.text
        resp = await client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _register
