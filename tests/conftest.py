"""
Shared fixtures: in-memory SQLite store, seeded organization and users,
caller identities, and an HTTP client bound to the test session.
"""

import os

os.environ.setdefault("BO_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BO_EMAIL_BACKEND", "console")
os.environ.setdefault("BO_SECRET_KEY", "test-secret-key-with-enough-bytes-for-hs256")
os.environ.setdefault("BO_APP_URL", "https://app.example.test")

from datetime import datetime, timezone  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import backoffice.models  # noqa: E402,F401
from backoffice.core.auth import CallerIdentity, create_session_token  # noqa: E402
from backoffice.core.database import get_session  # noqa: E402
from backoffice.models import Organization, User  # noqa: E402


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session(engine):
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as s:
        yield s


def _user(user_id: str, email: str, role: str, org_id: str) -> User:
    now = datetime.now(timezone.utc)
    return User(
        id=user_id,
        name=email.split("@")[0],
        email=email,
        email_verified=True,
        org_id=org_id,
        role=role,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
async def org(session):
    o = Organization(id="org_acme", name="Acme")
    session.add(o)
    await session.commit()
    return o


@pytest.fixture
async def admin_user(session, org):
    u = _user("usr_admin", "admin@acme.test", "admin", org.id)
    session.add(u)
    await session.commit()
    return u


@pytest.fixture
async def member_user(session, org):
    u = _user("usr_member", "member@acme.test", "user", org.id)
    session.add(u)
    await session.commit()
    return u


@pytest.fixture
def admin_caller(admin_user):
    return CallerIdentity(user_id=admin_user.id, role="admin")


@pytest.fixture
def member_caller(member_user):
    return CallerIdentity(user_id=member_user.id, role="user")


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def app(session):
    from backoffice.main import app as fastapi_app

    async def _session_override():
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    fastapi_app.dependency_overrides[get_session] = _session_override
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def revocation_check():
    with patch(
        "backoffice.core.auth.is_session_revoked",
        new_callable=AsyncMock,
        return_value=False,
    ) as mock:
        yield mock


@pytest.fixture
async def client(app, revocation_check):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers(admin_user):
    token, _jti = create_session_token(admin_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def member_headers(member_user):
    token, _jti = create_session_token(member_user.id)
    return {"Authorization": f"Bearer {token}"}
