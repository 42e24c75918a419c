"""테스트 인프라 — 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite DB, session, and httpx client fixtures.
Each test gets a fresh schema on its own engine; external services (SMTP,
Stripe, Close.com) are disabled by default settings and patched per test.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from teamhub.config import settings
from teamhub.database import Base, get_db
from teamhub.main import app
from teamhub.models import *  # noqa: F401,F403 — register all models with metadata
from teamhub.models.team import Membership, MembershipRole, Team
from teamhub.models.user import User, UserPlan
from teamhub.utils.jwt import create_access_token

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ---------------------------------------------------------------------------
# Settings: 외부 연동 비활성화 (External integrations off unless a test opts in)
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "HOSTED_FEATURES", False)
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "")
    monkeypatch.setattr(settings, "CLOSECOM_API_KEY", "")
    monkeypatch.setattr(settings, "SMTP_HOST", "")
    monkeypatch.setattr(settings, "AXIOM_API_TOKEN", "")


@pytest.fixture
def hosted(monkeypatch: pytest.MonkeyPatch) -> None:
    """호스팅(과금) 기능을 켭니다."""
    monkeypatch.setattr(settings, "HOSTED_FEATURES", True)
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setattr(settings, "STRIPE_PRO_PRICE_ID", "price_pro")
    monkeypatch.setattr(settings, "STRIPE_TEAM_SEAT_PRICE_ID", "price_seat")


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 매 테스트마다 빈 스키마를 생성합니다."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
async def create_user(
    db: AsyncSession,
    username: str | None,
    email: str | None = None,
    name: str | None = None,
    plan: UserPlan = UserPlan.PRO,
    **extra,
) -> User:
    """테스트 사용자를 생성합니다."""
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        name=name if name is not None else (username or "").title() or None,
        plan=plan,
        **extra,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def add_member(
    db: AsyncSession,
    team: Team,
    user: User,
    role: MembershipRole = MembershipRole.MEMBER,
    accepted: bool = True,
) -> Membership:
    """팀에 멤버십을 추가합니다."""
    membership = Membership(team_id=team.id, user_id=user.id, role=role, accepted=accepted)
    db.add(membership)
    await db.flush()
    return membership


@pytest_asyncio.fixture
async def owner(db: AsyncSession) -> User:
    return await create_user(db, "owner", name="Olivia Owner")


@pytest_asyncio.fixture
async def admin(db: AsyncSession) -> User:
    return await create_user(db, "admin", name="Adam Admin")


@pytest_asyncio.fixture
async def member(db: AsyncSession) -> User:
    return await create_user(db, "member", name="Mia Member")


@pytest_asyncio.fixture
async def outsider(db: AsyncSession) -> User:
    return await create_user(db, "outsider", name="Oscar Outsider")


@pytest_asyncio.fixture
async def team(db: AsyncSession, owner: User, admin: User, member: User) -> Team:
    """소유자/관리자/멤버가 모두 수락한 팀을 생성합니다."""
    t = Team(name="Acme", slug="acme")
    db.add(t)
    await db.flush()
    await db.refresh(t)
    await add_member(db, t, owner, MembershipRole.OWNER)
    await add_member(db, t, admin, MembershipRole.ADMIN)
    await add_member(db, t, member, MembershipRole.MEMBER)
    await db.commit()
    return t


def make_token(user: User) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({"sub": str(user.id)})


def auth_header(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user)}"}
