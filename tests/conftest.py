"""테스트 인프라 — 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite (aiosqlite) database, session and
httpx client fixtures. Every test gets a fresh schema, so no cleanup pass
is needed. Process-wide state (rate limiter, outbound API clients) is reset
between tests.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import *  # noqa: F401,F403 — register all models with metadata
from app.models.post import Post
from app.models.profile import Profile
from app.services.gif_service import set_gif_service
from app.services.music_service import set_music_service
from app.utils import roles
from app.utils.jwt import create_access_token
from app.utils.moderation_client import set_moderation_client
from app.utils.password import hash_password
from app.utils.rate_limit import rate_limiter

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "password123!"


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진 — 커넥션 하나를 공유하는 인메모리 DB."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SAVEPOINT(begin_nested) 지원을 위해 트랜잭션 시작을 직접 제어
    @event.listens_for(eng.sync_engine, "connect")
    def _on_connect(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

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


@pytest.fixture(autouse=True)
def reset_process_state():
    """레이트 리미터와 외부 API 클라이언트 초기화."""
    rate_limiter.reset()
    set_music_service(None)
    set_gif_service(None)
    set_moderation_client(None)
    yield
    rate_limiter.reset()
    set_music_service(None)
    set_gif_service(None)
    set_moderation_client(None)


# ---------------------------------------------------------------------------
# 헬퍼: 테스트용 프로필 생성
# ---------------------------------------------------------------------------
async def create_profile(
    db: AsyncSession,
    username: str,
    role: int = roles.USER,
    **fields,
) -> Profile:
    """프로필 하나를 생성합니다 — 비밀번호는 TEST_PASSWORD."""
    profile = Profile(
        username=username,
        email=fields.pop("email", f"{username}@test.com"),
        password_hash=hash_password(TEST_PASSWORD),
        display_name=fields.pop("display_name", username.title()),
        role=role,
        **fields,
    )
    db.add(profile)
    await db.flush()
    await db.refresh(profile)
    return profile


@pytest_asyncio.fixture
async def alice(db: AsyncSession) -> Profile:
    return await create_profile(db, "alice")


@pytest_asyncio.fixture
async def bob(db: AsyncSession) -> Profile:
    return await create_profile(db, "bob")


@pytest_asyncio.fixture
async def carol(db: AsyncSession) -> Profile:
    return await create_profile(db, "carol")


@pytest_asyncio.fixture
async def junior_mod(db: AsyncSession) -> Profile:
    return await create_profile(db, "junior", roles.JUNIOR_MOD)


@pytest_asyncio.fixture
async def moderator(db: AsyncSession) -> Profile:
    return await create_profile(db, "moddy", roles.MODERATOR)


@pytest_asyncio.fixture
async def senior_mod(db: AsyncSession) -> Profile:
    return await create_profile(db, "senior", roles.SENIOR_MOD)


@pytest_asyncio.fixture
async def admin(db: AsyncSession) -> Profile:
    return await create_profile(db, "boss", roles.ADMIN)


def make_token(profile: Profile) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({
        "sub": str(profile.id),
        "username": profile.username,
        "role": profile.role,
    })


def auth_header(profile_or_token: Profile | str) -> dict[str, str]:
    token = profile_or_token if isinstance(profile_or_token, str) else make_token(profile_or_token)
    return {"Authorization": f"Bearer {token}"}


async def create_post(db: AsyncSession, author: Profile, **fields) -> Post:
    """발행된 텍스트 게시글 하나를 생성합니다."""
    fields.setdefault("status", "published")
    if fields["status"] == "published":
        fields.setdefault("published_at", datetime.now(timezone.utc))
    post = Post(
        author_id=author.id,
        post_type=fields.pop("post_type", "text"),
        content=fields.pop("content", {"html": "<p>hello</p>"}),
        **fields,
    )
    db.add(post)
    await db.flush()
    await db.refresh(post)
    return post
