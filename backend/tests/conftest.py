import os
from datetime import datetime, timedelta, timezone
from uuid import uuid4

# Settings are read at import time; pin them before anything from hotfeed loads.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CREATE_POST_RATE_LIMIT", "1000/minute")
os.environ.setdefault("HEALTH_RATE_LIMIT", "1000/minute")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hotfeed.api.deps import get_now
from hotfeed.db.base import Base
from hotfeed.db.session import get_db
from hotfeed.main import app
from hotfeed.models import Comment, Post, User
from hotfeed.services.auth import issue_token

FIXED_NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A fresh SQLite database file per test, with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hotfeed.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest_asyncio.fixture
async def api_client(session_factory, now):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_now] = lambda: now
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory, now):
    async def _make(user_name: str = "alice") -> User:
        user = User(id=uuid4(), user_name=user_name, password_hash="not-a-real-hash", created_at=now)
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _make


@pytest.fixture
def make_post(session_factory, now):
    async def _make(
        author_id,
        *,
        title: str = "a post",
        score: int | None = 0,
        age_hours: float = 0.0,
        comments: int = 0,
        comment_author_id=None,
    ) -> Post:
        created_at = now - timedelta(hours=age_hours)
        post = Post(
            id=uuid4(),
            author_id=author_id,
            title=title,
            link=None,
            body=f"body of {title}",
            score=score,
            created_at=created_at,
            updated_at=created_at,
        )
        async with session_factory() as session:
            session.add(post)
            for i in range(comments):
                session.add(
                    Comment(
                        id=uuid4(),
                        post_id=post.id,
                        author_id=comment_author_id or author_id,
                        body=f"comment {i}",
                        created_at=created_at + timedelta(minutes=i),
                    )
                )
            await session.flush()
            if score is None:
                # The column default would otherwise replace None with 0.
                await session.execute(update(Post).where(Post.id == post.id).values(score=None))
            await session.commit()
        return post

    return _make


def auth_headers(user_id) -> dict:
    return {"Authorization": f"Bearer {issue_token(user_id, 'test-user')}"}


@pytest.fixture
def headers_for():
    return auth_headers
