"""Post and user stores over the SQLAlchemy async session.

The feed planner only sees the ``PostStore`` / ``UserStore`` protocols, so it
can be exercised against in-memory doubles. SQLAlchemy failures are translated
here: reads raise ``StoreUnavailable``, commits raise ``PersistFailure``.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, Protocol, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hotfeed.core.errors import PersistFailure, StoreUnavailable
from hotfeed.models import Comment, Post, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankEntry:
    """The columns the ranking pass needs, for every post."""
    id: UUID
    score: int | None
    created_at: datetime


@dataclass(frozen=True)
class PostRow:
    id: UUID
    author_id: UUID
    title: str
    link: str | None
    body: str
    score: int | None
    created_at: datetime
    updated_at: datetime
    comment_count: int


@dataclass(frozen=True)
class AuthorProjection:
    id: UUID
    user_name: str


class PostStore(Protocol):
    async def rank_entries(self) -> list[RankEntry]:
        """Return the ranking projection of every post."""
        ...

    async def load_page(self, ids: Sequence[UUID]) -> list[PostRow]:
        """Return full rows plus comment counts for ``ids`` only, in any order."""
        ...

    async def count(self) -> int:
        ...


class UserStore(Protocol):
    async def project_authors(self, ids: Iterable[UUID]) -> dict[UUID, AuthorProjection]:
        """Return ``{id: projection}`` for the ids that exist."""
        ...


@contextmanager
def reading(what: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("store read failed while loading %s: %s", what, exc)
        raise StoreUnavailable(f"store unavailable while loading {what}") from exc


async def commit(db: AsyncSession, what: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("commit failed for %s: %s", what, exc)
        raise PersistFailure(f"failed to {what}") from exc


class SqlPostStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def rank_entries(self) -> list[RankEntry]:
        with reading("ranking entries"):
            res = await self.db.execute(select(Post.id, Post.score, Post.created_at))
            return [RankEntry(id=r.id, score=r.score, created_at=r.created_at) for r in res.all()]

    async def load_page(self, ids: Sequence[UUID]) -> list[PostRow]:
        if not ids:
            return []
        comment_count = (
            select(func.count(Comment.id))
            .where(Comment.post_id == Post.id)
            .correlate(Post)
            .scalar_subquery()
        )
        stmt = select(
            Post.id,
            Post.author_id,
            Post.title,
            Post.link,
            Post.body,
            Post.score,
            Post.created_at,
            Post.updated_at,
            comment_count.label("comment_count"),
        ).where(Post.id.in_(list(ids)))
        with reading("feed page"):
            res = await self.db.execute(stmt)
            return [PostRow(**r._asdict()) for r in res.all()]

    async def count(self) -> int:
        with reading("post count"):
            res = await self.db.execute(select(func.count()).select_from(Post))
            return int(res.scalar_one())

    async def find_by_id(self, post_id: UUID, *, with_comments: bool = False) -> Post | None:
        stmt = select(Post).where(Post.id == post_id)
        if with_comments:
            stmt = stmt.options(selectinload(Post.comments))
        with reading(f"post {post_id}"):
            res = await self.db.execute(stmt)
            return res.scalar_one_or_none()

    async def insert(self, obj: Post | Comment) -> None:
        self.db.add(obj)
        await self.commit(f"insert {type(obj).__name__.lower()}")

    async def delete(self, post: Post) -> None:
        await self.db.delete(post)
        await self.commit(f"delete post {post.id}")

    async def commit(self, what: str) -> None:
        await commit(self.db, what)


class SqlUserStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def project_authors(self, ids: Iterable[UUID]) -> dict[UUID, AuthorProjection]:
        wanted = set(ids)
        if not wanted:
            return {}
        with reading("author projections"):
            res = await self.db.execute(select(User.id, User.user_name).where(User.id.in_(list(wanted))))
            return {r.id: AuthorProjection(id=r.id, user_name=r.user_name) for r in res.all()}

    async def find_by_ids(self, ids: Iterable[UUID]) -> dict[UUID, User]:
        wanted = set(ids)
        if not wanted:
            return {}
        with reading("users"):
            res = await self.db.execute(select(User).where(User.id.in_(list(wanted))))
            return {u.id: u for u in res.scalars().all()}

    async def insert(self, user: User) -> None:
        self.db.add(user)
        await commit(self.db, f"insert user {user.user_name}")

    async def find_by_name(self, user_name: str) -> User | None:
        with reading(f"user {user_name}"):
            res = await self.db.execute(select(User).where(User.user_name == user_name))
            return res.scalar_one_or_none()
