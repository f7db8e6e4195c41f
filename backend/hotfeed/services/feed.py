"""Ranked, paginated feed.

Every post is scored against one ``now``, sorted by hot score (ties broken by
id so repeated calls page identically), sliced with offset pagination, and
only the retained page is enriched with its comment count and author
projection.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from hotfeed.core.errors import DanglingAuthor, MalformedQuery
from hotfeed.services.ranking import hot_score
from hotfeed.services.store import AuthorProjection, PostStore, RankEntry, UserStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return self.limit * (self.page - 1)


@dataclass(frozen=True)
class RankedPostView:
    id: UUID
    title: str
    link: str | None
    body: str
    created_at: datetime
    updated_at: datetime
    score: int | None
    sort_value: float
    comment_count: int
    author: AuthorProjection


@dataclass(frozen=True)
class FeedPage:
    posts: list[RankedPostView]
    total_pages: int


def _parse_positive_int(name: str, raw: str | int | None, default: int) -> int:
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        raise MalformedQuery(f"Malformed query parameter {name}: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = raw.strip()
        if not (text.isascii() and text.isdigit()):
            raise MalformedQuery(f"Malformed query parameter {name}: {raw!r}")
        try:
            value = int(text)
        except ValueError as exc:
            # int() refuses digit strings past the interpreter's conversion limit.
            raise MalformedQuery(f"Malformed query parameter {name}: {raw!r}") from exc
    if value < 1:
        raise MalformedQuery(f"Malformed query parameter {name}: {raw!r}")
    return value


def parse_page_request(page: str | int | None, limit: str | int | None, default_limit: int = 5) -> PageRequest:
    """Parse raw page/limit query values, rejecting anything but positive integers."""
    return PageRequest(
        page=_parse_positive_int("page", page, DEFAULT_PAGE),
        limit=_parse_positive_int("limit", limit, default_limit),
    )


def total_pages(total_count: int, limit: int) -> int:
    # Integer ceiling; float division loses precision on large counts.
    return -(-total_count // limit)


def order_entries(entries: list[RankEntry], now: datetime) -> list[tuple[float, RankEntry]]:
    scored = [(hot_score(e.score, e.created_at, now), e) for e in entries]
    scored.sort(key=lambda item: (-item[0], str(item[1].id)))
    return scored


class FeedQueryPlanner:
    def __init__(self, posts: PostStore, users: UserStore) -> None:
        self.posts = posts
        self.users = users

    async def query(
        self,
        page: str | int | None,
        limit: str | int | None,
        now: datetime,
        default_limit: int = 5,
    ) -> FeedPage:
        # Validation happens before any store access.
        request = parse_page_request(page, limit, default_limit)
        return await self.rank(request, now)

    async def rank(self, request: PageRequest, now: datetime) -> FeedPage:
        ranked = order_entries(await self.posts.rank_entries(), now)
        window = ranked[request.offset:request.offset + request.limit]

        sort_values = {entry.id: value for value, entry in window}
        rows = {row.id: row for row in await self.posts.load_page(list(sort_values))}
        authors = await self.users.project_authors({row.author_id for row in rows.values()})

        views: list[RankedPostView] = []
        for post_id, sort_value in sort_values.items():
            row = rows.get(post_id)
            if row is None:
                # Deleted between the ranking pass and the page load.
                logger.info("post %s vanished while loading feed page", post_id)
                continue
            author = authors.get(row.author_id)
            if author is None:
                logger.error("post %s references missing author %s", row.id, row.author_id)
                raise DanglingAuthor(row.id, row.author_id)
            views.append(
                RankedPostView(
                    id=row.id,
                    title=row.title,
                    link=row.link,
                    body=row.body,
                    created_at=row.created_at,
                    updated_at=row.updated_at,
                    score=row.score,
                    sort_value=sort_value,
                    comment_count=row.comment_count,
                    author=author,
                )
            )

        total = await self.posts.count()
        logger.debug("feed page=%s limit=%s returned %s of %s posts", request.page, request.limit, len(views), total)
        return FeedPage(posts=views, total_pages=total_pages(total, request.limit))
