from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from hotfeed.core.errors import DanglingAuthor, Forbidden, NotFound
from hotfeed.models import Blob, Comment, Post, User
from hotfeed.services.blobs import BlobStore
from hotfeed.services.store import SqlPostStore, SqlUserStore

logger = logging.getLogger(__name__)

# Author and score are never touched by an edit.
EDITABLE_FIELDS = ("title", "link", "body")


@dataclass
class ImageUpload:
    filename: str
    content_type: str
    data: bytes


@dataclass
class PostDetail:
    post: Post
    author: User
    comment_authors: dict[UUID, User]


def authorize(post: Post, user_id: UUID) -> None:
    if post.author_id != user_id:
        raise Forbidden("not authorized")


class PostService:
    def __init__(self, db: AsyncSession) -> None:
        self.posts = SqlPostStore(db)
        self.users = SqlUserStore(db)
        self.blobs = BlobStore(db)

    async def _require_user(self, user_id: UUID) -> User:
        users = await self.users.find_by_ids([user_id])
        if user_id not in users:
            raise NotFound(f"user {user_id} not found")
        return users[user_id]

    async def create(
        self,
        author_id: UUID,
        title: str,
        link: str | None,
        body: str,
        now: datetime,
        image: ImageUpload | None = None,
    ) -> Post:
        await self._require_user(author_id)
        post = Post(
            id=uuid4(),
            author_id=author_id,
            title=title,
            link=link,
            body=body,
            score=0,
            created_at=now,
            updated_at=now,
        )
        if image is not None:
            post.image_blob_id = await self.blobs.put(image.filename, image.data, content_type=image.content_type)
            post.image_mime_type = image.content_type
            post.image_size = len(image.data)
        await self.posts.insert(post)
        logger.info("post %s created by %s", post.id, author_id)
        return post

    async def get(self, post_id: UUID) -> PostDetail:
        post = await self.posts.find_by_id(post_id, with_comments=True)
        if post is None:
            raise NotFound(f"No post found for id: {post_id}")
        users = await self.users.find_by_ids({post.author_id, *(c.author_id for c in post.comments)})
        author = users.get(post.author_id)
        if author is None:
            raise DanglingAuthor(post.id, post.author_id)
        for comment in post.comments:
            if comment.author_id not in users:
                raise DanglingAuthor(post.id, comment.author_id)
        return PostDetail(post=post, author=author, comment_authors=users)

    async def _owned(self, post_id: UUID, user_id: UUID, *, with_comments: bool = False) -> Post:
        post = await self.posts.find_by_id(post_id, with_comments=with_comments)
        if post is None:
            raise NotFound("post not found")
        authorize(post, user_id)
        return post

    async def edit(self, post_id: UUID, user_id: UUID, changes: Mapping[str, Any], now: datetime) -> Post:
        post = await self._owned(post_id, user_id)
        for field in EDITABLE_FIELDS:
            if field in changes:
                setattr(post, field, changes[field])
        post.updated_at = now
        await self.posts.commit(f"edit post {post_id}")
        return post

    async def delete(self, post_id: UUID, user_id: UUID) -> None:
        # Comments are owned and go with the post; the image blob is only referenced.
        post = await self._owned(post_id, user_id, with_comments=True)
        await self.posts.delete(post)
        logger.info("post %s deleted by %s", post_id, user_id)

    async def add_comment(self, post_id: UUID, user_id: UUID, body: str, now: datetime) -> tuple[Comment, User]:
        post = await self.posts.find_by_id(post_id)
        if post is None:
            raise NotFound("post not found")
        author = await self._require_user(user_id)
        comment = Comment(id=uuid4(), post_id=post.id, author_id=user_id, body=body, created_at=now)
        await self.posts.insert(comment)
        return comment, author

    async def image(self, post_id: UUID) -> Blob:
        post = await self.posts.find_by_id(post_id)
        if post is None or post.image_blob_id is None:
            raise NotFound(f"No image found for post: {post_id}")
        blob = await self.blobs.get(post.image_blob_id)
        if blob is None:
            raise NotFound(f"Image {post.image_blob_id} is missing from storage")
        return blob
