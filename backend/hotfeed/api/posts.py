from __future__ import annotations
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from hotfeed.api.deps import get_current_user_id, get_now
from hotfeed.api.schemas import (
    CommentCreateIn,
    CommentOut,
    ImageOut,
    MessageOut,
    PostDetailOut,
    PostEditIn,
    PostOut,
    UserOut,
)
from hotfeed.core.ratelimit import limiter
from hotfeed.core.settings import settings
from hotfeed.db.session import get_db
from hotfeed.models import Post
from hotfeed.services.posts import ImageUpload, PostService

router = APIRouter(prefix="/posts", tags=["posts"])

def _image_out(post: Post) -> ImageOut | None:
    if post.image_blob_id is None:
        return None
    return ImageOut(id=post.image_blob_id, mime_type=post.image_mime_type or "application/octet-stream", size=post.image_size or 0)

def _post_out(post: Post) -> PostOut:
    return PostOut(
        id=post.id,
        title=post.title,
        link=post.link,
        body=post.body,
        score=post.score,
        author_id=post.author_id,
        created_at=post.created_at,
        updated_at=post.updated_at,
        image=_image_out(post),
    )

async def _read_image(image: UploadFile | None) -> ImageUpload | None:
    if image is None or not image.filename:
        return None
    content_type = (image.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Attachment must be an image")
    data = await image.read()
    if len(data) > settings.max_image_bytes:
        raise HTTPException(status_code=413, detail=f"Image too large. Maximum size: {settings.max_image_bytes} bytes")
    return ImageUpload(filename=image.filename, content_type=content_type, data=data)

@router.post("", response_model=PostOut, status_code=201)
@limiter.limit(settings.create_post_rate_limit)
async def create_post(
    request: Request,
    title: str = Form(..., min_length=1, max_length=300),
    link: Optional[str] = Form(default=None, max_length=2048),
    body: str = Form(default=""),
    image: Optional[UploadFile] = File(default=None),
    user_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: AsyncSession = Depends(get_db),
):
    upload = await _read_image(image)
    post = await PostService(db).create(user_id, title, link or None, body, now, image=upload)
    return _post_out(post)

@router.get("/{post_id}", response_model=PostDetailOut)
async def get_post(post_id: UUID, db: AsyncSession = Depends(get_db)):
    detail = await PostService(db).get(post_id)
    post = detail.post
    return PostDetailOut(
        id=post.id,
        title=post.title,
        link=post.link,
        body=post.body,
        score=post.score,
        created_at=post.created_at,
        updated_at=post.updated_at,
        author=UserOut.model_validate(detail.author),
        comments=[
            CommentOut(
                id=c.id,
                body=c.body,
                created_at=c.created_at,
                author=UserOut.model_validate(detail.comment_authors[c.author_id]),
            )
            for c in post.comments
        ],
        image=_image_out(post),
    )

@router.patch("/{post_id}", response_model=PostOut)
async def edit_post(
    post_id: UUID,
    data: PostEditIn,
    user_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: AsyncSession = Depends(get_db),
):
    post = await PostService(db).edit(post_id, user_id, data.model_dump(exclude_unset=True), now)
    return _post_out(post)

@router.delete("/{post_id}", response_model=MessageOut)
async def delete_post(post_id: UUID, user_id: UUID = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    await PostService(db).delete(post_id, user_id)
    return MessageOut(message="post deleted")

@router.post("/{post_id}/comments", response_model=CommentOut, status_code=201)
async def add_comment(
    post_id: UUID,
    data: CommentCreateIn,
    user_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: AsyncSession = Depends(get_db),
):
    comment, author = await PostService(db).add_comment(post_id, user_id, data.body, now)
    return CommentOut(id=comment.id, body=comment.body, created_at=comment.created_at, author=UserOut.model_validate(author))

@router.get("/{post_id}/image")
async def get_post_image(post_id: UUID, db: AsyncSession = Depends(get_db)):
    blob = await PostService(db).image(post_id)
    return Response(content=blob.data, media_type=blob.content_type)
