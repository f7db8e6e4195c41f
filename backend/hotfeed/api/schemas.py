from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from uuid import UUID
from datetime import datetime

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class RegisterIn(CamelModel):
    user_name: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=8, max_length=128)

class LoginIn(CamelModel):
    user_name: str
    password: str

class TokenOut(CamelModel):
    access_token: str
    token_type: str = "bearer"

class PostEditIn(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    link: Optional[str] = Field(default=None, max_length=2048)
    body: Optional[str] = Field(default=None, max_length=40000)

    # Omitting a field leaves it alone; an explicit null is only meaningful for link.
    @field_validator("title", "body", mode="before")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

class CommentCreateIn(CamelModel):
    body: str = Field(min_length=1, max_length=10000)

class AuthorOut(CamelModel):
    id: UUID
    user_name: str

class UserOut(CamelModel):
    id: UUID
    user_name: str
    created_at: datetime

class ImageOut(CamelModel):
    id: UUID
    mime_type: str
    size: int

class PostOut(CamelModel):
    id: UUID
    title: str
    link: Optional[str]
    body: str
    score: Optional[int]
    author_id: UUID
    created_at: datetime
    updated_at: datetime
    image: Optional[ImageOut] = None

class CommentOut(CamelModel):
    id: UUID
    body: str
    created_at: datetime
    author: UserOut

class PostDetailOut(CamelModel):
    id: UUID
    title: str
    link: Optional[str]
    body: str
    score: Optional[int]
    created_at: datetime
    updated_at: datetime
    author: UserOut
    comments: list[CommentOut]
    image: Optional[ImageOut] = None

class RankedPostOut(CamelModel):
    id: UUID
    title: str
    link: Optional[str]
    body: str
    created_at: datetime
    updated_at: datetime
    score: Optional[int]
    comment_count: int
    author: AuthorOut

class FeedOut(CamelModel):
    posts: list[RankedPostOut]
    total_pages: int

class MessageOut(CamelModel):
    message: str
