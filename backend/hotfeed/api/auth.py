from __future__ import annotations
from datetime import datetime
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from hotfeed.api.deps import get_now
from hotfeed.api.schemas import LoginIn, RegisterIn, TokenOut, UserOut
from hotfeed.db.session import get_db
from hotfeed.models import User
from hotfeed.services.auth import hash_password, issue_token, password_matches
from hotfeed.services.store import SqlUserStore

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=UserOut, status_code=201)
async def register(data: RegisterIn, now: datetime = Depends(get_now), db: AsyncSession = Depends(get_db)):
    users = SqlUserStore(db)
    if await users.find_by_name(data.user_name):
        raise HTTPException(status_code=409, detail="Account already exists")
    user = User(id=uuid4(), user_name=data.user_name, password_hash=hash_password(data.password), created_at=now)
    await users.insert(user)
    return user

@router.post("/login", response_model=TokenOut)
async def login(data: LoginIn, db: AsyncSession = Depends(get_db)):
    user = await SqlUserStore(db).find_by_name(data.user_name)
    if not user or not password_matches(user.password_hash, data.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return TokenOut(access_token=issue_token(user.id, user.user_name))
