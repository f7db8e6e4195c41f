from __future__ import annotations
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hotfeed.api.deps import get_now
from hotfeed.api.schemas import FeedOut, RankedPostOut
from hotfeed.core.settings import settings
from hotfeed.db.session import get_db
from hotfeed.services.feed import FeedQueryPlanner
from hotfeed.services.store import SqlPostStore, SqlUserStore

router = APIRouter(tags=["feed"])

@router.get("/posts", response_model=FeedOut)
async def get_feed(
    # Raw text on purpose: page/limit are parsed by the planner, not coerced here.
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    now: datetime = Depends(get_now),
    db: AsyncSession = Depends(get_db),
):
    planner = FeedQueryPlanner(SqlPostStore(db), SqlUserStore(db))
    result = await planner.query(page, limit, now, default_limit=settings.feed_default_limit)
    return FeedOut(
        posts=[RankedPostOut.model_validate(view) for view in result.posts],
        total_pages=result.total_pages,
    )
