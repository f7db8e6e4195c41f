from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hotfeed.core.errors import PersistFailure
from hotfeed.models import Blob
from hotfeed.services.store import reading

logger = logging.getLogger(__name__)


class BlobStore:
    """Image bytes kept in the ``blobs`` table, next to the posts that point at them."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def put(self, name: str, data: bytes, *, content_type: str) -> UUID:
        # Flushed only; committed together with the post that references it.
        blob = Blob(
            id=uuid4(),
            name=name,
            content_type=content_type,
            size=len(data),
            data=data,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(blob)
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("failed to store blob %s: %s", name, exc)
            raise PersistFailure(f"failed to store image {name}") from exc
        logger.debug("stored blob %s (%s, %s bytes)", blob.id, content_type, blob.size)
        return blob.id

    async def get(self, blob_id: UUID) -> Blob | None:
        with reading(f"blob {blob_id}"):
            res = await self.db.execute(select(Blob).where(Blob.id == blob_id))
            return res.scalar_one_or_none()
