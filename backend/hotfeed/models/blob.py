from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Integer, LargeBinary, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from hotfeed.db.base import Base

class Blob(Base):
    __tablename__ = "blobs"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str] = mapped_column(String(128), nullable=False)
    size: Mapped[int] = mapped_column(Integer(), nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
