"""Video metadata model.

A video record is created as a draft and gains a storage location once its
file has been uploaded and processed. The location columns are written only
after the object is stored.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tubely.core.database import Base
from tubely.core.storage import ObjectLocation


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Video(Base):
    """Video metadata owned by a single user."""

    __tablename__ = "videos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # Storage location of the processed video
    video_bucket: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    video_key: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    video_region: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    @property
    def location(self) -> Optional[ObjectLocation]:
        if not self.video_bucket or not self.video_key:
            return None
        return ObjectLocation(
            bucket=self.video_bucket,
            key=self.video_key,
            region=self.video_region,
        )

    def set_location(self, location: ObjectLocation) -> None:
        self.video_bucket = location.bucket
        self.video_key = location.key
        self.video_region = location.region

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, title={self.title!r}, key={self.video_key!r})>"
