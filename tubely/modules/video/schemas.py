"""Pydantic schemas for the video module.

Defines request/response schemas for video creation and upload.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Optional

from pydantic import BaseModel, Field

from tubely.modules.video.models import Video

MAX_TITLE_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 5000


@dataclass
class UploadRequest:
    """An incoming video upload.

    ``stream`` is read once, from its current position to the end.
    """
    video_id: uuid.UUID
    stream: BinaryIO
    content_type: str


class VideoCreateRequest(BaseModel):
    """Request schema for creating a draft video."""

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class VideoResponse(BaseModel):
    """Response schema for a video.

    ``video_url`` is rendered from the stored location for each response and
    may expire.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_video(cls, video: Video, video_url: Optional[str]) -> "VideoResponse":
        return cls(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            thumbnail_url=video.thumbnail_url,
            video_url=video_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )
