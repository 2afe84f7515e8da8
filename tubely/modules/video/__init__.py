"""Video module: video records and the upload pipeline."""

from tubely.modules.video.models import Video
from tubely.modules.video.repository import VideoRepository
from tubely.modules.video.schemas import UploadRequest, VideoCreateRequest, VideoResponse
from tubely.modules.video.service import (
    ForbiddenError,
    InvalidInputError,
    RecordUpdateFailure,
    StagingFailure,
    StorageUploadFailure,
    UploadPipelineConfig,
    UploadTooLargeError,
    VideoNotFoundError,
    VideoService,
    VideoServiceError,
    parse_media_type,
)

__all__ = [
    # Models
    "Video",
    # Repositories
    "VideoRepository",
    # Schemas
    "UploadRequest",
    "VideoCreateRequest",
    "VideoResponse",
    # Service
    "VideoService",
    "UploadPipelineConfig",
    "parse_media_type",
    "VideoServiceError",
    "InvalidInputError",
    "UploadTooLargeError",
    "VideoNotFoundError",
    "ForbiddenError",
    "StagingFailure",
    "StorageUploadFailure",
    "RecordUpdateFailure",
]
