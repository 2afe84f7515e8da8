"""Video API router.

Implements REST endpoints for draft videos and video file upload.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from tubely.core.database import get_db
from tubely.core.logging import log_error, log_warning
from tubely.modules.auth.dependencies import get_current_user_id
from tubely.modules.media.ffmpeg import MediaToolError, ProbeFailure, RemuxFailure
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
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["videos"])

# Client-facing messages per failure kind; the cause is only logged
_SERVER_ERROR_MESSAGES = {
    StagingFailure: "Unable to save uploaded video",
    ProbeFailure: "Unable to get video aspect ratio",
    RemuxFailure: "Unable to process video for fast start",
    StorageUploadFailure: "Unable to store video",
    RecordUpdateFailure: "Unable to update video",
}


def get_video_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> VideoService:
    """Build a video service from the collaborators on ``app.state``."""
    state = request.app.state
    return VideoService(
        repository=VideoRepository(db),
        storage=state.storage,
        prober=state.prober,
        remuxer=state.remuxer,
        config=UploadPipelineConfig.from_settings(state.settings),
    )


def parse_video_id(video_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(video_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ID")


def to_response(request: Request, service: VideoService, video) -> VideoResponse:
    expires_in = request.app.state.settings.PRESIGN_EXPIRES_SECONDS
    return VideoResponse.from_video(video, service.render_url(video, expires_in))


def to_http_error(error: Exception) -> HTTPException:
    """Map a service or media tool error to an HTTP error without leaking its cause."""
    if isinstance(error, UploadTooLargeError):
        return HTTPException(status.HTTP_413_CONTENT_TOO_LARGE, detail="Uploaded file is too large")
    if isinstance(error, InvalidInputError):
        return HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, VideoNotFoundError):
        return HTTPException(status.HTTP_404_NOT_FOUND, detail="Video not found")
    if isinstance(error, ForbiddenError):
        return HTTPException(status.HTTP_403_FORBIDDEN, detail="You don't own this video")

    for error_type, message in _SERVER_ERROR_MESSAGES.items():
        if isinstance(error, error_type):
            return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to process video")


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    request: Request,
    body: VideoCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: VideoService = Depends(get_video_service),
):
    """Create a draft video owned by the caller."""
    video = await service.create_video(user_id, body)
    return to_response(request, service, video)


@router.get("/{video_id}", response_model=VideoResponse)
async def get_video(
    request: Request,
    video_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: VideoService = Depends(get_video_service),
):
    """Get one of the caller's videos with a time-limited URL for its file."""
    vid = parse_video_id(video_id)
    try:
        video = await service.get_owned_video(user_id, vid)
    except (VideoNotFoundError, ForbiddenError) as e:
        raise to_http_error(e)
    return to_response(request, service, video)


@router.post("/{video_id}/upload", response_model=VideoResponse)
async def upload_video(
    request: Request,
    video_id: str,
    video: UploadFile = File(...),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: VideoService = Depends(get_video_service),
):
    """Upload the file for a video.

    The file is remuxed for fast start and stored under a key chosen by its
    aspect ratio; the video's location is updated once the file is stored.
    """
    vid = parse_video_id(video_id)
    logger.info("Uploading video %s by user %s", vid, user_id)

    upload = UploadRequest(
        video_id=vid,
        stream=video.file,
        content_type=video.content_type or "",
    )
    try:
        updated = await service.upload_video(user_id, upload)
    except (InvalidInputError, VideoNotFoundError, ForbiddenError) as e:
        log_warning(logger, "Upload rejected", video_id=str(vid), reason=str(e))
        raise to_http_error(e)
    except (VideoServiceError, MediaToolError) as e:
        log_error(
            logger,
            "Upload pipeline failed",
            e,
            video_id=str(vid),
            error_type=type(e).__name__,
            tool_stderr=getattr(e, "stderr", None),
        )
        raise to_http_error(e)
    finally:
        await video.close()

    return to_response(request, service, updated)
