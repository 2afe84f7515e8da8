"""Video service: draft records and the upload pipeline.

The upload pipeline runs, per request:

    stage -> probe -> classify -> remux -> upload -> finalize

and releases its scratch files on every exit path. No step is retried; the
first failure aborts the run.
"""

import asyncio
import logging
import os
import time
import uuid
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from tubely.core.config import Settings
from tubely.core.logging import log_error, log_info, log_warning
from tubely.core.metrics import (
    UPLOADED_BYTES_TOTAL,
    observe_step_duration,
    record_orphaned_object,
    record_pipeline_outcome,
)
from tubely.core.storage import ObjectLocation, StorageBackend, StorageResult
from tubely.modules.media.ffmpeg import GeometryProber, Remuxer, remux_output_path
from tubely.modules.media.keys import build_object_key, extension_for, generate_object_name
from tubely.modules.media.models import classify_dimensions
from tubely.modules.media.mp4 import is_faststart
from tubely.modules.media.scratch import ScratchFile
from tubely.modules.video.models import Video
from tubely.modules.video.repository import VideoRepository
from tubely.modules.video.schemas import UploadRequest, VideoCreateRequest

logger = logging.getLogger(__name__)


class VideoServiceError(Exception):
    """Base exception for video service errors."""

    pass


class InvalidInputError(VideoServiceError):
    """Raised when the request itself is unusable."""

    pass


class UploadTooLargeError(InvalidInputError):
    """Raised when an upload exceeds the configured size limit."""

    pass


class VideoNotFoundError(VideoServiceError):
    """Raised when video is not found."""

    pass


class ForbiddenError(VideoServiceError):
    """Raised when the caller does not own the video."""

    pass


class StagingFailure(VideoServiceError):
    """Raised when the upload cannot be copied to local scratch space."""

    pass


class StorageUploadFailure(VideoServiceError):
    """Raised when the processed file cannot be written to object storage."""

    pass


class RecordUpdateFailure(VideoServiceError):
    """Raised when the stored object cannot be attached to its video record.

    The object at ``location`` is left in storage without a record.
    """

    def __init__(self, message: str, location: ObjectLocation):
        super().__init__(message)
        self.location = location


@dataclass
class UploadPipelineConfig:
    """Explicit configuration for one upload service instance."""
    allowed_content_types: frozenset[str] = field(
        default_factory=lambda: frozenset({"video/mp4"})
    )
    max_upload_size: int = 1 << 30
    scratch_dir: Optional[str] = None
    storage_upload_timeout: Optional[float] = 900.0
    copy_chunk_size: int = 1 << 20

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadPipelineConfig":
        return cls(
            allowed_content_types=frozenset(
                t.lower() for t in settings.ALLOWED_VIDEO_MIME_TYPES
            ),
            max_upload_size=settings.MAX_UPLOAD_SIZE_BYTES,
            scratch_dir=settings.SCRATCH_DIR,
            storage_upload_timeout=settings.STORAGE_UPLOAD_TIMEOUT_SECONDS,
        )


def parse_media_type(content_type: Optional[str]) -> str:
    """Media type of a Content-Type header value, without parameters.

    Raises:
        InvalidInputError: The value is not of the form ``type/subtype``
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    main, sep, sub = media_type.partition("/")
    if not sep or not main or not sub:
        raise InvalidInputError(f"Couldn't parse mime type {content_type!r}")
    return media_type


class _PipelineRun:
    """Tracks which step of one pipeline run is executing."""

    def __init__(self):
        self.step = "stage"

    @contextmanager
    def enter(self, step: str) -> Iterator[None]:
        self.step = step
        start = time.perf_counter()
        try:
            yield
        finally:
            observe_step_duration(step, time.perf_counter() - start)


class VideoService:
    """Service for video records and the upload pipeline."""

    def __init__(
        self,
        repository: VideoRepository,
        storage: StorageBackend,
        prober: GeometryProber,
        remuxer: Remuxer,
        config: UploadPipelineConfig,
    ):
        self.repository = repository
        self.storage = storage
        self.prober = prober
        self.remuxer = remuxer
        self.config = config

    async def create_video(self, user_id: uuid.UUID, request: VideoCreateRequest) -> Video:
        """Create a draft video owned by ``user_id``."""
        return await self.repository.create(
            user_id=user_id,
            title=request.title,
            description=request.description,
        )

    async def get_video(self, video_id: uuid.UUID) -> Video:
        """Get video by ID.

        Raises:
            VideoNotFoundError: If video not found
        """
        video = await self.repository.get_by_id(video_id)
        if video is None:
            raise VideoNotFoundError(f"Video {video_id} not found")
        return video

    async def get_owned_video(self, user_id: uuid.UUID, video_id: uuid.UUID) -> Video:
        """Get a video that belongs to ``user_id``.

        Raises:
            VideoNotFoundError: If video not found
            ForbiddenError: If another user owns the video
        """
        video = await self.get_video(video_id)
        if video.user_id != user_id:
            raise ForbiddenError(f"User {user_id} does not own video {video.id}")
        return video

    def render_url(self, video: Video, expires_in: int) -> Optional[str]:
        """Time-limited URL for the video's stored file, if it has one."""
        location = video.location
        if location is None:
            return None
        return self.storage.get_url(location, expires_in)

    async def upload_video(self, user_id: uuid.UUID, request: UploadRequest) -> Video:
        """Process an upload and attach the stored file to its video.

        Ownership and content type are checked before any file is written.

        Returns:
            Video: The updated video record

        Raises:
            VideoNotFoundError, ForbiddenError, InvalidInputError: Before staging
            StagingFailure, ProbeFailure, RemuxFailure, StorageUploadFailure,
            RecordUpdateFailure: From the pipeline step that failed
        """
        video = await self.get_owned_video(user_id, request.video_id)

        media_type = parse_media_type(request.content_type)
        if media_type not in self.config.allowed_content_types:
            raise InvalidInputError(f"Invalid mime type {media_type}")

        run = _PipelineRun()
        try:
            # Scratch files are released in reverse order of creation
            with ExitStack() as scratch:
                video = await self._run_pipeline(
                    run, video, request.stream, media_type, scratch
                )
        except asyncio.CancelledError:
            record_pipeline_outcome("cancelled")
            raise
        except Exception:
            record_pipeline_outcome(f"{run.step}_failed")
            raise

        record_pipeline_outcome("success")
        return video

    async def _run_pipeline(
        self,
        run: _PipelineRun,
        video: Video,
        stream: BinaryIO,
        media_type: str,
        scratch: ExitStack,
    ) -> Video:
        extension = extension_for(media_type)
        object_name = generate_object_name(extension)

        with run.enter("stage"):
            try:
                staged = scratch.enter_context(
                    ScratchFile.create(directory=self.config.scratch_dir, suffix=f".{extension}")
                )
            except OSError as e:
                raise StagingFailure(f"Couldn't create scratch file: {e}") from e
            size = await asyncio.to_thread(self._stage, stream, staged)
        log_info(
            logger,
            "Staged upload",
            video_id=str(video.id),
            size=size,
            already_faststart=is_faststart(staged.path),
        )

        with run.enter("probe"):
            geometry = await self.prober.probe(staged.path)
        aspect = classify_dimensions(geometry.width, geometry.height)

        # Remux; the output is registered before the tool runs so a partial
        # file is removed as well
        output_base = os.path.join(os.path.dirname(staged.path), object_name)
        processed = scratch.enter_context(ScratchFile(remux_output_path(output_base)))
        with run.enter("remux"):
            await self.remuxer.remux(staged.path, output_base)

        key = build_object_key(aspect, object_name)
        with run.enter("upload"):
            stored = await self._upload(processed, key, media_type)
        location = stored.location
        UPLOADED_BYTES_TOTAL.labels(aspect=aspect.value).inc(stored.file_size)

        with run.enter("finalize"):
            video = await self._finalize(video, location)

        log_info(
            logger,
            "Video upload processed",
            video_id=str(video.id),
            width=geometry.width,
            height=geometry.height,
            aspect=aspect.value,
            bucket=location.bucket,
            key=location.key,
            size=stored.file_size,
            etag=stored.etag,
        )
        return video

    def _stage(self, stream: BinaryIO, staged: ScratchFile) -> int:
        """Copy ``stream`` into the staged file and rewind it. Runs in a worker thread."""
        handle = staged.handle
        written = 0
        try:
            while True:
                chunk = stream.read(self.config.copy_chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.config.max_upload_size:
                    raise UploadTooLargeError(
                        f"Upload exceeds {self.config.max_upload_size} bytes"
                    )
                handle.write(chunk)
            handle.flush()
            handle.seek(0)
        except OSError as e:
            raise StagingFailure(f"Couldn't stage upload: {e}") from e

        if written == 0:
            raise InvalidInputError("Uploaded file is empty")
        return written

    async def _upload(self, processed: ScratchFile, key: str, media_type: str) -> StorageResult:
        try:
            fileobj = processed.open("rb")
        except OSError as e:
            raise StorageUploadFailure(f"Couldn't open processed file: {e}") from e

        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self.storage.upload_fileobj, fileobj, key, media_type),
                timeout=self.config.storage_upload_timeout,
            )
        except asyncio.TimeoutError as e:
            # The worker thread may still complete the write after this point
            location = self.storage.location_for(key)
            log_warning(
                logger,
                "Storage upload timed out; object may appear later",
                bucket=location.bucket,
                key=location.key,
                possibly_orphaned=True,
            )
            raise StorageUploadFailure(
                f"Upload of {key} timed out after {self.config.storage_upload_timeout}s"
            ) from e

        if not result.success:
            raise StorageUploadFailure(f"Unable to put object {key}: {result.error_message}")
        return result

    async def _finalize(self, video: Video, location: ObjectLocation) -> Video:
        # Read before the update; a rollback expires the instance
        video_id = video.id
        video.set_location(location)
        try:
            return await self.repository.update(video)
        except SQLAlchemyError as e:
            record_orphaned_object()
            log_error(
                logger,
                "Stored object is orphaned: video record update failed",
                e,
                video_id=str(video_id),
                bucket=location.bucket,
                key=location.key,
                orphaned=True,
            )
            raise RecordUpdateFailure(
                f"Unable to update video {video_id}", location=location
            ) from e

