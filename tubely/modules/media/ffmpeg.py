"""FFmpeg/ffprobe backed media tools.

Geometry probing and fast-start remuxing run as child processes. Every call is
bounded by a timeout and is cancellable: on timeout or task cancellation the
child is killed and reaped before the error propagates.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from tubely.modules.media.models import VideoGeometry

logger = logging.getLogger(__name__)


class MediaToolError(Exception):
    """Base exception for external media tool failures."""

    def __init__(self, message: str, stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class ProbeFailure(MediaToolError):
    """Raised when the geometry of a file cannot be determined."""


class RemuxFailure(MediaToolError):
    """Raised when the fast-start remux does not complete."""


@dataclass
class CommandResult:
    """Captured output of a finished child process."""
    returncode: int
    stdout: str
    stderr: str


async def run_command(cmd: list[str], timeout: Optional[float]) -> CommandResult:
    """Run ``cmd`` to completion and capture its output.

    Raises:
        asyncio.TimeoutError: The process outlived ``timeout`` and was killed
        OSError: The executable could not be started
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except (asyncio.TimeoutError, asyncio.CancelledError):
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    return CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


def parse_probe_output(output: Union[str, bytes]) -> VideoGeometry:
    """Extract the geometry of the first video stream from ffprobe JSON.

    Streams without a ``codec_type`` are accepted when they carry dimensions.

    Raises:
        ProbeFailure: Output is not JSON, has no streams, or no usable dimensions
    """
    try:
        data = json.loads(output)
    except (TypeError, ValueError) as e:
        raise ProbeFailure(f"unparseable ffprobe output: {e}") from e

    streams = data.get("streams") if isinstance(data, dict) else None
    if not streams or not isinstance(streams, list):
        raise ProbeFailure("ffprobe reported no streams")

    sized = [s for s in streams if isinstance(s, dict) and "width" in s and "height" in s]
    video = [s for s in sized if s.get("codec_type") == "video"]
    candidates = video or sized
    if not candidates:
        raise ProbeFailure("ffprobe reported no stream with dimensions")

    stream = candidates[0]
    try:
        width = int(stream["width"])
        height = int(stream["height"])
    except (TypeError, ValueError) as e:
        raise ProbeFailure(f"invalid stream dimensions: {e}") from e

    if width <= 0 or height <= 0:
        raise ProbeFailure(f"invalid stream dimensions {width}x{height}")

    return VideoGeometry(width=width, height=height)


def remux_output_path(output_base: str) -> str:
    """Path the remuxer writes for ``output_base``."""
    return f"{output_base}.processing"


class GeometryProber(ABC):
    """Reads the pixel geometry of a local media file."""

    @abstractmethod
    async def probe(self, path: str) -> VideoGeometry:
        """Return the geometry of the first video stream in ``path``.

        Raises:
            ProbeFailure: The geometry could not be determined
        """


class Remuxer(ABC):
    """Rewrites a container for progressive playback without re-encoding."""

    @abstractmethod
    async def remux(self, input_path: str, output_base: str) -> str:
        """Write a fast-start copy of ``input_path`` and return its path.

        The copy is written to ``remux_output_path(output_base)``.

        Raises:
            RemuxFailure: The remux did not complete
        """


class FFprobeGeometryProber(GeometryProber):
    """Geometry prober backed by ``ffprobe``."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout: Optional[float] = 30.0):
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    def build_command(self, path: str) -> list[str]:
        return [
            self.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            path,
        ]

    async def probe(self, path: str) -> VideoGeometry:
        try:
            result = await run_command(self.build_command(path), self.timeout)
        except asyncio.TimeoutError as e:
            raise ProbeFailure(f"ffprobe timed out after {self.timeout}s") from e
        except OSError as e:
            raise ProbeFailure(f"could not run ffprobe: {e}") from e

        if result.returncode != 0:
            raise ProbeFailure(
                f"ffprobe exited with status {result.returncode}",
                stdout=result.stdout,
                stderr=result.stderr,
            )

        geometry = parse_probe_output(result.stdout)
        logger.debug("Probed %s: %dx%d", path, geometry.width, geometry.height)
        return geometry


class FFmpegRemuxer(Remuxer):
    """Fast-start remuxer backed by ``ffmpeg`` stream copy."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout: Optional[float] = 600.0):
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    def build_command(self, input_path: str, output_path: str) -> list[str]:
        return [
            self.ffmpeg_path,
            "-y",
            "-i", input_path,
            "-c", "copy",  # no re-encode
            "-movflags", "faststart",
            "-f", "mp4",
            output_path,
        ]

    async def remux(self, input_path: str, output_base: str) -> str:
        output_path = remux_output_path(output_base)
        cmd = self.build_command(input_path, output_path)

        try:
            result = await run_command(cmd, self.timeout)
        except asyncio.TimeoutError as e:
            raise RemuxFailure(f"ffmpeg timed out after {self.timeout}s") from e
        except OSError as e:
            raise RemuxFailure(f"could not run ffmpeg: {e}") from e

        if result.returncode != 0:
            logger.error(
                "ffmpeg processing failed with status %s, stderr: %s, stdout: %s",
                result.returncode,
                result.stderr,
                result.stdout,
            )
            raise RemuxFailure(
                f"ffmpeg exited with status {result.returncode}",
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return output_path
