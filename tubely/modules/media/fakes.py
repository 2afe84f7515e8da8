"""Deterministic in-process media tools for tests and tool-less environments."""

import shutil
from typing import Optional

from tubely.modules.media.ffmpeg import (
    GeometryProber,
    ProbeFailure,
    RemuxFailure,
    Remuxer,
    remux_output_path,
)
from tubely.modules.media.models import VideoGeometry
from tubely.modules.media.mp4 import MP4ParseError, iter_top_level_boxes


class FakeGeometryProber(GeometryProber):
    """Reports a fixed geometry, or fails when ``error`` is set."""

    def __init__(
        self,
        width: int = 1920,
        height: int = 1080,
        error: Optional[ProbeFailure] = None,
    ):
        self.geometry = VideoGeometry(width=width, height=height)
        self.error = error
        self.calls: list[str] = []

    async def probe(self, path: str) -> VideoGeometry:
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        return self.geometry


class FakeRemuxer(Remuxer):
    """Moves a trailing ``moov`` box in front of ``mdat``.

    Chunk offsets inside ``moov`` are not rewritten, so the output is only a
    layout stand-in for the real remux. Inputs that are not parseable MP4 are
    copied verbatim.
    """

    def __init__(self, fail: bool = False, stderr: str = "fake remux failure"):
        self.fail = fail
        self.stderr = stderr
        self.calls: list[tuple[str, str]] = []

    async def remux(self, input_path: str, output_base: str) -> str:
        self.calls.append((input_path, output_base))
        output_path = remux_output_path(output_base)

        if self.fail:
            # A failing tool may still leave a partial file behind
            with open(output_path, "wb") as f:
                f.write(b"partial")
            raise RemuxFailure("fake remux exited with status 1", stderr=self.stderr)

        with open(input_path, "rb") as src, open(output_path, "wb") as dst:
            try:
                boxes = list(iter_top_level_boxes(src))
            except MP4ParseError:
                src.seek(0)
                shutil.copyfileobj(src, dst)
                return output_path

            moov = [b for b in boxes if b.type == "moov"]
            rest = [b for b in boxes if b.type != "moov"]
            ordered = []
            for box in rest:
                if box.type == "mdat" and moov:
                    ordered.extend(moov)
                    moov = []
                ordered.append(box)
            ordered.extend(moov)

            for box in ordered:
                src.seek(box.offset)
                dst.write(src.read(box.size))

        return output_path
