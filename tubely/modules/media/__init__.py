"""Media module: geometry probing, aspect classification and fast-start remuxing."""

from tubely.modules.media.ffmpeg import (
    FFmpegRemuxer,
    FFprobeGeometryProber,
    GeometryProber,
    MediaToolError,
    ProbeFailure,
    RemuxFailure,
    Remuxer,
    parse_probe_output,
    remux_output_path,
)
from tubely.modules.media.keys import build_object_key, extension_for, generate_object_name
from tubely.modules.media.models import (
    AspectClass,
    VideoGeometry,
    classify_dimensions,
    classify_ratio,
)
from tubely.modules.media.mp4 import is_faststart
from tubely.modules.media.scratch import ScratchFile

__all__ = [
    # Tools
    "GeometryProber",
    "Remuxer",
    "FFprobeGeometryProber",
    "FFmpegRemuxer",
    "MediaToolError",
    "ProbeFailure",
    "RemuxFailure",
    "parse_probe_output",
    "remux_output_path",
    # Classification
    "AspectClass",
    "VideoGeometry",
    "classify_ratio",
    "classify_dimensions",
    # Keys
    "build_object_key",
    "extension_for",
    "generate_object_name",
    # Files
    "ScratchFile",
    "is_faststart",
]
