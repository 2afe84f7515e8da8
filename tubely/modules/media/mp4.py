"""Top-level MP4 box inspection.

Only the outermost box headers are read, so scanning a multi-gigabyte file
costs a handful of seeks.
"""

import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterator

_HEADER = struct.Struct(">I4s")
_LARGE_SIZE = struct.Struct(">Q")


class MP4ParseError(ValueError):
    """Raised when a box header is truncated or inconsistent."""


@dataclass(frozen=True)
class Box:
    """Position of one top-level box."""
    type: str
    offset: int
    size: int


def iter_top_level_boxes(fileobj: BinaryIO) -> Iterator[Box]:
    """Yield the top-level boxes of an MP4/ISO-BMFF stream."""
    fileobj.seek(0, os.SEEK_END)
    end = fileobj.tell()
    offset = 0

    while offset < end:
        fileobj.seek(offset)
        header = fileobj.read(_HEADER.size)
        if len(header) < _HEADER.size:
            raise MP4ParseError(f"truncated box header at offset {offset}")

        size, raw_type = _HEADER.unpack(header)
        header_size = _HEADER.size
        if size == 1:
            large = fileobj.read(_LARGE_SIZE.size)
            if len(large) < _LARGE_SIZE.size:
                raise MP4ParseError(f"truncated large size at offset {offset}")
            (size,) = _LARGE_SIZE.unpack(large)
            header_size += _LARGE_SIZE.size
        elif size == 0:
            # Box runs to the end of the file
            size = end - offset

        if size < header_size or offset + size > end:
            raise MP4ParseError(f"invalid box size {size} at offset {offset}")

        yield Box(type=raw_type.decode("latin-1"), offset=offset, size=size)
        offset += size


def top_level_box_types(path: str) -> list[str]:
    with open(path, "rb") as f:
        return [box.type for box in iter_top_level_boxes(f)]


def is_faststart(path: str) -> bool:
    """True when the ``moov`` index precedes the first ``mdat`` payload."""
    try:
        types = top_level_box_types(path)
    except MP4ParseError:
        return False

    if "moov" not in types:
        return False
    if "mdat" not in types:
        return True
    return types.index("moov") < types.index("mdat")
