"""Tests for top-level MP4 box scanning."""

import io
import struct

import pytest

from tubely.modules.media.mp4 import (
    MP4ParseError,
    is_faststart,
    iter_top_level_boxes,
    top_level_box_types,
)


def write(tmp_path, name: str, data: bytes) -> str:
    path = tmp_path / name
    path.write_bytes(data)
    return str(path)


class TestIterTopLevelBoxes:

    def test_box_offsets_and_sizes(self, mp4_box_factory) -> None:
        data = mp4_box_factory(b"ftyp", b"isom") + mp4_box_factory(b"mdat", b"x" * 20)
        boxes = list(iter_top_level_boxes(io.BytesIO(data)))

        assert [(b.type, b.offset, b.size) for b in boxes] == [
            ("ftyp", 0, 12),
            ("mdat", 12, 28),
        ]

    def test_large_size_box(self, mp4_box_factory) -> None:
        payload = b"y" * 16
        large = struct.pack(">I4sQ", 1, b"mdat", 16 + len(payload)) + payload
        data = mp4_box_factory(b"ftyp") + large

        boxes = list(iter_top_level_boxes(io.BytesIO(data)))
        assert [b.type for b in boxes] == ["ftyp", "mdat"]
        assert boxes[1].size == 32

    def test_zero_size_runs_to_end(self, mp4_box_factory) -> None:
        data = mp4_box_factory(b"ftyp") + struct.pack(">I4s", 0, b"mdat") + b"z" * 50
        boxes = list(iter_top_level_boxes(io.BytesIO(data)))
        assert boxes[-1].type == "mdat"
        assert boxes[-1].offset + boxes[-1].size == len(data)

    @pytest.mark.parametrize(
        "data",
        [
            b"\x00\x00\x00",
            struct.pack(">I4s", 100, b"moov"),
            struct.pack(">I4s", 4, b"moov"),
            struct.pack(">I4s", 1, b"mdat") + b"\x00\x00",
        ],
    )
    def test_malformed_headers(self, data: bytes) -> None:
        with pytest.raises(MP4ParseError):
            list(iter_top_level_boxes(io.BytesIO(data)))


class TestIsFaststart:

    def test_trailing_moov_is_not_faststart(self, tmp_path, mp4_factory) -> None:
        path = write(tmp_path, "slow.mp4", mp4_factory(faststart=False))
        assert top_level_box_types(path) == ["ftyp", "mdat", "moov"]
        assert not is_faststart(path)

    def test_leading_moov_is_faststart(self, tmp_path, mp4_factory) -> None:
        path = write(tmp_path, "fast.mp4", mp4_factory(faststart=True))
        assert top_level_box_types(path) == ["ftyp", "moov", "mdat"]
        assert is_faststart(path)

    def test_no_moov(self, tmp_path, mp4_box_factory) -> None:
        path = write(tmp_path, "nomoov.mp4", mp4_box_factory(b"ftyp") + mp4_box_factory(b"mdat"))
        assert not is_faststart(path)

    def test_moov_without_mdat(self, tmp_path, mp4_box_factory) -> None:
        path = write(tmp_path, "index.mp4", mp4_box_factory(b"ftyp") + mp4_box_factory(b"moov"))
        assert is_faststart(path)

    def test_not_mp4(self, tmp_path) -> None:
        path = write(tmp_path, "junk.bin", b"\xff" * 3)
        assert not is_faststart(path)

    def test_truncated_file(self, tmp_path, mp4_factory) -> None:
        data = mp4_factory(faststart=True)
        path = write(tmp_path, "cut.mp4", data[: len(data) - 100])
        assert not is_faststart(path)
