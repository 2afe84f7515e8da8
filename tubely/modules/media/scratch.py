"""Scratch files for a single pipeline run.

A :class:`ScratchFile` owns one local path and at most one open handle.
``cleanup()`` closes the handle and removes the path; it is safe to call any
number of times, and leaving a ``with`` block always calls it.
"""

import logging
import os
import tempfile
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)


class ScratchFile:
    """Exclusively owned temporary file."""

    def __init__(self, path: str, handle: Optional[BinaryIO] = None):
        self.path = os.path.abspath(path)
        self._handle = handle

    @classmethod
    def create(
        cls,
        directory: Optional[str] = None,
        prefix: str = "tubely-upload-",
        suffix: str = "",
    ) -> "ScratchFile":
        """Create an empty, uniquely named file and keep it open for writing."""
        fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
        return cls(path, os.fdopen(fd, "w+b"))

    @property
    def handle(self) -> Optional[BinaryIO]:
        return self._handle

    def open(self, mode: str = "rb") -> BinaryIO:
        """Return the open handle, opening ``path`` with ``mode`` if needed."""
        if self._handle is None or self._handle.closed:
            self._handle = open(self.path, mode)
        return self._handle

    def close(self) -> None:
        if self._handle is not None and not self._handle.closed:
            self._handle.close()

    def cleanup(self) -> None:
        """Close the handle and delete the file; already removed files are fine."""
        self.close()
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        else:
            logger.debug("Removed scratch file %s", self.path)

    def __enter__(self) -> "ScratchFile":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def __repr__(self) -> str:
        return f"ScratchFile({self.path!r})"
