"""Shared fixtures: settings, local object storage, database and sample media."""

import struct
import uuid
from pathlib import Path

import pytest

from tubely.core.config import Settings
from tubely.core.database import create_engine, create_session_factory, init_models
from tubely.core.storage import LocalStorage, StorageConfig
from tubely.modules.auth.jwt import create_access_token
from tubely.modules.video.models import Video  # noqa: F401  (registers the table)

TEST_SECRET = "test-secret-key"
TEST_BUCKET = "tubely-test"


def mp4_box(box_type: bytes, payload: bytes = b"") -> bytes:
    """Encode one ISO-BMFF box."""
    return struct.pack(">I4s", 8 + len(payload), box_type) + payload


def make_mp4(faststart: bool = False, media_size: int = 4096) -> bytes:
    """Minimal MP4 layout: ftyp, then moov and mdat in the requested order."""
    ftyp = mp4_box(b"ftyp", b"isom\x00\x00\x02\x00isomiso2mp41")
    moov = mp4_box(b"moov", mp4_box(b"mvhd", b"\x00" * 100))
    mdat = mp4_box(b"mdat", bytes(range(256)) * (media_size // 256))
    if faststart:
        return ftyp + moov + mdat
    return ftyp + mdat + moov


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(
        StorageConfig(
            backend="local",
            bucket=TEST_BUCKET,
            local_path=str(tmp_path / "objects"),
        )
    )


@pytest.fixture
def settings(tmp_path: Path, scratch_dir: Path) -> Settings:
    return Settings(
        SECRET_KEY=TEST_SECRET,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'tubely.db'}",
        STORAGE_BACKEND="local",
        STORAGE_BUCKET=TEST_BUCKET,
        LOCAL_STORAGE_PATH=str(tmp_path / "objects"),
        SCRATCH_DIR=str(scratch_dir),
        LOG_JSON=False,
    )


@pytest.fixture
async def session_factory(tmp_path: Path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'pipeline.db'}")
    await init_models(engine)
    try:
        yield create_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, TEST_SECRET)}"}


@pytest.fixture
def mp4_factory():
    """The :func:`make_mp4` builder, for tests that need sample media."""
    return make_mp4


@pytest.fixture
def mp4_box_factory():
    return mp4_box
