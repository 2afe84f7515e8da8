"""Tests for object storage backends."""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from tubely.core.config import Settings
from tubely.core.storage import (
    LocalStorage,
    ObjectLocation,
    S3Storage,
    StorageConfig,
    create_storage,
)


@pytest.fixture
def s3_config() -> StorageConfig:
    return StorageConfig(
        backend="s3",
        bucket="tubely-private",
        region="us-west-2",
        access_key="AKIAEXAMPLE",
        secret_key="not-a-real-secret",
    )


class TestLocalStorage:

    def test_upload_writes_under_bucket(self, storage) -> None:
        result = storage.upload_fileobj(io.BytesIO(b"video-bytes"), "landscape/a.mp4", "video/mp4")

        assert result.success
        assert result.file_size == len(b"video-bytes")
        assert result.location == ObjectLocation(bucket="tubely-test", key="landscape/a.mp4")
        assert storage.path_for(result.location).read_bytes() == b"video-bytes"

    def test_url_is_file_uri(self, storage) -> None:
        url = storage.get_url(ObjectLocation(bucket="tubely-test", key="portrait/b.mp4"))
        assert url.startswith("file://")
        assert url.endswith("/tubely-test/portrait/b.mp4")

    def test_cdn_url(self, tmp_path) -> None:
        storage = LocalStorage(
            StorageConfig(
                backend="local",
                bucket="b",
                local_path=str(tmp_path),
                cdn_domain="cdn.example.com",
                cdn_enabled=True,
            )
        )
        url = storage.get_url(ObjectLocation(bucket="b", key="landscape/x.mp4"))
        assert url == "https://cdn.example.com/landscape/x.mp4"

    def test_write_failure_is_reported(self, storage) -> None:
        blocker = storage.base_path / "tubely-test" / "landscape"
        blocker.parent.mkdir(parents=True, exist_ok=True)
        blocker.write_bytes(b"not a directory")

        result = storage.upload_fileobj(io.BytesIO(b"data"), "landscape/a.mp4")

        assert not result.success
        assert result.error_message

    def test_closed_source_leaves_no_partial_object(self, storage) -> None:
        source = io.BytesIO(b"video-bytes")
        source.close()

        result = storage.upload_fileobj(source, "landscape/closed.mp4", "video/mp4")

        assert not result.success
        assert not storage.path_for(result.location).exists()


class TestS3Storage:

    def test_presigned_url(self, s3_config) -> None:
        storage = S3Storage(s3_config)
        url = storage.get_url(
            ObjectLocation(bucket="tubely-private", key="landscape/a.mp4", region="us-west-2"),
            expires_in=300,
        )
        assert "tubely-private" in url
        assert "landscape/a.mp4" in url
        assert "Expires=" in url or "X-Amz-Expires=300" in url

    def test_upload_uses_put_object(self, s3_config) -> None:
        storage = S3Storage(s3_config)
        client = MagicMock()
        client.put_object.return_value = {"ETag": '"abc123"'}
        storage._client = client

        result = storage.upload_fileobj(io.BytesIO(b"12345"), "portrait/p.mp4", "video/mp4")

        assert result.success
        assert result.file_size == 5
        assert result.etag == "abc123"
        assert result.location == ObjectLocation(
            bucket="tubely-private", key="portrait/p.mp4", region="us-west-2"
        )
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "tubely-private"
        assert kwargs["Key"] == "portrait/p.mp4"
        assert kwargs["ContentType"] == "video/mp4"

    def test_upload_failure_is_reported(self, s3_config) -> None:
        storage = S3Storage(s3_config)
        client = MagicMock()
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )
        storage._client = client

        result = storage.upload_fileobj(io.BytesIO(b"12345"), "portrait/p.mp4", "video/mp4")

        assert not result.success
        assert "AccessDenied" in result.error_message

    def test_cdn_url_skips_presign(self, s3_config) -> None:
        s3_config.cdn_domain = "videos.example.com"
        s3_config.cdn_enabled = True
        storage = S3Storage(s3_config)
        url = storage.get_url(ObjectLocation(bucket="tubely-private", key="other/o.mp4"))
        assert url == "https://videos.example.com/other/o.mp4"


class TestCreateStorage:

    @pytest.mark.parametrize("backend", ["s3", "minio", "AWS"])
    def test_s3_backends(self, backend) -> None:
        assert isinstance(create_storage(StorageConfig(backend=backend)), S3Storage)

    def test_local_backend(self, tmp_path) -> None:
        config = StorageConfig(backend="local", local_path=str(tmp_path))
        assert isinstance(create_storage(config), LocalStorage)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            create_storage(StorageConfig(backend="ftp"))

    def test_config_from_settings(self, settings) -> None:
        config = StorageConfig.from_settings(settings)
        assert config.backend == "local"
        assert config.bucket == "tubely-test"
        assert config.read_timeout == settings.STORAGE_UPLOAD_TIMEOUT_SECONDS

    def test_settings_defaults(self) -> None:
        defaults = Settings(_env_file=None)
        assert defaults.ALLOWED_VIDEO_MIME_TYPES == ["video/mp4"]
        assert defaults.MAX_UPLOAD_SIZE_BYTES == 1 << 30
