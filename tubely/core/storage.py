"""Object storage backends.

Supports: local filesystem, S3, MinIO, and other S3-compatible storage.
Objects are addressed by a structured :class:`ObjectLocation`; URLs are only
rendered from a location when a response needs one.
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from tubely.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectLocation:
    """Where a stored object lives."""
    bucket: str
    key: str
    region: Optional[str] = None


@dataclass
class StorageResult:
    """Result of a storage operation."""
    success: bool
    location: ObjectLocation
    file_size: int = 0
    etag: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class StorageConfig:
    """Storage configuration."""
    backend: str  # local, s3, minio
    bucket: str = ""
    region: str = ""
    access_key: str = ""
    secret_key: str = ""
    endpoint_url: Optional[str] = None
    use_ssl: bool = True
    local_path: str = "./storage"
    cdn_domain: Optional[str] = None
    cdn_enabled: bool = False
    connect_timeout: float = 10.0
    read_timeout: float = 60.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageConfig":
        return cls(
            backend=settings.STORAGE_BACKEND,
            bucket=settings.STORAGE_BUCKET,
            region=settings.STORAGE_REGION,
            access_key=settings.STORAGE_ACCESS_KEY,
            secret_key=settings.STORAGE_SECRET_KEY,
            endpoint_url=settings.STORAGE_ENDPOINT_URL,
            use_ssl=settings.STORAGE_USE_SSL,
            local_path=settings.LOCAL_STORAGE_PATH,
            cdn_domain=settings.CDN_DOMAIN,
            cdn_enabled=settings.CDN_ENABLED,
            read_timeout=settings.STORAGE_UPLOAD_TIMEOUT_SECONDS,
        )


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    def __init__(self, config: StorageConfig):
        self.config = config

    def location_for(self, key: str) -> ObjectLocation:
        """Location of ``key`` in the configured bucket."""
        return ObjectLocation(
            bucket=self.config.bucket,
            key=key,
            region=self.config.region or None,
        )

    @abstractmethod
    def upload_fileobj(
        self,
        fileobj: BinaryIO,
        key: str,
        content_type: str = "application/octet-stream",
    ) -> StorageResult:
        """Stream a file object to storage under ``key``."""

    @abstractmethod
    def get_url(self, location: ObjectLocation, expires_in: int = 3600) -> str:
        """Get a URL for an object (presigned for private storage)."""


class LocalStorage(StorageBackend):
    """Local filesystem storage backend.

    Buckets are directories below ``local_path``.
    """

    def __init__(self, config: StorageConfig):
        super().__init__(config)
        self.base_path = Path(config.local_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, location: ObjectLocation) -> Path:
        return self.base_path / location.bucket / location.key

    def upload_fileobj(
        self,
        fileobj: BinaryIO,
        key: str,
        content_type: str = "application/octet-stream",
    ) -> StorageResult:
        location = self.location_for(key)
        dest_path = self.path_for(location)
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)

            with open(dest_path, "wb") as f:
                shutil.copyfileobj(fileobj, f)

            return StorageResult(
                success=True,
                location=location,
                file_size=dest_path.stat().st_size,
            )
        except (OSError, ValueError) as e:
            # A closed source leaves a partial copy behind
            if dest_path.is_file():
                dest_path.unlink()
            logger.warning("Local upload of %s failed: %s", key, e)
            return StorageResult(
                success=False,
                location=location,
                error_message=str(e),
            )

    def get_url(self, location: ObjectLocation, expires_in: int = 3600) -> str:
        if self.config.cdn_enabled and self.config.cdn_domain:
            return f"https://{self.config.cdn_domain}/{location.key}"
        return self.path_for(location).absolute().as_uri()


class S3Storage(StorageBackend):
    """S3/MinIO compatible storage backend."""

    def __init__(self, config: StorageConfig):
        super().__init__(config)
        self._client = None

    def _get_client(self):
        """Get or create S3 client."""
        if self._client is None:
            boto_config_kwargs = {
                "connect_timeout": self.config.connect_timeout,
                "read_timeout": self.config.read_timeout,
                # Upload failures are terminal for the pipeline
                "retries": {"max_attempts": 1, "mode": "standard"},
            }
            client_kwargs = {
                "service_name": "s3",
                "region_name": self.config.region or "us-east-1",
            }
            if self.config.access_key and self.config.secret_key:
                client_kwargs["aws_access_key_id"] = self.config.access_key
                client_kwargs["aws_secret_access_key"] = self.config.secret_key

            # For MinIO or other S3-compatible storage
            if self.config.endpoint_url:
                client_kwargs["endpoint_url"] = self.config.endpoint_url
                boto_config_kwargs["signature_version"] = "s3v4"
                boto_config_kwargs["s3"] = {"addressing_style": "path"}
                if not self.config.use_ssl:
                    client_kwargs["use_ssl"] = False

            client_kwargs["config"] = BotoConfig(**boto_config_kwargs)
            self._client = boto3.client(**client_kwargs)

        return self._client

    def upload_fileobj(
        self,
        fileobj: BinaryIO,
        key: str,
        content_type: str = "application/octet-stream",
    ) -> StorageResult:
        location = self.location_for(key)
        try:
            client = self._get_client()

            fileobj.seek(0, os.SEEK_END)
            file_size = fileobj.tell()
            fileobj.seek(0)

            response = client.put_object(
                Bucket=location.bucket,
                Key=key,
                Body=fileobj,
                ContentType=content_type,
            )

            return StorageResult(
                success=True,
                location=location,
                file_size=file_size,
                etag=response.get("ETag", "").strip('"'),
            )
        except (BotoCoreError, ClientError, OSError, ValueError) as e:
            return StorageResult(
                success=False,
                location=location,
                error_message=str(e),
            )

    def get_url(self, location: ObjectLocation, expires_in: int = 3600) -> str:
        """Get a presigned GET URL, or the CDN URL when a CDN fronts the bucket."""
        if self.config.cdn_enabled and self.config.cdn_domain:
            return f"https://{self.config.cdn_domain}/{location.key}"

        try:
            return self._get_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": location.bucket, "Key": location.key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning("Couldn't presign %s/%s: %s", location.bucket, location.key, e)
            if self.config.endpoint_url:
                return f"{self.config.endpoint_url}/{location.bucket}/{location.key}"
            region = location.region or self.config.region or "us-east-1"
            return f"https://{location.bucket}.s3.{region}.amazonaws.com/{location.key}"


def create_storage(config: StorageConfig) -> StorageBackend:
    """Create the storage backend selected by ``config.backend``."""
    backend_type = config.backend.lower()

    if backend_type == "local":
        return LocalStorage(config)
    elif backend_type in ("s3", "minio", "aws"):
        return S3Storage(config)
    else:
        raise ValueError(f"Unsupported storage backend: {backend_type}")
