"""Blob storage for raw chunk audio and stitched session artifacts.

Two backends share one interface:

- ``LocalBlobStore`` keeps blobs under ``BLOB_DIR`` and mints signed URLs that
  point back at this service (``/api/v1/blobs/{token}``).
- ``S3BlobStore`` uses any S3-compatible bucket and its presigned URLs.

Keys are opaque strings such as ``"<session_id>/audio-<ms>.webm"``. ``put``
always overwrites; the stitched artifact relies on that.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import get_settings
from app.errors import BlobNotFoundError, BlobStoreError
from app.services.jwt import get_jwt_service

logger = logging.getLogger("session_scribe")

CONTENT_TYPES = {
    ".webm": "audio/webm",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
}
BLOB_TOKEN_PURPOSE = "blob"


def content_type_for(key: str) -> str:
    """Guess the audio content type from a key suffix."""
    return CONTENT_TYPES.get(PurePosixPath(key).suffix.lower(), "application/octet-stream")


class BlobStore(ABC):
    """Opaque key/value store for audio bytes."""

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """Store bytes under key, replacing any existing blob."""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the bytes stored under key."""

    @abstractmethod
    def signed_url(self, key: str, ttl_seconds: int) -> str:
        """Return a time-limited URL for an existing blob."""

    def delete_prefix(self, prefix: str) -> int:
        """Remove every blob whose key starts with prefix. Returns the count removed."""
        return 0


class LocalBlobStore(BlobStore):
    """Filesystem-backed blob store."""

    def __init__(self, root: str | Path, public_base_url: str) -> None:
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or any(p in ("..", ".") for p in parts):
            raise BlobStoreError(f"Invalid blob key '{key}'")
        return self.root.joinpath(*parts)

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Write then rename so concurrent readers never see a partial file
            tmp_path = path.with_name(f".{path.name}.{os.getpid()}.{id(data)}.tmp")
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
        except OSError as e:
            raise BlobStoreError(f"Failed to store blob '{key}': {e}") from e

    def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise BlobNotFoundError(f"Blob '{key}' not found")
        try:
            return path.read_bytes()
        except OSError as e:
            raise BlobStoreError(f"Failed to read blob '{key}': {e}") from e

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def signed_url(self, key: str, ttl_seconds: int) -> str:
        if not self.exists(key):
            raise BlobNotFoundError(f"Blob '{key}' not found")
        token = get_jwt_service().create_token(
            principal_id=BLOB_TOKEN_PURPOSE,
            expire_minutes=max(1, ttl_seconds // 60),
            key=key,
            purpose=BLOB_TOKEN_PURPOSE,
        )
        return f"{self.public_base_url}/api/v1/blobs/{token}"

    def resolve_token(self, token: str) -> str | None:
        """Return the blob key for a valid signed token, else None."""
        payload = get_jwt_service().decode_token(token)
        if not payload or payload.get("purpose") != BLOB_TOKEN_PURPOSE:
            return None
        return payload.get("key")

    def delete_prefix(self, prefix: str) -> int:
        directory = self._path(prefix.rstrip("/"))
        if not directory.is_dir():
            return 0
        removed = 0
        for path in sorted(directory.rglob("*"), reverse=True):
            if path.is_file():
                path.unlink()
                removed += 1
            else:
                path.rmdir()
        directory.rmdir()
        return removed


class S3BlobStore(BlobStore):
    """S3-compatible blob store."""

    def __init__(self, bucket: str, client=None) -> None:
        self.bucket = bucket
        self._client = client

    def _get_client(self):
        """Lazy-create the boto3 client."""
        if self._client is None:
            settings = get_settings()
            client_config = {"region_name": settings.AWS_REGION}
            if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
                client_config["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
                client_config["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
            # Custom endpoint for S3-compatible services
            if settings.AWS_ENDPOINT:
                client_config["endpoint_url"] = settings.AWS_ENDPOINT
            self._client = boto3.client("s3", **client_config)
        return self._client

    @staticmethod
    def _is_missing(error: ClientError) -> bool:
        code = error.response.get("Error", {}).get("Code", "")
        return code in ("NoSuchKey", "404", "NotFound")

    def put(self, key: str, data: bytes) -> None:
        try:
            self._get_client().put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type_for(key))
        except (ClientError, BotoCoreError) as e:
            raise BlobStoreError(f"Failed to upload s3://{self.bucket}/{key}: {e}") from e

    def get(self, key: str) -> bytes:
        try:
            response = self._get_client().get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            if self._is_missing(e):
                raise BlobNotFoundError(f"Blob s3://{self.bucket}/{key} not found") from e
            raise BlobStoreError(f"Failed to download s3://{self.bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise BlobStoreError(f"Failed to download s3://{self.bucket}/{key}: {e}") from e

    def signed_url(self, key: str, ttl_seconds: int) -> str:
        client = self._get_client()
        try:
            # Presigning never checks existence, so confirm the object is there
            client.head_object(Bucket=self.bucket, Key=key)
            return client.generate_presigned_url(
                "get_object", Params={"Bucket": self.bucket, "Key": key}, ExpiresIn=ttl_seconds
            )
        except ClientError as e:
            if self._is_missing(e):
                raise BlobNotFoundError(f"Blob s3://{self.bucket}/{key} not found") from e
            raise BlobStoreError(f"Failed to sign s3://{self.bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise BlobStoreError(f"Failed to sign s3://{self.bucket}/{key}: {e}") from e

    def delete_prefix(self, prefix: str) -> int:
        client = self._get_client()
        removed = 0
        try:
            paginator = client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                objects = [{"Key": obj["Key"]} for obj in page.get("Contents", [])]
                if objects:
                    client.delete_objects(Bucket=self.bucket, Delete={"Objects": objects})
                    removed += len(objects)
        except (ClientError, BotoCoreError) as e:
            raise BlobStoreError(f"Failed to delete s3://{self.bucket}/{prefix}: {e}") from e
        return removed


_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """Get singleton blob store for the configured backend."""
    global _blob_store
    if _blob_store is None:
        settings = get_settings()
        if settings.BLOB_BACKEND == "s3":
            _blob_store = S3BlobStore(settings.S3_BUCKET_NAME)
        else:
            _blob_store = LocalBlobStore(settings.BLOB_DIR, settings.PUBLIC_BASE_URL)
        logger.info("Blob store backend: %s", settings.BLOB_BACKEND)
    return _blob_store


def set_blob_store(store: BlobStore | None) -> None:
    """Replace the singleton blob store (None resets to the configured backend)."""
    global _blob_store
    _blob_store = store
