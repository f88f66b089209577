"""Tests for blob store backends."""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from app.errors import BlobNotFoundError, BlobStoreError
from app.services.blob_store import LocalBlobStore, S3BlobStore, content_type_for
from app.services.jwt import get_jwt_service


def _client_error(code: str, operation: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestLocalBlobStore:
    """Filesystem backend."""

    def test_put_get_overwrite(self, tmp_path):
        store = LocalBlobStore(tmp_path, "http://testserver")
        store.put("s1/audio-1-0.webm", b"one")
        store.put("s1/audio-1-0.webm", b"two")
        assert store.get("s1/audio-1-0.webm") == b"two"

    def test_missing_blob(self, tmp_path):
        store = LocalBlobStore(tmp_path, "http://testserver")
        with pytest.raises(BlobNotFoundError):
            store.get("s1/nothing.webm")

    @pytest.mark.parametrize("key", ["../escape.webm", "/etc/passwd", "s1/../../x", ""])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        store = LocalBlobStore(tmp_path, "http://testserver")
        with pytest.raises(BlobStoreError):
            store.put(key, b"x")

    def test_signed_url_round_trip(self, tmp_path):
        store = LocalBlobStore(tmp_path, "http://testserver/")
        store.put("s1/session-complete.webm", b"audio")
        url = store.signed_url("s1/session-complete.webm", 7200)
        assert url.startswith("http://testserver/api/v1/blobs/")
        assert store.resolve_token(url.rsplit("/", 1)[-1]) == "s1/session-complete.webm"

    def test_signed_url_requires_existing_blob(self, tmp_path):
        store = LocalBlobStore(tmp_path, "http://testserver")
        with pytest.raises(BlobNotFoundError):
            store.signed_url("s1/session-complete.webm", 60)

    def test_login_token_is_not_a_blob_link(self, tmp_path):
        store = LocalBlobStore(tmp_path, "http://testserver")
        assert store.resolve_token(get_jwt_service().create_token("user_123", key="s1/a.webm")) is None

    def test_delete_prefix(self, tmp_path):
        store = LocalBlobStore(tmp_path, "http://testserver")
        store.put("s1/a.webm", b"a")
        store.put("s1/b.webm", b"b")
        store.put("s2/c.webm", b"c")
        assert store.delete_prefix("s1/") == 2
        assert not store.exists("s1/a.webm")
        assert store.exists("s2/c.webm")
        assert store.delete_prefix("s1/") == 0

    def test_content_types(self):
        assert content_type_for("s1/session-complete.webm") == "audio/webm"
        assert content_type_for("s1/audio-1-0.wav") == "audio/wav"
        assert content_type_for("s1/blob.bin") == "application/octet-stream"


class TestS3BlobStore:
    """S3 backend against a mocked boto3 client."""

    def test_put_sets_content_type(self):
        client = MagicMock()
        S3BlobStore("recordings", client=client).put("s1/audio-1-0.webm", b"data")
        client.put_object.assert_called_once_with(
            Bucket="recordings", Key="s1/audio-1-0.webm", Body=b"data", ContentType="audio/webm"
        )

    def test_get(self):
        client = MagicMock()
        client.get_object.return_value = {"Body": io.BytesIO(b"data")}
        assert S3BlobStore("recordings", client=client).get("s1/a.webm") == b"data"

    def test_get_missing(self):
        client = MagicMock()
        client.get_object.side_effect = _client_error("NoSuchKey")
        with pytest.raises(BlobNotFoundError):
            S3BlobStore("recordings", client=client).get("s1/a.webm")

    def test_get_other_error(self):
        client = MagicMock()
        client.get_object.side_effect = _client_error("AccessDenied")
        with pytest.raises(BlobStoreError) as exc_info:
            S3BlobStore("recordings", client=client).get("s1/a.webm")
        assert not isinstance(exc_info.value, BlobNotFoundError)

    def test_signed_url(self):
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://s3.example/s1/a.webm?sig=1"
        url = S3BlobStore("recordings", client=client).signed_url("s1/a.webm", 7200)
        assert url == "https://s3.example/s1/a.webm?sig=1"
        client.head_object.assert_called_once_with(Bucket="recordings", Key="s1/a.webm")
        client.generate_presigned_url.assert_called_once_with(
            "get_object", Params={"Bucket": "recordings", "Key": "s1/a.webm"}, ExpiresIn=7200
        )

    def test_signed_url_for_missing_object(self):
        client = MagicMock()
        client.head_object.side_effect = _client_error("404", "HeadObject")
        with pytest.raises(BlobNotFoundError):
            S3BlobStore("recordings", client=client).signed_url("s1/a.webm", 60)
        client.generate_presigned_url.assert_not_called()

    def test_delete_prefix(self):
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = [
            {"Contents": [{"Key": "s1/a.webm"}, {"Key": "s1/b.webm"}]},
            {},
        ]
        assert S3BlobStore("recordings", client=client).delete_prefix("s1/") == 2
        client.delete_objects.assert_called_once_with(
            Bucket="recordings", Delete={"Objects": [{"Key": "s1/a.webm"}, {"Key": "s1/b.webm"}]}
        )
