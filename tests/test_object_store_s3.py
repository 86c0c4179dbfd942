"""Tests for blobfs S3ObjectStore.

Uses botocore's Stubber so no network access or credentials are required.

Tests cover:
- HEAD-based existence and metadata
- Ranged GET requests and the Range header they send
- Translation of S3 error codes into the storage error taxonomy
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import EndpointConnectionError
from botocore.response import StreamingBody
from botocore.stub import Stubber

from blobfs.storage.errors import (
    InvalidRangeError,
    ObjectNotFoundError,
    StorageBackendError,
)
from blobfs.storage.s3_store import S3ObjectStore, build_range_header

BUCKET = "models"


@pytest.fixture
def s3_client() -> Any:
    """Create an offline S3 client with static test credentials."""
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(s3_client: Any) -> Iterator[Stubber]:
    """Activate a Stubber on the client and check all responses were used."""
    with Stubber(s3_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def store(s3_client: Any, stubber: Stubber) -> S3ObjectStore:
    """S3ObjectStore over the stubbed client."""
    return S3ObjectStore(BUCKET, client=s3_client)


def _body(data: bytes) -> StreamingBody:
    return StreamingBody(io.BytesIO(data), len(data))


class TestBuildRangeHeader:
    """Tests for build_range_header()."""

    def test_whole_object_has_no_header(self) -> None:
        """Offset 0 without a size requests the whole object."""
        assert build_range_header(0, None) is None

    def test_open_ended_range(self) -> None:
        """An offset without a size reads to the end."""
        assert build_range_header(5, None) == "bytes=5-"

    def test_bounded_range_is_inclusive(self) -> None:
        """HTTP ranges are inclusive of the last byte."""
        assert build_range_header(10, 20) == "bytes=10-29"
        assert build_range_header(0, 1) == "bytes=0-0"


class TestKeyExists:
    """Tests for key_exists()."""

    def test_existing_object(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """A successful HEAD means the object exists."""
        stubber.add_response(
            "head_object",
            {"ContentLength": 10},
            {"Bucket": BUCKET, "Key": "bncdata.sci"},
        )

        assert store.key_exists("bncdata.sci") is True

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
    def test_missing_object(self, store: S3ObjectStore, stubber: Stubber, code: str) -> None:
        """Not-found responses mean the object does not exist."""
        stubber.add_client_error(
            "head_object",
            service_error_code=code,
            http_status_code=404,
            expected_params={"Bucket": BUCKET, "Key": "missing.bin"},
        )

        assert store.key_exists("missing.bin") is False

    def test_access_denied_propagates(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """Other failures surface with the backend's code and status."""
        stubber.add_client_error(
            "head_object",
            service_error_code="AccessDenied",
            service_message="Access Denied",
            http_status_code=403,
        )

        with pytest.raises(StorageBackendError) as exc_info:
            store.key_exists("bncdata.sci")

        assert exc_info.value.code == "AccessDenied"
        assert exc_info.value.status_code == 403
        assert exc_info.value.key == "bncdata.sci"


class TestGetProperties:
    """Tests for get_properties()."""

    def test_metadata(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """HEAD metadata is mapped onto ObjectProperties."""
        stubber.add_response(
            "head_object",
            {"ContentLength": 11, "ContentType": "text/plain", "ETag": '"abc123"'},
            {"Bucket": BUCKET, "Key": "sub/file.txt"},
        )

        props = store.get_properties("sub/file.txt")

        assert props.key == "sub/file.txt"
        assert props.content_length == 11
        assert props.content_type == "text/plain"
        assert props.etag == "abc123"

    def test_zero_length(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """A zero-length object reports 0."""
        stubber.add_response("head_object", {"ContentLength": 0})

        assert store.get_properties("empty.bin").content_length == 0

    def test_missing_object_raises(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """A 404 HEAD raises ObjectNotFoundError."""
        stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)

        with pytest.raises(ObjectNotFoundError):
            store.get_properties("missing.bin")

    def test_throttling_raises_backend_error(
        self, store: S3ObjectStore, stubber: Stubber
    ) -> None:
        """Throttling is a backend failure, not a missing object."""
        stubber.add_client_error(
            "head_object", service_error_code="SlowDown", http_status_code=503
        )

        with pytest.raises(StorageBackendError) as exc_info:
            store.get_properties("bncdata.sci")

        assert exc_info.value.code == "SlowDown"
        assert exc_info.value.status_code == 503


class TestDownloadRange:
    """Tests for download_range()."""

    def test_whole_object_sends_no_range(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """A full read issues a GET without a Range header."""
        stubber.add_response(
            "get_object",
            {"Body": _body(b"0123456789"), "ContentLength": 10, "ContentType": "text/plain"},
            {"Bucket": BUCKET, "Key": "bncdata.sci"},
        )

        download = store.download_range("bncdata.sci")

        assert download.read_all() == b"0123456789"
        assert download.content_type == "text/plain"
        assert download.content_length == 10

    def test_bounded_range(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """A bounded read sends an inclusive Range header."""
        stubber.add_response(
            "get_object",
            {"Body": _body(b"234"), "ContentLength": 3},
            {"Bucket": BUCKET, "Key": "bncdata.sci", "Range": "bytes=2-4"},
        )

        download = store.download_range("bncdata.sci", offset=2, size=3)

        assert download.read_all() == b"234"
        assert download.offset == 2
        assert download.content_type == "application/octet-stream"

    def test_invalid_range(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """S3 InvalidRange surfaces as InvalidRangeError."""
        stubber.add_client_error(
            "get_object",
            service_error_code="InvalidRange",
            http_status_code=416,
            expected_params={"Bucket": BUCKET, "Key": "short.bin", "Range": "bytes=10-29"},
        )

        with pytest.raises(InvalidRangeError) as exc_info:
            store.download_range("short.bin", offset=10, size=20)

        assert exc_info.value.offset == 10
        assert exc_info.value.size == 20

    def test_zero_length_object_bounded_read(
        self, store: S3ObjectStore, stubber: Stubber
    ) -> None:
        """A rejected range at offset 0 is retried without Range and reads empty."""
        stubber.add_client_error(
            "get_object",
            service_error_code="InvalidRange",
            http_status_code=416,
            expected_params={"Bucket": BUCKET, "Key": "empty.bin", "Range": "bytes=0-9"},
        )
        stubber.add_response(
            "get_object",
            {"Body": _body(b""), "ContentLength": 0},
            {"Bucket": BUCKET, "Key": "empty.bin"},
        )

        download = store.download_range("empty.bin", offset=0, size=10)

        assert download.read_all() == b""
        assert download.content_length == 0

    def test_invalid_range_past_offset_zero_is_not_retried(
        self, store: S3ObjectStore, stubber: Stubber
    ) -> None:
        """Only ranges starting at byte 0 fall back to a whole-object GET."""
        stubber.add_client_error(
            "get_object",
            service_error_code="InvalidRange",
            http_status_code=416,
            expected_params={"Bucket": BUCKET, "Key": "empty.bin", "Range": "bytes=1-"},
        )

        with pytest.raises(InvalidRangeError):
            store.download_range("empty.bin", offset=1)

    def test_close_releases_body(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """close() closes the underlying streaming body."""
        raw = io.BytesIO(b"0123456789")
        stubber.add_response(
            "get_object",
            {"Body": StreamingBody(raw, 10), "ContentLength": 10},
            {"Bucket": BUCKET, "Key": "bncdata.sci"},
        )

        download = store.download_range("bncdata.sci")
        download.close()

        assert raw.closed

    def test_missing_object(self, store: S3ObjectStore, stubber: Stubber) -> None:
        """NoSuchKey surfaces as ObjectNotFoundError."""
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)

        with pytest.raises(ObjectNotFoundError):
            store.download_range("missing.bin")

    def test_negative_offset_rejected_without_request(self, store: S3ObjectStore) -> None:
        """Invalid ranges are rejected before any request is sent."""
        with pytest.raises(InvalidRangeError):
            store.download_range("bncdata.sci", offset=-1)


class TestTransportErrors:
    """Transport failures below the HTTP layer."""

    def test_connection_error_is_backend_error(self) -> None:
        """botocore transport errors become StorageBackendError."""
        client = MagicMock()
        client.head_object.side_effect = EndpointConnectionError(endpoint_url="http://s3.local")
        store = S3ObjectStore(BUCKET, client=client)

        with pytest.raises(StorageBackendError) as exc_info:
            store.get_properties("bncdata.sci")

        assert exc_info.value.code == "EndpointConnectionError"
        assert exc_info.value.status_code is None

    def test_backend_name_and_bucket(self) -> None:
        """The store reports its backend and bucket."""
        store = S3ObjectStore(BUCKET, client=MagicMock())

        assert store.backend_name == "s3"
        assert store.bucket_name == BUCKET
