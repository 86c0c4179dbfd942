"""blobfs S3-compatible object storage backend.

Reads objects from an S3 bucket (AWS or any S3-compatible endpoint such as
MinIO or Garage) through boto3. Credentials come from explicit settings when
provided, otherwise from the default boto3 credential chain (environment,
shared config, instance role).

Error translation:
- NoSuchKey / NotFound / 404 -> ObjectNotFoundError
- InvalidRange / 416 -> InvalidRangeError
- anything else -> StorageBackendError carrying the backend code
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from blobfs.storage.errors import (
    InvalidRangeError,
    ObjectNotFoundError,
    StorageBackendError,
)
from blobfs.storage.models import DEFAULT_CONTENT_TYPE, ObjectDownload, ObjectProperties
from blobfs.storage.object_store import ObjectStore
from blobfs.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
_INVALID_RANGE_CODES = frozenset({"InvalidRange", "416"})


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", "Unknown"))


def _error_status(error: ClientError) -> int | None:
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return int(status) if status is not None else None


def build_range_header(offset: int, size: int | None) -> str | None:
    """Build an HTTP Range header value for [offset, offset + size).

    Returns None when the whole object is requested, so that zero-length
    objects can still be downloaded (S3 answers 416 to any range on them).
    """
    if size is None:
        if offset == 0:
            return None
        return f"bytes={offset}-"
    return f"bytes={offset}-{offset + size - 1}"


class S3ObjectStore(ObjectStore):
    """S3 object storage implementation.

    Thread-safe: boto3 clients may be shared across threads, and each call
    is a stateless request.
    """

    def __init__(
        self,
        bucket_name: str,
        *,
        endpoint_url: str | None = None,
        region: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the S3 backend.

        Args:
            bucket_name: Bucket holding the objects.
            endpoint_url: S3-compatible endpoint (default: AWS).
            region: Region name.
            access_key: Explicit access key id (default: boto3 chain).
            secret_key: Explicit secret access key (default: boto3 chain).
            client: Pre-built boto3 S3 client (used by tests).
        """
        self._bucket_name = bucket_name

        if client is None:
            retry_config = BotoConfig(
                retries={"max_attempts": 3, "mode": "adaptive"},
                connect_timeout=5,
                read_timeout=30,
            )
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                config=retry_config,
            )

        self._client = client
        logger.info(
            "S3ObjectStore initialized: endpoint=%s, bucket=%s",
            endpoint_url or "aws-default",
            bucket_name,
        )

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "s3"

    @property
    def bucket_name(self) -> str:
        """Return the bucket name."""
        return self._bucket_name

    def _translate(
        self,
        error: ClientError,
        key: str,
        *,
        offset: int = 0,
        size: int | None = None,
    ) -> Exception:
        """Map a botocore ClientError onto the storage error taxonomy."""
        code = _error_code(error)
        status = _error_status(error)

        if code in _NOT_FOUND_CODES or status == 404:
            return ObjectNotFoundError(key=key)
        if code in _INVALID_RANGE_CODES or status == 416:
            return InvalidRangeError(
                message=f"Requested range not satisfiable: {code}",
                key=key,
                offset=offset,
                size=size,
            )

        logger.error("S3 request failed for %s: %s", key, error)
        return StorageBackendError(
            message=f"S3 request failed: {code}",
            key=key,
            code=code,
            status_code=status,
            cause=error,
        )

    @traced_storage_operation("key_exists")
    def key_exists(self, key: str) -> bool:
        """Check object existence with a HEAD request."""
        try:
            self._client.head_object(Bucket=self._bucket_name, Key=key)
        except ClientError as e:
            translated = self._translate(e, key)
            if isinstance(translated, ObjectNotFoundError):
                return False
            raise translated from e
        except BotoCoreError as e:
            raise StorageBackendError(
                message=f"S3 transport error: {e}",
                key=key,
                code=type(e).__name__,
                cause=e,
            ) from e
        return True

    @traced_storage_operation("get_properties")
    def get_properties(self, key: str) -> ObjectProperties:
        """Get object metadata with a HEAD request."""
        try:
            response = self._client.head_object(Bucket=self._bucket_name, Key=key)
        except ClientError as e:
            raise self._translate(e, key) from e
        except BotoCoreError as e:
            raise StorageBackendError(
                message=f"S3 transport error: {e}",
                key=key,
                code=type(e).__name__,
                cause=e,
            ) from e

        etag = response.get("ETag")
        return ObjectProperties(
            key=key,
            content_length=response.get("ContentLength"),
            content_type=response.get("ContentType"),
            etag=etag.strip('"') if etag else None,
            last_modified=response.get("LastModified"),
        )

    @traced_storage_operation("download_range")
    def download_range(
        self,
        key: str,
        offset: int = 0,
        size: int | None = None,
    ) -> ObjectDownload:
        """Open a ranged GET of the object.

        A range starting at byte 0 is always satisfiable, as in the other
        backends. S3 rejects any Range on a zero-length object, so that
        rejection is retried as a whole-object GET.
        """
        if offset < 0 or (size is not None and size <= 0):
            raise InvalidRangeError(
                message=f"Invalid range offset={offset} size={size}",
                key=key,
                offset=offset,
                size=size,
            )

        request: dict[str, Any] = {"Bucket": self._bucket_name, "Key": key}
        range_header = build_range_header(offset, size)
        if range_header is not None:
            request["Range"] = range_header

        try:
            response = self._get_object(request, offset=offset, size=size)
        except InvalidRangeError:
            if offset != 0 or range_header is None:
                raise
            logger.debug("Range rejected at offset 0, reading %s as empty object", key)
            del request["Range"]
            range_header = None
            response = self._get_object(request, offset=offset, size=size)

        logger.debug("Opened range: key=%s range=%s", key, range_header or "all")

        body = response["Body"]
        return ObjectDownload(
            key=key,
            content_type=response.get("ContentType") or DEFAULT_CONTENT_TYPE,
            offset=offset,
            content_length=response.get("ContentLength"),
            body=body.iter_chunks(chunk_size=CHUNK_SIZE),
            closer=body.close,
        )

    def _get_object(
        self,
        request: dict[str, Any],
        *,
        offset: int,
        size: int | None,
    ) -> dict[str, Any]:
        key = request["Key"]
        try:
            response: dict[str, Any] = self._client.get_object(**request)
        except ClientError as e:
            raise self._translate(e, key, offset=offset, size=size) from e
        except BotoCoreError as e:
            raise StorageBackendError(
                message=f"S3 transport error: {e}",
                key=key,
                code=type(e).__name__,
                cause=e,
            ) from e
        return response
