"""Filesystem query routes for the blobfs API.

Each route takes a client path (URL-encoded, or as the remainder of the URL
path) and answers one filesystem question:

- GET /read/{path}?offset=&size=  (streamed bytes)
- GET /exists/{path}
- GET /size/{path}
- GET /isDir/{path}
- GET /isRegularFile/{path}
- GET /isSymlink/{path}
- GET /isEmpty/{path}
- GET /getChildren/{path}         (always 501)

Response field names are camelCase to match the filesystem client protocol.
Storage errors propagate to the handlers in blobfs.api.errors.
"""

from __future__ import annotations

import logging
import re
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.background import BackgroundTask

from blobfs.api.errors import BlobfsHttpError, ErrorResponse
from blobfs.vfs.facade import FilesystemFacade

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

router = APIRouter(
    tags=["Filesystem"],
    responses={
        404: {"model": ErrorResponse, "description": "No such file"},
        502: {"model": ErrorResponse, "description": "Object store failure"},
    },
)


def get_facade(request: Request) -> FilesystemFacade:
    """Resolve the filesystem facade from the application context."""
    facade: FilesystemFacade = request.app.state.context.facade
    return facade


FacadeDep = Annotated[FilesystemFacade, Depends(get_facade)]


def parse_offset(raw: str | None) -> int:
    """Parse the read offset, defaulting to 0 when absent or unparseable.

    Only the leading integer counts: "10abc" reads as 10, while "abc"
    reads as 0.
    """
    if raw is None:
        return 0
    match = _LEADING_INT.match(raw)
    if match is None:
        logger.debug("Unparseable offset %r, defaulting to 0", raw)
        return 0
    return int(match.group(1))


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ExistsResponse(_CamelModel):
    exists: bool


class SizeResponse(_CamelModel):
    size: int


class IsDirResponse(_CamelModel):
    is_dir: bool = Field(alias="isDir")


class IsRegularFileResponse(_CamelModel):
    is_regular_file: bool = Field(alias="isRegularFile")


class IsSymlinkResponse(_CamelModel):
    is_symlink: bool = Field(alias="isSymLink")


class IsEmptyResponse(_CamelModel):
    is_empty: bool = Field(alias="isEmpty")


@router.get("/read/{path:path}", response_class=StreamingResponse)
async def read_file(
    path: str,
    facade: FacadeDep,
    offset: Annotated[str | None, Query()] = None,
    size: Annotated[int | None, Query(ge=1)] = None,
) -> StreamingResponse:
    """Stream bytes [offset, offset + size) of a file.

    The response Content-Type is the one recorded by the object store.
    """
    start = parse_offset(offset)
    logger.info("Reading %s bytes at offset %d from %s", size, start, path)

    download = await facade.read(path, start, size)

    headers: dict[str, str] = {}
    if download.content_length is not None:
        headers["Content-Length"] = str(download.content_length)

    return StreamingResponse(
        download.body,
        media_type=download.content_type,
        headers=headers,
        background=BackgroundTask(download.close),
    )


@router.get("/exists/{path:path}", response_model=ExistsResponse)
async def check_exists(path: str, facade: FacadeDep) -> ExistsResponse:
    """Check whether a file or directory exists."""
    logger.info("Checking %s exists", path)
    return ExistsResponse(exists=await facade.exists(path))


@router.get("/size/{path:path}", response_model=SizeResponse)
async def get_size(path: str, facade: FacadeDep) -> SizeResponse:
    """Return a file's size in bytes."""
    logger.info("Checking %s size", path)
    file_size = await facade.size(path)
    if file_size is None:
        raise BlobfsHttpError(
            status_code=404,
            code="NOT_FOUND",
            message="Failed to get size",
        )
    return SizeResponse(size=file_size)


@router.get("/isDir/{path:path}", response_model=IsDirResponse)
async def is_dir(path: str, facade: FacadeDep) -> IsDirResponse:
    """Check whether a path is a directory."""
    logger.info("Checking %s isDir", path)
    return IsDirResponse(is_dir=await facade.is_dir(path))


@router.get("/isRegularFile/{path:path}", response_model=IsRegularFileResponse)
async def is_regular_file(path: str, facade: FacadeDep) -> IsRegularFileResponse:
    """Check whether a path is an existing regular file."""
    logger.info("Checking %s is regular file", path)
    return IsRegularFileResponse(is_regular_file=await facade.is_regular_file(path))


@router.get("/isSymlink/{path:path}", response_model=IsSymlinkResponse)
async def is_symlink(path: str, facade: FacadeDep) -> IsSymlinkResponse:
    """Check whether a path is a symbolic link (never)."""
    logger.info("Checking %s is symlink", path)
    return IsSymlinkResponse(is_symlink=await facade.is_symlink(path))


@router.get("/isEmpty/{path:path}", response_model=IsEmptyResponse)
async def is_empty(path: str, facade: FacadeDep) -> IsEmptyResponse:
    """Check whether a file has no content. Directories are never empty."""
    logger.info("Checking %s is empty", path)
    return IsEmptyResponse(is_empty=await facade.is_empty(path))


@router.get("/getChildren/{path:path}")
async def get_children(path: str, facade: FacadeDep) -> list[str]:
    """List a directory's children. Always fails with 501."""
    logger.info("Checking %s children", path)
    return await facade.get_children(path)
