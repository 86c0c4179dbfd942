"""Service configuration for blobfs.

Configuration is read once from environment variables at startup and held in
an immutable ServiceConfig. Invalid values fail closed with ConfigError.

Environment variables:
    BLOBFS_ROOT_DIR: Root directory of the filesystem view (required)
    BLOBFS_PSEUDO_DIRS: Comma-separated pseudo-directories (default: none)
    BLOBFS_PATH_STYLE: "posix", "windows" or "native" (default: "native")
    BLOBFS_OBJECT_STORE_BACKEND: "filesystem" or "s3" (default: "filesystem")
    BLOBFS_OBJECT_STORE_BASE_DIR: Base directory for the filesystem backend
    BLOBFS_S3_BUCKET: Bucket name (required for the s3 backend)
    BLOBFS_S3_ENDPOINT_URL: S3-compatible endpoint URL (optional)
    BLOBFS_S3_REGION: Region name (optional)
    BLOBFS_S3_ACCESS_KEY_ID / BLOBFS_S3_SECRET_ACCESS_KEY: Explicit credentials
    BLOBFS_SERVER_HOST: Bind host (default: 127.0.0.1)
    BLOBFS_SERVER_PORT: Bind port (default: 8000)
    BLOBFS_LOG_LEVEL: Logging level (default: INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, TypeVar

logger = logging.getLogger(__name__)

ENV_ROOT_DIR: Final[str] = "BLOBFS_ROOT_DIR"
ENV_PSEUDO_DIRS: Final[str] = "BLOBFS_PSEUDO_DIRS"
ENV_PATH_STYLE: Final[str] = "BLOBFS_PATH_STYLE"
ENV_OBJECT_STORE_BACKEND: Final[str] = "BLOBFS_OBJECT_STORE_BACKEND"
ENV_OBJECT_STORE_BASE_DIR: Final[str] = "BLOBFS_OBJECT_STORE_BASE_DIR"
ENV_S3_BUCKET: Final[str] = "BLOBFS_S3_BUCKET"
ENV_S3_ENDPOINT_URL: Final[str] = "BLOBFS_S3_ENDPOINT_URL"
ENV_S3_REGION: Final[str] = "BLOBFS_S3_REGION"
ENV_S3_ACCESS_KEY_ID: Final[str] = "BLOBFS_S3_ACCESS_KEY_ID"
ENV_S3_SECRET_ACCESS_KEY: Final[str] = "BLOBFS_S3_SECRET_ACCESS_KEY"
ENV_SERVER_HOST: Final[str] = "BLOBFS_SERVER_HOST"
ENV_SERVER_PORT: Final[str] = "BLOBFS_SERVER_PORT"
ENV_LOG_LEVEL: Final[str] = "BLOBFS_LOG_LEVEL"

DEFAULT_SERVER_HOST: Final[str] = "127.0.0.1"
DEFAULT_SERVER_PORT: Final[int] = 8000
DEFAULT_LOG_LEVEL: Final[str] = "INFO"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

E = TypeVar("E", bound=StrEnum)


class ConfigError(Exception):
    """Raised when service configuration is missing or invalid."""


class PathStyle(StrEnum):
    """Separator convention used by clients when sending paths."""

    POSIX = "posix"
    WINDOWS = "windows"
    NATIVE = "native"


class StorageBackend(StrEnum):
    """Object storage backend selection."""

    FILESYSTEM = "filesystem"
    S3 = "s3"


@dataclass(frozen=True)
class S3Settings:
    """Connection settings for the s3 backend.

    Attributes:
        bucket: Bucket holding the objects.
        endpoint_url: S3-compatible endpoint, None for AWS.
        region: Region name.
        access_key_id: Explicit access key, None to use the boto3 chain.
        secret_access_key: Explicit secret key, None to use the boto3 chain.
    """

    bucket: str
    endpoint_url: str | None = None
    region: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None

    def __post_init__(self) -> None:
        if not self.bucket:
            raise ConfigError(f"{ENV_S3_BUCKET} must be set for the s3 backend")
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise ConfigError(
                f"{ENV_S3_ACCESS_KEY_ID} and {ENV_S3_SECRET_ACCESS_KEY} must be set together"
            )


@dataclass(frozen=True)
class ServiceConfig:
    """blobfs service configuration (immutable).

    Attributes:
        root_dir: Hierarchical path that is the origin of the filesystem view.
        pseudo_directories: Paths (relative to root_dir) that are treated as
            directories although no container object exists.
        path_style: Separator convention of client paths.
        backend: Object storage backend.
        base_dir: Base directory for the filesystem backend.
        s3: Settings for the s3 backend.
        host: Server bind host.
        port: Server bind port.
        log_level: Logging level name.
    """

    root_dir: str
    pseudo_directories: tuple[str, ...] = ()
    path_style: PathStyle = PathStyle.NATIVE
    backend: StorageBackend = StorageBackend.FILESYSTEM
    base_dir: str | None = None
    s3: S3Settings | None = None
    host: str = DEFAULT_SERVER_HOST
    port: int = DEFAULT_SERVER_PORT
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.root_dir:
            raise ConfigError(f"{ENV_ROOT_DIR} must be set to a non-empty path")
        if self.backend == StorageBackend.S3 and self.s3 is None:
            raise ConfigError(f"{ENV_S3_BUCKET} must be set for the s3 backend")
        if not 0 < self.port < 65536:
            raise ConfigError(f"{ENV_SERVER_PORT} must be between 1 and 65535, got {self.port}")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError(
                f"{ENV_LOG_LEVEL} must be one of {sorted(_LOG_LEVELS)}, got '{self.log_level}'"
            )


def _get_env_str(key: str) -> str | None:
    """Get a stripped environment value, treating blank as unset."""
    raw = os.environ.get(key)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def _parse_enum(env_var: str, enum_type: type[E], default: E) -> E:
    raw = _get_env_str(env_var)
    if raw is None:
        return default
    try:
        return enum_type(raw.lower())
    except ValueError as e:
        choices = ", ".join(member.value for member in enum_type)
        raise ConfigError(f"{env_var} must be one of: {choices}; got '{raw}'") from e


def _parse_port(env_var: str, default: int) -> int:
    raw = _get_env_str(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{env_var} must be an integer, got '{raw}'") from e


def parse_pseudo_directories(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated pseudo-directory list, dropping blanks.

    Args:
        raw: Comma-separated names, or None.

    Returns:
        Tuple of names in declaration order, without duplicates.
    """
    if not raw:
        return ()
    names: list[str] = []
    for part in raw.split(","):
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return tuple(names)


def load_service_config() -> ServiceConfig:
    """Load service configuration from environment variables.

    Returns:
        ServiceConfig with validated values.

    Raises:
        ConfigError: If a required value is missing or any value is invalid.
    """
    root_dir = _get_env_str(ENV_ROOT_DIR)
    if root_dir is None:
        raise ConfigError(f"{ENV_ROOT_DIR} not found")

    backend = _parse_enum(ENV_OBJECT_STORE_BACKEND, StorageBackend, StorageBackend.FILESYSTEM)

    s3: S3Settings | None = None
    if backend == StorageBackend.S3:
        s3 = S3Settings(
            bucket=_get_env_str(ENV_S3_BUCKET) or "",
            endpoint_url=_get_env_str(ENV_S3_ENDPOINT_URL),
            region=_get_env_str(ENV_S3_REGION),
            access_key_id=_get_env_str(ENV_S3_ACCESS_KEY_ID),
            secret_access_key=_get_env_str(ENV_S3_SECRET_ACCESS_KEY),
        )

    config = ServiceConfig(
        root_dir=root_dir,
        pseudo_directories=parse_pseudo_directories(_get_env_str(ENV_PSEUDO_DIRS)),
        path_style=_parse_enum(ENV_PATH_STYLE, PathStyle, PathStyle.NATIVE),
        backend=backend,
        base_dir=_get_env_str(ENV_OBJECT_STORE_BASE_DIR),
        s3=s3,
        host=_get_env_str(ENV_SERVER_HOST) or DEFAULT_SERVER_HOST,
        port=_parse_port(ENV_SERVER_PORT, DEFAULT_SERVER_PORT),
        log_level=(_get_env_str(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper(),
    )

    logger.debug(
        "Loaded config: root_dir=%s backend=%s pseudo_dirs=%d",
        config.root_dir,
        config.backend.value,
        len(config.pseudo_directories),
    )
    return config
