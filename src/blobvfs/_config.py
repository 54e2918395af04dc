"""Configuration model: immutable data containers for file system options."""

from __future__ import annotations

import dataclasses
import os
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from collections.abc import Mapping

    from blobvfs._auth import UserAuthenticator

MEGABYTES_TO_BYTES = 2**20

_ENV_PREFIX = "BLOBVFS_"
_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "y"})


def _to_int(raw: Optional[str], default: Optional[int]) -> Optional[int]:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


def _to_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclasses.dataclass(frozen=True)
class BlobFileSystemConfig:
    """Request defaults applied once, when a blob file system's client is built.

    :param upload_block_size_mb: Upload block (part) size in megabytes.
    :param single_upload_threshold_mb: Largest upload sent as a single request,
        in megabytes. ``None`` keeps the SDK default.
    :param parallel_upload_threads: Number of concurrent block uploads.
    :param enable_remote_logging: Log every remote call at ``DEBUG``.
    :param endpoint_protocol: ``"https"`` or ``"http"`` for the account endpoint.
    :param region_name: Optional region for stores that need one (S3).
    """

    upload_block_size_mb: int = 3
    single_upload_threshold_mb: Optional[int] = None
    parallel_upload_threads: int = 2
    enable_remote_logging: bool = False
    endpoint_protocol: str = "https"
    region_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.upload_block_size_mb <= 0:
            raise ValueError(f"upload_block_size_mb must be positive, got {self.upload_block_size_mb}")
        if self.single_upload_threshold_mb is not None and self.single_upload_threshold_mb <= 0:
            raise ValueError(f"single_upload_threshold_mb must be positive, got {self.single_upload_threshold_mb}")
        if self.parallel_upload_threads <= 0:
            raise ValueError(f"parallel_upload_threads must be positive, got {self.parallel_upload_threads}")
        if self.endpoint_protocol not in ("http", "https"):
            raise ValueError(f"endpoint_protocol must be 'http' or 'https', got {self.endpoint_protocol!r}")

    @property
    def upload_block_size(self) -> int:
        """Upload block size in bytes."""
        return self.upload_block_size_mb * MEGABYTES_TO_BYTES

    @property
    def single_upload_threshold(self) -> Optional[int]:
        """Single-request upload threshold in bytes, or ``None``."""
        if self.single_upload_threshold_mb is None:
            return None
        return self.single_upload_threshold_mb * MEGABYTES_TO_BYTES

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> BlobFileSystemConfig:
        """Construct from a plain dict (e.g. parsed TOML/JSON).

        :raises TypeError: If ``data`` contains unknown keys.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown config keys: {unknown}. Known keys: {sorted(known)}"
            raise TypeError(msg)
        return cls(**data)  # type: ignore[arg-type]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> BlobFileSystemConfig:
        """Construct from ``BLOBVFS_*`` environment variables.

        Unparseable numbers fall back to the defaults.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str) -> Optional[str]:
            return env.get(_ENV_PREFIX + name)

        return cls(
            upload_block_size_mb=_to_int(get("UPLOAD_BLOCK_SIZE_MB"), defaults.upload_block_size_mb),  # type: ignore[arg-type]
            single_upload_threshold_mb=_to_int(get("SINGLE_UPLOAD_THRESHOLD_MB"), None),
            parallel_upload_threads=_to_int(get("PARALLEL_UPLOAD_THREADS"), defaults.parallel_upload_threads),  # type: ignore[arg-type]
            enable_remote_logging=_to_bool(get("ENABLE_REMOTE_LOGGING"), defaults.enable_remote_logging),
            endpoint_protocol=(get("ENDPOINT_PROTOCOL") or defaults.endpoint_protocol).strip().lower(),
            region_name=get("REGION_NAME") or defaults.region_name,
        )


@dataclasses.dataclass(frozen=True)
class FileSystemOptions:
    """Options a file system is created with. Part of the session cache key.

    :param authenticator: Supplies credentials when the URI carries none.
    :param config: Request defaults for blob file systems.
    """

    authenticator: Optional[UserAuthenticator] = None
    config: BlobFileSystemConfig = dataclasses.field(default_factory=BlobFileSystemConfig)
