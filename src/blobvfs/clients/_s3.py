"""S3-compatible blob client using s3fs."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, BinaryIO, Optional

from blobvfs.clients._base import (
    Blob,
    BlobClient,
    BlobClientFactory,
    BlobContainer,
    BlobItem,
    BlobKind,
    BlobProperties,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from blobvfs._config import BlobFileSystemConfig
    from blobvfs._name import FileName
    from blobvfs.clients._base import Credentials

log = logging.getLogger(__name__)

# S3 rejects multipart parts smaller than 5 MiB (except the last one).
S3_MIN_PART_SIZE = 5 * 2**20


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value if isinstance(value, datetime) else None


class _S3WriteStream:
    """Write stream over an s3fs file that only completes the upload on a clean exit.

    Leaving a ``with`` block on an exception aborts the multipart upload, so
    no partial object is created.
    """

    def __init__(self, file: Any) -> None:
        self._file = file

    def __getattr__(self, name: str) -> Any:
        return getattr(self._file, name)

    def __enter__(self) -> _S3WriteStream:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is None:
            self._file.close()
        else:
            self.discard()

    def discard(self) -> None:
        """Abort the upload and close the stream without committing."""
        if self._file.closed:
            return
        self._file.discard()
        # s3fs leaves the file open after a discard; closing it normally would flush.
        self._file.closed = True


class S3Blob(Blob):
    """One key in an S3 bucket."""

    container: S3Container

    @property
    def path(self) -> str:
        """``bucket/key`` path as s3fs addresses it."""
        return f"{self._container.name}/{self._key}"

    @property
    def _fs(self) -> Any:
        return self.container.client.fs

    def _trace(self, operation: str) -> None:
        self.container.client.trace(operation, self.path)

    def _write_kwargs(self) -> dict[str, Any]:
        if self.properties.content_type:
            return {"ContentType": self.properties.content_type}
        return {}

    def exists(self) -> bool:
        self._trace("HEAD")
        return bool(self._fs.isfile(self.path))

    def delete_if_exists(self) -> None:
        self._trace("DELETE")
        try:
            self._fs.rm_file(self.path)
        except FileNotFoundError:
            pass

    def open_read(self) -> BinaryIO:
        self._trace("GET")
        return self._fs.open(self.path, "rb")  # type: ignore[no-any-return]

    def open_write(self) -> BinaryIO:
        self._trace("PUT")
        file = self._fs.open(
            self.path,
            "wb",
            block_size=self.container.client.part_size,
            **self._write_kwargs(),
        )
        return _S3WriteStream(file)  # type: ignore[return-value]

    def get_properties(self) -> BlobProperties:
        self._trace("HEAD")
        info: dict[str, Any] = self._fs.info(self.path)
        self.properties.size = int(info.get("size", info.get("Size", 0)) or 0)
        self.properties.last_modified = _to_datetime(info.get("LastModified", info.get("last_modified")))
        self.properties.content_type = info.get("ContentType")
        self.properties.etag = info.get("ETag")
        return self.properties

    def set_properties(self) -> None:
        self._trace("COPY")
        bucket = self._container.name
        self._fs.call_s3(
            "copy_object",
            Bucket=bucket,
            Key=self._key,
            CopySource={"Bucket": bucket, "Key": self._key},
            MetadataDirective="REPLACE",
            **self._write_kwargs(),
        )
        self._fs.invalidate_cache(self.path)

    def upload(self, stream: BinaryIO, length: Optional[int] = None) -> None:
        with self.open_write() as out:
            shutil.copyfileobj(stream, out, self.container.client.part_size)

    def start_copy_from(self, source: Blob) -> None:
        if not isinstance(source, S3Blob):
            raise TypeError(f"Cannot copy server side from {type(source).__name__}")
        self._trace("COPY")
        self._fs.copy(source.path, self.path)


class S3Container(BlobContainer):
    """One S3 bucket."""

    client: S3Client

    def blob_ref(self, key: str) -> S3Blob:
        return S3Blob(self, key)

    def list_blobs(self, prefix: str = "") -> Iterator[BlobItem]:
        path = f"{self._name}/{prefix}".rstrip("/")
        self._client.trace("LIST", path)
        try:
            entries: list[dict[str, Any]] = self._client.fs.ls(path, detail=True)
        except FileNotFoundError:
            return
        bucket_prefix = f"{self._name}/"
        for info in entries:
            name: str = info["name"]
            key = name[len(bucket_prefix) :] if name.startswith(bucket_prefix) else name
            key = key.rstrip("/")
            # s3fs lists a file path as itself; only keep entries below the prefix
            if not key.startswith(prefix) or key == prefix.rstrip("/"):
                continue
            kind = BlobKind.PREFIX if info.get("type") == "directory" else BlobKind.BLOB
            yield BlobItem(key, kind)


class S3Client(BlobClient):
    """S3 client wrapping one ``s3fs.S3FileSystem``.

    :param fs: The s3fs file system, built with the listings cache disabled.
    :param account_name: Endpoint authority identifying the account.
    :param config: Request defaults.
    """

    def __init__(self, fs: Any, account_name: str, config: BlobFileSystemConfig) -> None:
        super().__init__(account_name, config)
        self._fs = fs
        self.part_size = max(config.upload_block_size, S3_MIN_PART_SIZE)

    @property
    def fs(self) -> Any:
        return self._fs

    def container_ref(self, name: str) -> S3Container:
        self.trace("HEAD", name)
        self._fs.call_s3("head_bucket", Bucket=name)
        return S3Container(self, name)

    def close(self) -> None:
        self._fs = None


class S3BlobClientFactory(BlobClientFactory):
    """Builds :class:`S3Client` instances for ``s3://<endpoint>/<bucket>/<key>`` roots."""

    def with_credentials(
        self, root_name: FileName, credentials: Credentials, config: BlobFileSystemConfig
    ) -> S3Client:
        if not root_name.host:
            raise ValueError(f"S3 root has no endpoint host: {root_name.uri!r}")
        import s3fs  # type: ignore[import-untyped]

        part_size = max(config.upload_block_size, S3_MIN_PART_SIZE)
        if part_size != config.upload_block_size:
            log.info(
                "S3 upload block size raised from %d to %d bytes (S3 multipart minimum)",
                config.upload_block_size,
                part_size,
            )
        opts: dict[str, Any] = {
            "endpoint_url": f"{config.endpoint_protocol}://{root_name.authority}",
            "use_listings_cache": False,
            "skip_instance_cache": True,
            "default_block_size": part_size,
            "max_concurrency": config.parallel_upload_threads,
            "anon": False,
        }
        if credentials.username is not None:
            opts["key"] = credentials.username
        if credentials.password is not None:
            opts["secret"] = credentials.password
        if config.region_name is not None:
            opts["client_kwargs"] = {"region_name": config.region_name}
        fs = s3fs.S3FileSystem(**opts)
        return S3Client(fs, account_name=root_name.authority.lower(), config=config)
