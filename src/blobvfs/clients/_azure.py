"""Azure Blob Storage client using azure-storage-blob."""

from __future__ import annotations

import base64
import io
import logging
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, BinaryIO, Optional

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobBlock, BlobPrefix, BlobServiceClient, ContentSettings

from blobvfs._errors import VfsError
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

    from azure.storage.blob import BlobClient as SdkBlobClient
    from azure.storage.blob import ContainerClient

    from blobvfs._config import BlobFileSystemConfig
    from blobvfs._name import FileName
    from blobvfs.clients._base import Credentials

log = logging.getLogger(__name__)

AZURE_ERRORS: tuple[type[BaseException], ...] = (AzureError,)

_READ_CHUNK_SIZE = 4 * 2**20
_COPY_POLL_INTERVAL = 0.5


class _RangedBlobReader(io.RawIOBase):
    """Seekable raw reader issuing one ranged download per ``readinto``."""

    def __init__(self, blob_client: SdkBlobClient, size: int) -> None:
        super().__init__()
        self._blob_client = blob_client
        self._size = size
        self._pos = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._pos

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            pos = offset
        elif whence == io.SEEK_CUR:
            pos = self._pos + offset
        elif whence == io.SEEK_END:
            pos = self._size + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        if pos < 0:
            raise ValueError(f"Negative seek position {pos}")
        self._pos = pos
        return pos

    def readinto(self, buffer: Any) -> int:
        if self._pos >= self._size:
            return 0
        length = min(len(buffer), self._size - self._pos)
        data = self._blob_client.download_blob(offset=self._pos, length=length).readall()
        count = len(data)
        buffer[:count] = data
        self._pos += count
        return count

    def readall(self) -> bytes:
        if self._pos >= self._size:
            return b""
        data = self._blob_client.download_blob(offset=self._pos, length=self._size - self._pos).readall()
        self._pos += len(data)
        return bytes(data)


class _BlockBlobWriter(io.RawIOBase):
    """Stages fixed-size blocks (in parallel) and commits the block list on close.

    Leaving a ``with`` block on an exception discards the staged blocks
    instead; uncommitted blocks never become part of the blob.
    """

    def __init__(
        self,
        blob_client: SdkBlobClient,
        block_size: int,
        max_workers: int,
        content_settings: Optional[ContentSettings],
    ) -> None:
        super().__init__()
        self._blob_client = blob_client
        self._block_size = block_size
        self._max_workers = max_workers
        self._content_settings = content_settings
        self._buffer = bytearray()
        self._block_ids: list[str] = []
        self._pending: list[Future[Any]] = []
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="blobvfs-upload")

    def writable(self) -> bool:
        return True

    def write(self, data: Any) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        self._buffer.extend(data)
        while len(self._buffer) >= self._block_size:
            self._stage(bytes(self._buffer[: self._block_size]))
            del self._buffer[: self._block_size]
        return len(data)

    def _stage(self, block: bytes) -> None:
        block_id = base64.b64encode(uuid.uuid4().hex.encode()).decode()
        self._block_ids.append(block_id)
        if len(self._pending) >= self._max_workers:
            self._pending.pop(0).result()
        self._pending.append(self._executor.submit(self._blob_client.stage_block, block_id, block))

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is None:
            self.close()
        else:
            self.discard()

    def discard(self) -> None:
        """Close without committing."""
        if self.closed:
            return
        for future in self._pending:
            future.cancel()
        self._executor.shutdown(wait=True)
        self._buffer.clear()
        super().close()

    def close(self) -> None:
        if self.closed:
            return
        try:
            if self._buffer:
                self._stage(bytes(self._buffer))
                self._buffer.clear()
            for future in self._pending:
                future.result()
            self._blob_client.commit_block_list(
                [BlobBlock(block_id=block_id) for block_id in self._block_ids],
                content_settings=self._content_settings,
            )
        finally:
            self._executor.shutdown(wait=True)
            super().close()


class AzureBlob(Blob):
    """One blob in an Azure container."""

    container: AzureContainer

    def __init__(self, container: AzureContainer, key: str, blob_client: SdkBlobClient) -> None:
        super().__init__(container, key)
        self._blob_client = blob_client

    @property
    def url(self) -> str:
        return str(self._blob_client.url)

    def _trace(self, operation: str) -> None:
        self.container.client.trace(operation, f"{self._container.name}/{self._key}")

    def _content_settings(self) -> Optional[ContentSettings]:
        if self.properties.content_type:
            return ContentSettings(content_type=self.properties.content_type)
        return None

    def exists(self) -> bool:
        self._trace("HEAD")
        return bool(self._blob_client.exists())

    def delete_if_exists(self) -> None:
        self._trace("DELETE")
        try:
            self._blob_client.delete_blob(delete_snapshots="include")
        except ResourceNotFoundError:
            pass

    def open_read(self) -> BinaryIO:
        size = self.get_properties().size
        self._trace("GET")
        return io.BufferedReader(_RangedBlobReader(self._blob_client, size), buffer_size=_READ_CHUNK_SIZE)  # type: ignore[return-value]

    def open_write(self) -> BinaryIO:
        self._trace("PUT")
        config = self.container.client.config
        return _BlockBlobWriter(  # type: ignore[return-value]
            self._blob_client,
            config.upload_block_size,
            config.parallel_upload_threads,
            self._content_settings(),
        )

    def get_properties(self) -> BlobProperties:
        self._trace("HEAD")
        props = self._blob_client.get_blob_properties()
        self.properties.size = int(props.size or 0)
        self.properties.last_modified = props.last_modified
        self.properties.content_type = props.content_settings.content_type
        self.properties.etag = props.etag
        return self.properties

    def set_properties(self) -> None:
        self._trace("SET_HEADERS")
        self._blob_client.set_http_headers(content_settings=self._content_settings() or ContentSettings())

    def upload(self, stream: BinaryIO, length: Optional[int] = None) -> None:
        self._trace("PUT")
        self._blob_client.upload_blob(
            stream,
            length=length,
            overwrite=True,
            content_settings=self._content_settings(),
            max_concurrency=self.container.client.config.parallel_upload_threads,
        )

    def start_copy_from(self, source: Blob) -> None:
        if not isinstance(source, AzureBlob):
            raise TypeError(f"Cannot copy server side from {type(source).__name__}")
        self._trace("COPY")
        self._blob_client.start_copy_from_url(source.url)
        status = self._blob_client.get_blob_properties().copy.status
        while status == "pending":
            time.sleep(_COPY_POLL_INTERVAL)
            status = self._blob_client.get_blob_properties().copy.status
        if status != "success":
            raise VfsError(f"Server-side copy from {source.url} ended with status {status!r}", path=self.url)


class AzureContainer(BlobContainer):
    """One Azure blob container."""

    client: AzureClient

    def __init__(self, client: AzureClient, name: str, container_client: ContainerClient) -> None:
        super().__init__(client, name)
        self._container_client = container_client

    def blob_ref(self, key: str) -> AzureBlob:
        return AzureBlob(self, key, self._container_client.get_blob_client(key))

    def list_blobs(self, prefix: str = "") -> Iterator[BlobItem]:
        self._client.trace("LIST", f"{self._name}/{prefix}")
        for item in self._container_client.walk_blobs(name_starts_with=prefix or None, delimiter="/"):
            key = item.name.rstrip("/")
            # Folder marker blobs (``dir1/``) name the listed prefix itself.
            if not key or key == prefix.rstrip("/"):
                continue
            yield BlobItem(key, BlobKind.PREFIX if isinstance(item, BlobPrefix) else BlobKind.BLOB)


class AzureClient(BlobClient):
    """Azure client wrapping one ``BlobServiceClient``.

    :param service_client: The authenticated service client.
    :param account_name: Storage account name.
    :param config: Request defaults.
    """

    def __init__(self, service_client: BlobServiceClient, account_name: str, config: BlobFileSystemConfig) -> None:
        super().__init__(account_name, config)
        self._service_client = service_client

    def container_ref(self, name: str) -> AzureContainer:
        container_client = self._service_client.get_container_client(name)
        self.trace("HEAD", name)
        container_client.get_container_properties()
        return AzureContainer(self, name, container_client)

    def close(self) -> None:
        self._service_client.close()


class AzureBlobClientFactory(BlobClientFactory):
    """Builds :class:`AzureClient` instances for ``azsb://<account-host>/<container>/<key>`` roots.

    The username is the storage account name and the password the account
    key. A password without a username is passed through as a SAS token;
    no credentials at all gives anonymous access.
    """

    def with_credentials(
        self, root_name: FileName, credentials: Credentials, config: BlobFileSystemConfig
    ) -> AzureClient:
        if not root_name.host:
            raise ValueError(f"Azure root has no account host: {root_name.uri!r}")
        account_name = credentials.username or root_name.host.split(".", 1)[0]
        credential: Any = None
        if credentials.username and credentials.password:
            credential = {"account_name": credentials.username, "account_key": credentials.password}
        elif credentials.password:
            credential = credentials.password
        kwargs: dict[str, Any] = {
            "max_block_size": config.upload_block_size,
            "logging_enable": config.enable_remote_logging,
        }
        if config.single_upload_threshold is not None:
            kwargs["max_single_put_size"] = config.single_upload_threshold
        service_client = BlobServiceClient(
            account_url=f"{config.endpoint_protocol}://{root_name.authority}",
            credential=credential,
            **kwargs,
        )
        return AzureClient(service_client, account_name=account_name, config=config)
