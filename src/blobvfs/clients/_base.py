"""The narrow blob-store client interface the blob provider is written against."""

from __future__ import annotations

import abc
import dataclasses
import enum
import logging
from typing import TYPE_CHECKING, BinaryIO, NamedTuple, Optional

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime

    from blobvfs._config import BlobFileSystemConfig
    from blobvfs._name import FileName


@dataclasses.dataclass(frozen=True)
class Credentials:
    """A username / password shaped credential pair.

    :param username: Account name or access key id.
    :param password: Account key or secret key.
    """

    username: Optional[str] = None
    password: Optional[str] = dataclasses.field(default=None, repr=False)

    @property
    def is_anonymous(self) -> bool:
        return not self.username and not self.password


@dataclasses.dataclass
class BlobProperties:
    """Mutable property snapshot of one blob.

    ``content_type`` may be set locally before an upload; it is sent with it.
    """

    size: int = 0
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None
    etag: Optional[str] = None


class BlobKind(enum.Enum):
    """What a listing entry is."""

    BLOB = "blob"
    PREFIX = "prefix"


class BlobItem(NamedTuple):
    """One entry of a delimiter listing. ``key`` never ends with ``/``."""

    key: str
    kind: BlobKind


class Blob(abc.ABC):
    """Reference to one key in a container. Creating it performs no I/O."""

    def __init__(self, container: BlobContainer, key: str) -> None:
        self._container = container
        self._key = key
        self.properties = BlobProperties()

    @property
    def key(self) -> str:
        return self._key

    @property
    def container(self) -> BlobContainer:
        return self._container

    @abc.abstractmethod
    def exists(self) -> bool:
        """Return ``True`` if an object is stored at exactly this key."""

    @abc.abstractmethod
    def delete_if_exists(self) -> None:
        """Delete the object if present. A missing object is not an error."""

    @abc.abstractmethod
    def open_read(self) -> BinaryIO:
        """Open a seekable stream reading directly from the store."""

    @abc.abstractmethod
    def open_write(self) -> BinaryIO:
        """Open a stream that uploads in blocks and commits on close.

        Used as a context manager, a block that exits with an exception
        discards the upload and leaves the blob untouched.
        """

    @abc.abstractmethod
    def get_properties(self) -> BlobProperties:
        """Fetch properties from the store into :attr:`properties` and return them."""

    @abc.abstractmethod
    def set_properties(self) -> None:
        """Push :attr:`properties` (content type) to the store."""

    @abc.abstractmethod
    def upload(self, stream: BinaryIO, length: Optional[int] = None) -> None:
        """Upload ``stream`` as the blob content, replacing any existing content.

        Nothing is committed if reading ``stream`` fails.
        """

    @abc.abstractmethod
    def start_copy_from(self, source: Blob) -> None:
        """Copy ``source`` to this key inside the store."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._container.name!r}, {self._key!r})"


class BlobContainer(abc.ABC):
    """Reference to one container of a store."""

    def __init__(self, client: BlobClient, name: str) -> None:
        self._client = client
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def client(self) -> BlobClient:
        return self._client

    @abc.abstractmethod
    def blob_ref(self, key: str) -> Blob:
        """Return a reference to ``key``. Performs no I/O."""

    @abc.abstractmethod
    def list_blobs(self, prefix: str = "") -> Iterator[BlobItem]:
        """List the blobs and virtual directories directly under ``prefix``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"


class BlobClient(abc.ABC):
    """Authenticated client for one storage account.

    Holds the connection pool and the request defaults (block size,
    single-put threshold, parallelism) shared by everything it creates.

    :param account_name: Identity of the storage account.
    :param config: Request defaults.
    """

    def __init__(self, account_name: str, config: BlobFileSystemConfig) -> None:
        self._account_name = account_name
        self._config = config
        self._log = logging.getLogger(type(self).__module__)

    @property
    def account_name(self) -> str:
        return self._account_name

    @property
    def config(self) -> BlobFileSystemConfig:
        return self._config

    def trace(self, operation: str, target: str) -> None:
        """Log a remote call when remote logging is enabled."""
        if self._config.enable_remote_logging:
            self._log.debug("%s %s (account=%s)", operation, target, self._account_name)

    @abc.abstractmethod
    def container_ref(self, name: str) -> BlobContainer:
        """Return a verified reference to container ``name`` (network round trip)."""

    def close(self) -> None:  # noqa: B027
        """Release connections. Default is a no-op."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(account={self._account_name!r})"


class BlobClientFactory(abc.ABC):
    """Builds an authenticated :class:`BlobClient` for a root."""

    @abc.abstractmethod
    def with_credentials(
        self, root_name: FileName, credentials: Credentials, config: BlobFileSystemConfig
    ) -> BlobClient:
        """Build a client.

        :raises ValueError: If the endpoint or credentials are malformed.
        """
