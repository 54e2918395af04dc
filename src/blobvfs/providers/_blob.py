"""Blob provider: hierarchical file semantics over a flat container/key store.

Blob stores have no directories. A key is a folder when it is not an object
itself but at least one object key starts with ``key + "/"``. That inference
is re-run on every type check, because creating or deleting any blob can
change it.
"""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING, BinaryIO, Optional

from blobvfs._auth import AuthDataType
from blobvfs._capabilities import Capability, CapabilitySet
from blobvfs._content_type import detect
from blobvfs._errors import ProviderError, VfsError
from blobvfs._filesystem import FileProvider, FileSystem
from blobvfs._name import ROOT_KEY, SEPARATOR, split_container_key
from blobvfs._object import COPY_BUFFER_SIZE, FileObject
from blobvfs._types import FileType
from blobvfs.clients._base import Credentials

if TYPE_CHECKING:
    from datetime import datetime

    from blobvfs._auth import UserAuthenticationData
    from blobvfs._config import FileSystemOptions
    from blobvfs._name import FileName
    from blobvfs.clients._base import Blob, BlobClient, BlobClientFactory, BlobContainer, BlobProperties

log = logging.getLogger(__name__)

AUTHENTICATOR_TYPES = (AuthDataType.USERNAME, AuthDataType.PASSWORD)

BLOB_CAPABILITIES = CapabilitySet(
    {
        Capability.GET_TYPE,
        Capability.READ_CONTENT,
        Capability.WRITE_CONTENT,
        Capability.APPEND_CONTENT,
        Capability.URI,
        Capability.ATTRIBUTES,
        Capability.RANDOM_ACCESS_READ,
        Capability.DIRECTORY_READ_CONTENT,
        Capability.LIST_CHILDREN,
        Capability.SET_LAST_MODIFIED,
        Capability.GET_LAST_MODIFIED,
        Capability.CREATE,
        Capability.DELETE,
    }
)


class BlobFileObject(FileObject):
    """Handle on one ``/<container>/<key>`` path of a blob file system."""

    fs: BlobFileSystem

    def __init__(self, name: FileName, fs: BlobFileSystem) -> None:
        super().__init__(name, fs)
        self._container_key: Optional[tuple[str, str]] = None
        self._container: Optional[BlobContainer] = None
        self._blob: Optional[Blob] = None
        self._properties: Optional[BlobProperties] = None
        self._copy_errors = fs.copy_errors

    # region: resolved identity

    @property
    def container_key(self) -> tuple[str, str]:
        """The ``(container, key)`` pair. Computed once per handle.

        :raises InvalidPath: If the path names no container.
        """
        if self._container_key is None:
            self._container_key = split_container_key(self._name.path)
        return self._container_key

    @property
    def container_name(self) -> str:
        return self.container_key[0]

    @property
    def key(self) -> str:
        return self.container_key[1]

    @property
    def is_container_root(self) -> bool:
        return self.key == ROOT_KEY

    @property
    def blob(self) -> Blob:
        """The bound blob reference (attaches on first use)."""
        self.attach()
        if self._blob is None:
            raise VfsError(f"Handle is not attached: {self.uri}", path=self.uri, provider=self._name.scheme)
        return self._blob

    @property
    def container(self) -> BlobContainer:
        """The bound container reference (attaches on first use)."""
        self.attach()
        if self._container is None:
            raise VfsError(f"Handle is not attached: {self.uri}", path=self.uri, provider=self._name.scheme)
        return self._container

    def _folder_prefix(self) -> str:
        if self.is_container_root:
            return ""
        return self.key.rstrip(SEPARATOR) + SEPARATOR

    # endregion

    # region: lifecycle

    def do_attach(self) -> None:
        container_name, key = self.container_key
        try:
            # Round trip to the store so bad credentials or a missing container fail here.
            self._container = self.fs.client.container_ref(container_name)
        except Exception:
            log.error("Attach failed for container %r, key %r", container_name, key, exc_info=True)
            raise
        self._blob = self._container.blob_ref(key)

    def do_detach(self) -> None:
        self._blob = None
        self._container = None
        self._properties = None

    # endregion

    # region: type and children

    def do_get_type(self) -> FileType:
        if self.is_container_root:
            return FileType.FOLDER
        if self.blob.exists():
            return FileType.FILE
        for _item in self.container.list_blobs(self._folder_prefix()):
            return FileType.FOLDER
        return FileType.IMAGINARY

    def do_list_children(self) -> list[str]:
        own_key = "" if self.is_container_root else self.key.rstrip(SEPARATOR)
        container = self.container_name
        children = []
        for item in self.container.list_blobs(self._folder_prefix()):
            key = item.key.rstrip(SEPARATOR)
            # Folder marker blobs (``dir1/``) list as the folder itself.
            if key and key != own_key:
                children.append(f"{SEPARATOR}{container}{SEPARATOR}{key}")
        return children

    # endregion

    # region: properties

    def get_properties(self) -> BlobProperties:
        """Return the property snapshot, fetching it at most once per attach."""
        if self._properties is None:
            self._properties = self.blob.get_properties()
        return self._properties

    def do_get_content_size(self) -> int:
        return self.get_properties().size

    def do_get_last_modified_time(self) -> datetime:
        modified = self.get_properties().last_modified
        if modified is None:
            raise ValueError(f"Store returned no last-modified time for {self.uri}")
        return modified

    def do_set_last_modified_time(self, modified: datetime) -> bool:
        log.debug("Ignoring last modified time %s for %s: blob stores set it themselves", modified, self.uri)
        return True

    def do_get_content_type(self) -> Optional[str]:
        return self.get_properties().content_type

    def do_get_etag(self) -> Optional[str]:
        return self.get_properties().etag

    def set_content_type(self, content_type: str) -> None:
        """Replace the stored content type of this blob."""
        self._require_file()
        blob = self.blob
        blob.properties.content_type = content_type
        blob.set_properties()
        self._properties = None

    # endregion

    # region: content

    def do_get_input_stream(self) -> BinaryIO:
        return self.blob.open_read()

    def do_get_output_stream(self, append: bool) -> BinaryIO:
        blob = self.blob
        self._properties = None
        if blob.properties.content_type is None:
            blob.properties.content_type = detect(self._name.base_name)
        if not append or self.get_type() is not FileType.FILE:
            return blob.open_write()
        target = blob.open_write()
        try:
            with blob.open_read() as existing:
                shutil.copyfileobj(existing, target, COPY_BUFFER_SIZE)
        except BaseException as exc:
            target.__exit__(type(exc), exc, exc.__traceback__)
            raise
        return target

    def do_delete(self) -> None:
        if self.is_container_root:
            return
        self.blob.delete_if_exists()
        self._properties = None

    def do_create_folder(self) -> None:
        log.info("create_folder(%s): blob stores have no folders, nothing to do", self.uri)

    # endregion

    # region: copy

    def _copy_entry(self, entry: FileObject, entry_type: FileType, destination: FileObject) -> None:
        if entry_type.has_children:
            destination.create_folder()
        elif entry_type.has_content and isinstance(destination, BlobFileObject):
            if isinstance(entry, BlobFileObject) and self.can_copy_server_side(entry, destination):
                log.debug("Server-side copy %s -> %s", entry.uri, destination.uri)
                destination.blob.start_copy_from(entry.blob)
            else:
                self._upload_copy(entry, destination)
        else:
            super()._copy_entry(entry, entry_type, destination)

    @staticmethod
    def _upload_copy(entry: FileObject, destination: BlobFileObject) -> None:
        length = entry.get_content_size()
        blob = destination.blob
        blob.properties.content_type = detect(entry.name.base_name)
        log.debug("Content type is %s for %s", blob.properties.content_type, entry.name.base_name)
        with entry.open_read() as stream:
            blob.upload(stream, length)

    @staticmethod
    def can_copy_server_side(source: FileObject, destination: FileObject) -> bool:
        """Return ``True`` if both handles live in the same account and container."""
        if not isinstance(source, BlobFileObject) or not isinstance(destination, BlobFileObject):
            return False
        if source.fs is not destination.fs:
            if source.fs.account_name.lower() != destination.fs.account_name.lower():
                return False
            if type(source.fs.client) is not type(destination.fs.client):
                return False
        return source.container_name.lower() == destination.container_name.lower()

    # endregion


class BlobFileSystem(FileSystem):
    """One storage account: owns the client every handle shares.

    Request defaults (block size, parallelism, logging) are fixed when the
    client is built and cannot be changed afterwards.

    :param root_name: ``scheme://account-host/`` root.
    :param client: The authenticated client.
    :param options: Options the file system was created with.
    :param copy_errors: SDK exception types wrapped by ``copy_from``.
    """

    def __init__(
        self,
        root_name: FileName,
        client: BlobClient,
        options: FileSystemOptions,
        copy_errors: tuple[type[BaseException], ...] = (),
    ) -> None:
        super().__init__(root_name, options)
        self._client = client
        self.copy_errors = copy_errors

    @property
    def client(self) -> BlobClient:
        return self._client

    @property
    def account_name(self) -> str:
        return self._client.account_name

    @property
    def capabilities(self) -> CapabilitySet:
        return BLOB_CAPABILITIES

    def create_file(self, name: FileName) -> BlobFileObject:
        return BlobFileObject(name, self)

    def close(self) -> None:
        if not self.closed:
            self._client.close()
        super().close()


class BlobFileProvider(FileProvider):
    """Builds one :class:`BlobFileSystem` per account root and options.

    :param client_factory: Builds the authenticated client.
    :param copy_errors: SDK exception types ``copy_from`` wraps with context.
    """

    def __init__(self, client_factory: BlobClientFactory, copy_errors: tuple[type[BaseException], ...] = ()) -> None:
        super().__init__()
        self._client_factory = client_factory
        self._copy_errors = copy_errors

    @property
    def capabilities(self) -> CapabilitySet:
        return BLOB_CAPABILITIES

    def do_create_file_system(self, root_name: FileName, options: FileSystemOptions) -> BlobFileSystem:
        auth_data: Optional[UserAuthenticationData] = None
        try:
            if options.authenticator is not None:
                auth_data = options.authenticator.request_authentication(AUTHENTICATOR_TYPES)
            credentials = Credentials(
                username=self._auth_value(auth_data, AuthDataType.USERNAME, root_name.username),
                password=self._auth_value(auth_data, AuthDataType.PASSWORD, root_name.password),
            )
            client = self._client_factory.with_credentials(root_name, credentials, options.config)
        except (ValueError, TypeError) as exc:
            raise ProviderError(
                f"Could not create a file system for {root_name.uri}: {exc}",
                path=root_name.uri,
                provider=root_name.scheme,
            ) from exc
        finally:
            if auth_data is not None:
                auth_data.cleanup()

        config = options.config
        log.info(
            "Blob file system for %s: upload block size %d bytes, single upload threshold %s, parallel upload threads %d",
            root_name.uri,
            config.upload_block_size,
            config.single_upload_threshold,
            config.parallel_upload_threads,
        )
        return BlobFileSystem(root_name, client, options, self._copy_errors)

    @staticmethod
    def _auth_value(auth_data: Optional[UserAuthenticationData], data_type: AuthDataType, fallback: Optional[str]) -> Optional[str]:
        if auth_data is None:
            return fallback
        return auth_data.get(data_type) or fallback
