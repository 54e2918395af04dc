"""FileSystem (session) and FileProvider (session factory) base classes."""

from __future__ import annotations

import abc
import logging
import threading
from typing import TYPE_CHECKING

from blobvfs._config import FileSystemOptions
from blobvfs._errors import InvalidPath
from blobvfs._name import FileName

if TYPE_CHECKING:
    from types import TracebackType

    from blobvfs._capabilities import CapabilitySet
    from blobvfs._object import FileObject

log = logging.getLogger(__name__)


class FileSystem(abc.ABC):
    """One connection scope: every handle under one root shares it.

    :param root_name: Name of the file system root.
    :param options: Options the file system was created with.
    """

    def __init__(self, root_name: FileName, options: FileSystemOptions) -> None:
        self._root_name = root_name
        self._options = options
        self._closed = False

    @property
    def root_name(self) -> FileName:
        return self._root_name

    @property
    def options(self) -> FileSystemOptions:
        return self._options

    @property
    @abc.abstractmethod
    def capabilities(self) -> CapabilitySet:
        """Static capabilities declared by the provider."""

    @abc.abstractmethod
    def create_file(self, name: FileName) -> FileObject:
        """Create a fresh handle for ``name``."""

    def has_capability(self, cap: object) -> bool:
        return cap in self.capabilities

    def resolve_file(self, path: str | FileName) -> FileObject:
        """Return a new handle for an absolute path or a name under this root.

        :raises InvalidPath: If ``path`` names a different root.
        """
        if isinstance(path, FileName):
            if path.root_key != self._root_name.root_key:
                raise InvalidPath(f"{path.uri!r} is not under {self._root_name.uri!r}", path=path.uri)
            name = path
        else:
            name = self._root_name.resolve(path)
        return self.create_file(name)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release resources held by this file system. Default only marks it closed."""
        self._closed = True

    def __enter__(self) -> FileSystem:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root={self._root_name.uri!r})"


class FileProvider(abc.ABC):
    """Builds and caches one file system per root and options."""

    def __init__(self) -> None:
        self._file_systems: dict[tuple[object, FileSystemOptions], FileSystem] = {}
        self._lock = threading.Lock()

    @property
    @abc.abstractmethod
    def capabilities(self) -> CapabilitySet:
        """Static capabilities of every file system this provider builds."""

    @abc.abstractmethod
    def do_create_file_system(self, root_name: FileName, options: FileSystemOptions) -> FileSystem:
        """Build a new file system for ``root_name``."""

    def get_file_system(self, root_name: FileName, options: FileSystemOptions | None = None) -> FileSystem:
        """Return the cached file system for a root, creating it on first use."""
        opts = options or FileSystemOptions()
        key = (root_name.root_key, opts)
        with self._lock:
            fs = self._file_systems.get(key)
            if fs is None or fs.closed:
                fs = self.do_create_file_system(root_name.root, opts)
                self._file_systems[key] = fs
        return fs

    def find_file(self, name: FileName, options: FileSystemOptions | None = None) -> FileObject:
        """Return a handle for ``name`` from the file system of its root."""
        return self.get_file_system(name.root, options).resolve_file(name)

    def close(self) -> None:
        """Close every file system this provider created."""
        with self._lock:
            file_systems = list(self._file_systems.values())
            self._file_systems.clear()
        for fs in file_systems:
            log.debug("Closing %r", fs)
            fs.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(file_systems={len(self._file_systems)})"
