"""FileObject, the per-path handle users work with."""

from __future__ import annotations

import abc
import logging
import shutil
from typing import TYPE_CHECKING, BinaryIO

from blobvfs._capabilities import Capability
from blobvfs._errors import CopyError, NotAFile, NotAFolder, NotFound, UnsupportedOperation, VfsError
from blobvfs._models import FileInfo
from blobvfs._selectors import SELECT_ALL, SELECT_SELF, find_files
from blobvfs._types import FileType

if TYPE_CHECKING:
    from datetime import datetime
    from types import TracebackType

    from blobvfs._filesystem import FileSystem
    from blobvfs._name import FileName
    from blobvfs._selectors import FileSelector
    from blobvfs._types import WritableContent

log = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 64 * 1024


class FileObject(abc.ABC):
    """A handle on one path of a file system.

    Handles attach lazily on first use and may be detached (closed) and
    re-attached any number of times. Public methods check the file system's
    capabilities, attach, and delegate to the ``do_*`` hooks providers
    implement. A handle is not safe to share between threads.

    :param name: The name this handle addresses.
    :param fs: The owning file system (shared, not owned).
    """

    # Provider exceptions that ``copy_from`` wraps in CopyError besides OSError.
    _copy_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, name: FileName, fs: FileSystem) -> None:
        self._name = name
        self._fs = fs
        self._attached = False

    @property
    def name(self) -> FileName:
        return self._name

    @property
    def fs(self) -> FileSystem:
        return self._fs

    @property
    def uri(self) -> str:
        return self._name.uri

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name.uri!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FileObject):
            return self._fs is other._fs and self._name == other._name
        return NotImplemented

    def __hash__(self) -> int:
        return hash((id(self._fs), self._name))

    # region: provider hooks

    def do_attach(self) -> None:  # noqa: B027
        """Bind this handle to its remote node. Default is a no-op."""

    def do_detach(self) -> None:  # noqa: B027
        """Forget cached remote state. Default is a no-op."""

    @abc.abstractmethod
    def do_get_type(self) -> FileType:
        """Determine the node type. Must not be cached."""

    @abc.abstractmethod
    def do_list_children(self) -> list[str]:
        """Return absolute paths (within the file system) of the children."""

    @abc.abstractmethod
    def do_get_content_size(self) -> int:
        """Return the content size in bytes."""

    @abc.abstractmethod
    def do_get_last_modified_time(self) -> datetime:
        """Return the last modification time."""

    def do_set_last_modified_time(self, modified: datetime) -> bool:
        raise UnsupportedOperation("Setting the last modified time is not supported", path=self.uri)

    def do_get_content_type(self) -> str | None:
        return None

    def do_get_etag(self) -> str | None:
        return None

    @abc.abstractmethod
    def do_get_input_stream(self) -> BinaryIO:
        """Open the content for reading."""

    @abc.abstractmethod
    def do_get_output_stream(self, append: bool) -> BinaryIO:
        """Open the content for writing. Data is committed when the stream closes."""

    @abc.abstractmethod
    def do_delete(self) -> None:
        """Delete this node (a file, or an empty folder)."""

    @abc.abstractmethod
    def do_create_folder(self) -> None:
        """Create this folder."""

    # endregion

    # region: lifecycle

    @property
    def is_attached(self) -> bool:
        return self._attached

    def attach(self) -> None:
        """Attach to the remote node. Called implicitly by every operation."""
        if self._attached:
            return
        self.do_attach()
        self._attached = True

    def detach(self) -> None:
        """Clear cached remote state. The handle can be used again afterwards."""
        if not self._attached:
            return
        try:
            self.do_detach()
        finally:
            self._attached = False

    def close(self) -> None:
        """Alias of :meth:`detach`."""
        self.detach()

    def __enter__(self) -> FileObject:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _require(self, cap: Capability) -> None:
        self._fs.capabilities.require(cap, provider=self._name.scheme, path=self.uri)

    # endregion

    # region: type

    def get_type(self) -> FileType:
        """Return ``FILE``, ``FOLDER`` or ``IMAGINARY``. Never cached."""
        self._require(Capability.GET_TYPE)
        self.attach()
        return self.do_get_type()

    def exists(self) -> bool:
        return self.get_type() is not FileType.IMAGINARY

    def is_file(self) -> bool:
        return self.get_type() is FileType.FILE

    def is_folder(self) -> bool:
        return self.get_type() is FileType.FOLDER

    # endregion

    # region: children

    def list_children(self) -> list[str]:
        """Return the absolute paths of this folder's children.

        :raises NotAFolder: If this node is a file.
        """
        self._require(Capability.LIST_CHILDREN)
        file_type = self.get_type()
        if file_type.has_content:
            raise NotAFolder(f"Not a folder: {self.uri}", path=self.uri, provider=self._name.scheme)
        if file_type is FileType.IMAGINARY:
            return []
        return self.do_list_children()

    def get_children(self) -> list[FileObject]:
        """Return handles on this folder's children.

        :raises NotAFolder: If this node is a file.
        """
        return [self._fs.resolve_file(path) for path in self.list_children()]

    def resolve_file(self, relative: str) -> FileObject:
        """Resolve a path relative to this node in the same file system."""
        return self._fs.resolve_file(self._name.resolve(relative))

    # endregion

    # region: content

    def _require_file(self) -> None:
        file_type = self.get_type()
        if file_type is FileType.IMAGINARY:
            raise NotFound(f"File not found: {self.uri}", path=self.uri, provider=self._name.scheme)
        if not file_type.has_content:
            raise NotAFile(f"Not a file: {self.uri}", path=self.uri, provider=self._name.scheme)

    def get_content_size(self) -> int:
        """Return the content size in bytes.

        :raises NotFound: If the file does not exist.
        :raises NotAFile: If this node is a folder.
        """
        self._require(Capability.ATTRIBUTES)
        self._require_file()
        return self.do_get_content_size()

    def get_last_modified_time(self) -> datetime:
        """Return the last modification time.

        :raises NotFound: If the file does not exist.
        """
        self._require(Capability.GET_LAST_MODIFIED)
        self._require_file()
        return self.do_get_last_modified_time()

    def set_last_modified_time(self, modified: datetime) -> bool:
        """Set the last modification time. Returns ``True`` on success."""
        self._require(Capability.SET_LAST_MODIFIED)
        self.attach()
        return self.do_set_last_modified_time(modified)

    def get_content_type(self) -> str | None:
        self._require_file()
        return self.do_get_content_type()

    def get_content_info(self) -> FileInfo:
        """Return a snapshot of the file's metadata."""
        self._require(Capability.ATTRIBUTES)
        self._require_file()
        return FileInfo(
            name=self._name,
            size=self.do_get_content_size(),
            last_modified=self.do_get_last_modified_time(),
            content_type=self.do_get_content_type(),
            etag=self.do_get_etag(),
        )

    def open_read(self) -> BinaryIO:
        """Open the file for reading.

        :raises NotFound: If the file does not exist.
        :raises NotAFile: If this node is a folder.
        """
        self._require(Capability.READ_CONTENT)
        self._require_file()
        return self.do_get_input_stream()

    def open_random_access(self) -> BinaryIO:
        """Open the file for reading with seek support."""
        self._require(Capability.RANDOM_ACCESS_READ)
        stream = self.open_read()
        if not stream.seekable():
            stream.close()
            raise UnsupportedOperation("Stream is not seekable", path=self.uri, provider=self._name.scheme)
        return stream

    def read_bytes(self) -> bytes:
        with self.open_read() as stream:
            return stream.read()

    def open_write(self, append: bool = False) -> BinaryIO:
        """Open the file for writing. Content is committed when the stream is closed.

        :raises NotAFile: If this node is a folder.
        """
        self._require(Capability.APPEND_CONTENT if append else Capability.WRITE_CONTENT)
        if self.get_type() is FileType.FOLDER:
            raise NotAFile(f"Not a file: {self.uri}", path=self.uri, provider=self._name.scheme)
        return self.do_get_output_stream(append)

    def write_bytes(self, content: WritableContent) -> None:
        with self.open_write() as stream:
            if isinstance(content, bytes):
                stream.write(content)
            else:
                shutil.copyfileobj(content, stream, COPY_BUFFER_SIZE)

    # endregion

    # region: create and delete

    def create_folder(self) -> None:
        """Create this folder. Succeeds silently if the folder already exists.

        :raises VfsError: If a file occupies this path.
        """
        self._require(Capability.CREATE)
        file_type = self.get_type()
        if file_type is FileType.FOLDER:
            return
        if file_type is FileType.FILE:
            raise VfsError(f"A file exists at {self.uri}", path=self.uri, provider=self._name.scheme)
        self.do_create_folder()

    def delete(self, selector: FileSelector | None = None) -> int:
        """Delete this node, or every node ``selector`` selects below it.

        Deletes run deepest first; folders that still have children are
        skipped. Deleting a missing node is not an error.

        :returns: The number of nodes deleted.
        """
        self._require(Capability.DELETE)
        count = 0
        for node in find_files(self, selector or SELECT_SELF, depthwise=True):
            node_type = node.get_type()
            if node_type.has_children and node.list_children():
                continue
            node.attach()
            node.do_delete()
            count += 1
        return count

    # endregion

    # region: copy and move

    def copy_from(self, source: FileObject, selector: FileSelector = SELECT_ALL) -> None:
        """Copy ``source`` (and the descendants ``selector`` picks) onto this node.

        Entries are copied in parent-first order. The first failing entry
        raises :class:`CopyError`; entries copied before it are kept.

        :raises NotFound: If ``source`` does not exist.
        :raises CopyError: If an entry fails to copy.
        """
        if not source.exists():
            raise NotFound(f"Source does not exist: {source.uri}", path=source.uri, provider=source.name.scheme)

        wrapped = (OSError, VfsError, *self._copy_errors, *source._copy_errors)
        log.debug("Copying %s to %s", source.uri, self.uri)
        for entry in find_files(source, selector):
            destination = self.resolve_file(source.name.relative_name(entry.name))
            try:
                entry_type = entry.get_type()
                if destination.exists() and destination.get_type() is not entry_type:
                    destination.delete(SELECT_ALL)
                self._copy_entry(entry, entry_type, destination)
            except CopyError:
                raise
            except wrapped as exc:
                raise CopyError(
                    f"Could not copy {entry.uri} to {destination.uri}: {exc}",
                    source=entry.uri,
                    destination=destination.uri,
                    provider=self._name.scheme,
                ) from exc
            finally:
                destination.close()
                entry.close()
        log.debug("Copied %s to %s", source.uri, self.uri)

    def _copy_entry(self, entry: FileObject, entry_type: FileType, destination: FileObject) -> None:
        """Copy one entry. Providers extend this with store-native copies."""
        if entry_type.has_children:
            destination.create_folder()
        elif entry_type.has_content:
            self._stream_copy(entry, destination)
        else:
            raise UnsupportedOperation(
                f"Cannot copy {entry.uri}: it has neither content nor children",
                path=entry.uri,
                provider=entry.name.scheme,
            )

    @staticmethod
    def _stream_copy(entry: FileObject, destination: FileObject) -> None:
        with entry.open_read() as src, destination.open_write() as dst:
            shutil.copyfileobj(src, dst, COPY_BUFFER_SIZE)

    def move_to(self, destination: FileObject) -> None:
        """Move this node and its descendants to ``destination`` (copy, then delete)."""
        destination.copy_from(self, SELECT_ALL)
        self.delete(SELECT_ALL)

    # endregion
