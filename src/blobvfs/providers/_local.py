"""Local file provider for ``file://`` names on the local disk."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from blobvfs._capabilities import Capability, CapabilitySet
from blobvfs._errors import InvalidPath, NotFound, VfsError
from blobvfs._filesystem import FileProvider, FileSystem
from blobvfs._name import SEPARATOR
from blobvfs._object import FileObject
from blobvfs._types import FileType

if TYPE_CHECKING:
    from blobvfs._config import FileSystemOptions
    from blobvfs._name import FileName

_ALL_CAPABILITIES = CapabilitySet(set(Capability))


class LocalFileObject(FileObject):
    """Handle on one local file or directory."""

    def __init__(self, name: FileName, fs: LocalFileSystem) -> None:
        super().__init__(name, fs)
        self._path = Path(name.path)

    @property
    def local_path(self) -> Path:
        return self._path

    def _stat(self) -> os.stat_result:
        try:
            return self._path.stat()
        except FileNotFoundError:
            raise NotFound(f"File not found: {self.uri}", path=self.uri, provider=self._name.scheme) from None

    def do_get_type(self) -> FileType:
        if self._path.is_file():
            return FileType.FILE
        if self._path.is_dir():
            return FileType.FOLDER
        return FileType.IMAGINARY

    def do_list_children(self) -> list[str]:
        base = self._name.path.rstrip(SEPARATOR)
        return [f"{base}{SEPARATOR}{child.name}" for child in sorted(self._path.iterdir())]

    def do_get_content_size(self) -> int:
        return self._stat().st_size

    def do_get_last_modified_time(self) -> datetime:
        return datetime.fromtimestamp(self._stat().st_mtime, tz=timezone.utc)

    def do_set_last_modified_time(self, modified: datetime) -> bool:
        timestamp = modified.timestamp()
        os.utime(self._path, (self._stat().st_atime, timestamp))
        return True

    def do_get_input_stream(self) -> BinaryIO:
        return self._path.open("rb")

    def do_get_output_stream(self, append: bool) -> BinaryIO:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        return self._path.open("ab" if append else "wb")

    def do_delete(self) -> None:
        if self._path.is_dir():
            self._path.rmdir()
        else:
            self._path.unlink(missing_ok=True)

    def do_create_folder(self) -> None:
        try:
            self._path.mkdir(parents=True, exist_ok=True)
        except FileExistsError:
            raise VfsError(f"A file exists on the way to {self.uri}", path=self.uri, provider=self._name.scheme) from None


class LocalFileSystem(FileSystem):
    """The local disk, rooted at ``/``."""

    @property
    def capabilities(self) -> CapabilitySet:
        return _ALL_CAPABILITIES

    def create_file(self, name: FileName) -> LocalFileObject:
        return LocalFileObject(name, self)


class LocalFileProvider(FileProvider):
    """Provider for ``file:///absolute/path`` names."""

    @property
    def capabilities(self) -> CapabilitySet:
        return _ALL_CAPABILITIES

    def do_create_file_system(self, root_name: FileName, options: FileSystemOptions) -> LocalFileSystem:
        if root_name.host and root_name.host != "localhost":
            raise InvalidPath(f"Local names cannot have a host: {root_name.uri!r}", path=root_name.uri)
        return LocalFileSystem(root_name, options)
