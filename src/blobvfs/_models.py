"""Immutable metadata models."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from blobvfs._name import FileName


@dataclasses.dataclass(frozen=True, eq=False)
class FileInfo:
    """Immutable snapshot of file metadata.

    :param name: Name of the file.
    :param size: Content size in bytes.
    :param last_modified: Last modification time.
    :param content_type: Optional MIME type.
    :param etag: Optional entity tag or checksum.
    """

    name: FileName
    size: int
    last_modified: datetime
    content_type: str | None = None
    etag: str | None = None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FileInfo):
            return self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)
