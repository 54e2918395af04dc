"""Type aliases and small enums used throughout blobvfs."""

from __future__ import annotations

import enum
from typing import BinaryIO

WritableContent = BinaryIO | bytes


class FileType(enum.Enum):
    """Kind of node a path resolves to."""

    FILE = "file"
    FOLDER = "folder"
    IMAGINARY = "imaginary"

    @property
    def has_children(self) -> bool:
        return self is FileType.FOLDER

    @property
    def has_content(self) -> bool:
        return self is FileType.FILE
