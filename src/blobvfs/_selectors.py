"""File selectors and the depth-first traversal used by copy and delete."""

from __future__ import annotations

import abc
import dataclasses
from typing import TYPE_CHECKING, Callable

from blobvfs._types import FileType

if TYPE_CHECKING:
    from blobvfs._object import FileObject


@dataclasses.dataclass(frozen=True)
class FileSelectInfo:
    """What a selector sees for each visited node.

    :param base_folder: The node the traversal started from.
    :param file: The node being visited.
    :param depth: Distance from ``base_folder`` (0 for the base itself).
    """

    base_folder: FileObject
    file: FileObject
    depth: int


class FileSelector(abc.ABC):
    """Decides which nodes a traversal yields and which folders it enters."""

    @abc.abstractmethod
    def include_file(self, info: FileSelectInfo) -> bool:
        """Return ``True`` to yield ``info.file``."""

    @abc.abstractmethod
    def traverse_descendants(self, info: FileSelectInfo) -> bool:
        """Return ``True`` to visit the children of ``info.file``."""


class DepthSelector(FileSelector):
    """Selects nodes whose depth lies within ``[min_depth, max_depth]``.

    :param min_depth: Shallowest depth to include.
    :param max_depth: Deepest depth to include and traverse into.
    """

    def __init__(self, min_depth: int = 0, max_depth: int | None = None) -> None:
        self.min_depth = min_depth
        self.max_depth = max_depth

    def include_file(self, info: FileSelectInfo) -> bool:
        if info.depth < self.min_depth:
            return False
        return self.max_depth is None or info.depth <= self.max_depth

    def traverse_descendants(self, info: FileSelectInfo) -> bool:
        return self.max_depth is None or info.depth < self.max_depth

    def __repr__(self) -> str:
        return f"DepthSelector(min_depth={self.min_depth}, max_depth={self.max_depth})"


class TypeSelector(FileSelector):
    """Selects every descendant (self included) of a given type.

    :param file_type: The type to include.
    """

    def __init__(self, file_type: FileType) -> None:
        self.file_type = file_type

    def include_file(self, info: FileSelectInfo) -> bool:
        return info.file.get_type() is self.file_type

    def traverse_descendants(self, info: FileSelectInfo) -> bool:
        return True

    def __repr__(self) -> str:
        return f"TypeSelector({self.file_type.name})"


class FilterSelector(FileSelector):
    """Selects every descendant (self included) accepted by ``predicate``.

    :param predicate: Called with each :class:`FileSelectInfo`.
    """

    def __init__(self, predicate: Callable[[FileSelectInfo], bool]) -> None:
        self.predicate = predicate

    def include_file(self, info: FileSelectInfo) -> bool:
        return self.predicate(info)

    def traverse_descendants(self, info: FileSelectInfo) -> bool:
        return True


SELECT_SELF = DepthSelector(0, 0)
SELECT_SELF_AND_CHILDREN = DepthSelector(0, 1)
SELECT_CHILDREN = DepthSelector(1, 1)
SELECT_ALL = DepthSelector(0, None)
SELECT_FILES = TypeSelector(FileType.FILE)
SELECT_FOLDERS = TypeSelector(FileType.FOLDER)


def find_files(root: FileObject, selector: FileSelector, *, depthwise: bool = False) -> list[FileObject]:
    """Walk ``root`` depth-first and collect the nodes ``selector`` includes.

    Children are visited in name order. Nodes are returned parent-first, or
    children-first when ``depthwise`` is ``True`` (the order deletes need).
    """
    selected: list[FileObject] = []
    if root.exists():
        _walk(root, FileSelectInfo(base_folder=root, file=root, depth=0), selector, depthwise, selected)
    return selected


def _walk(
    root: FileObject,
    info: FileSelectInfo,
    selector: FileSelector,
    depthwise: bool,
    selected: list[FileObject],
) -> None:
    current = info.file
    include = selector.include_file(info)
    if include and not depthwise:
        selected.append(current)
    if current.get_type().has_children and selector.traverse_descendants(info):
        children = sorted(current.get_children(), key=lambda child: child.name.path)
        for child in children:
            _walk(root, FileSelectInfo(base_folder=root, file=child, depth=info.depth + 1), selector, depthwise, selected)
    if include and depthwise:
        selected.append(current)
