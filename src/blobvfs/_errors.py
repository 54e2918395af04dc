"""Normalized error hierarchy for blobvfs."""

from __future__ import annotations

from typing import Optional


class VfsError(Exception):
    """Base class for all blobvfs errors.

    :param message: Human-readable error description.
    :param path: The path (URI) involved in the error, if any.
    :param provider: The provider scheme involved, if any.
    """

    def __init__(self, message: str = "", *, path: Optional[str] = None, provider: Optional[str] = None) -> None:
        self.path = path
        self.provider = provider
        super().__init__(message)

    def _context(self) -> list[str]:
        parts = []
        if self.path is not None:
            parts.append(f"path={self.path!r}")
        if self.provider is not None:
            parts.append(f"provider={self.provider!r}")
        return parts

    def __str__(self) -> str:
        parts = [super().__str__(), *self._context()]
        return " | ".join(parts) if len(parts) > 1 else parts[0]

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(self.args[0] if self.args else ""), *self._context()]
        return f"{cls}({', '.join(args)})"


class InvalidPath(VfsError):
    """Raised for malformed paths, e.g. a path with no container segment."""


class NotFound(VfsError):
    """Raised when a file or folder that must exist does not."""


class NotAFile(VfsError):
    """Raised when a content operation targets a folder."""


class NotAFolder(VfsError):
    """Raised when children are requested from a file."""


class CapabilityNotSupported(VfsError):
    """Raised when an operation requires a capability the file system lacks.

    :param capability: The name of the unsupported capability.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        provider: Optional[str] = None,
        capability: str = "",
    ) -> None:
        self.capability = capability
        super().__init__(message, path=path, provider=provider)

    def _context(self) -> list[str]:
        parts = super()._context()
        if self.capability:
            parts.append(f"capability={self.capability!r}")
        return parts


class UnsupportedOperation(VfsError):
    """Raised when an entry can neither hold content nor have children."""


class CopyError(VfsError):
    """Raised when copying a single entry fails.

    Entries copied before the failing one are left in place.

    :param source: URI of the entry being copied.
    :param destination: URI of the entry being written.
    """

    def __init__(
        self,
        message: str = "",
        *,
        source: str,
        destination: str,
        provider: Optional[str] = None,
    ) -> None:
        self.source = source
        self.destination = destination
        super().__init__(message, path=destination, provider=provider)

    def _context(self) -> list[str]:
        parts = [f"source={self.source!r}", f"destination={self.destination!r}"]
        if self.provider is not None:
            parts.append(f"provider={self.provider!r}")
        return parts


class ProviderError(VfsError):
    """Raised when a provider cannot build a file system for a root."""
