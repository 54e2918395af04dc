"""File provider implementations."""

from blobvfs.providers._blob import BLOB_CAPABILITIES, BlobFileObject, BlobFileProvider, BlobFileSystem
from blobvfs.providers._local import LocalFileObject, LocalFileProvider, LocalFileSystem

__all__ = [
    "BLOB_CAPABILITIES",
    "BlobFileObject",
    "BlobFileProvider",
    "BlobFileSystem",
    "LocalFileObject",
    "LocalFileProvider",
    "LocalFileSystem",
]
