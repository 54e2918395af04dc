"""Blob-store client interface and SDK adapters."""

from blobvfs.clients._azure import AzureBlobClientFactory
from blobvfs.clients._base import (
    Blob,
    BlobClient,
    BlobClientFactory,
    BlobContainer,
    BlobItem,
    BlobKind,
    BlobProperties,
    Credentials,
)
from blobvfs.clients._s3 import S3BlobClientFactory

__all__ = [
    "AzureBlobClientFactory",
    "Blob",
    "BlobClient",
    "BlobClientFactory",
    "BlobContainer",
    "BlobItem",
    "BlobKind",
    "BlobProperties",
    "Credentials",
    "S3BlobClientFactory",
]
