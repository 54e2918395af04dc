"""Shared test fixtures and marker registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from blobvfs._config import FileSystemOptions
from blobvfs._manager import FileSystemManager
from blobvfs._name import FileName
from blobvfs.providers._blob import BlobFileProvider
from tests.fakes import MemoryClientFactory, MemoryStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from blobvfs._object import FileObject


def pytest_configure(config: object) -> None:
    """Register custom markers."""
    if isinstance(config, pytest.Config):
        config.addinivalue_line("markers", "integration: requires external services")


@pytest.fixture
def client_factory() -> MemoryClientFactory:
    return MemoryClientFactory()


@pytest.fixture
def store(client_factory: MemoryClientFactory) -> MemoryStore:
    """Store of the ``account`` host with an empty ``data`` container."""
    account = client_factory.store("account")
    account.containers["data"] = {}
    return account


@pytest.fixture
def provider(client_factory: MemoryClientFactory) -> Iterator[BlobFileProvider]:
    p = BlobFileProvider(client_factory, copy_errors=(PermissionError,))
    yield p
    p.close()


@pytest.fixture
def resolve(provider: BlobFileProvider, store: MemoryStore) -> Callable[..., FileObject]:
    """Resolve ``mem://account/<path>`` handles through the blob provider."""

    def _resolve(path: str, options: FileSystemOptions | None = None) -> FileObject:
        return provider.find_file(FileName.parse(f"mem://account/{path.lstrip('/')}"), options)

    return _resolve


@pytest.fixture
def manager() -> Iterator[FileSystemManager]:
    with FileSystemManager() as m:
        yield m
