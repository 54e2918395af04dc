"""FileSystemManager: provider registry and file resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from blobvfs._errors import ProviderError
from blobvfs._name import FileName

if TYPE_CHECKING:
    from types import TracebackType

    from blobvfs._capabilities import CapabilitySet
    from blobvfs._config import FileSystemOptions
    from blobvfs._filesystem import FileProvider
    from blobvfs._object import FileObject

ProviderFactory = Callable[[], "FileProvider"]

# Global provider factory registry: maps URI schemes to provider factories.
_PROVIDER_FACTORIES: dict[str, ProviderFactory] = {}


def register_provider(scheme: str, factory: ProviderFactory) -> None:
    """Register a provider factory for a URI scheme.

    :param scheme: The scheme (e.g. ``"azsb"``).
    :param factory: Zero-argument callable returning a new provider.
    """
    _PROVIDER_FACTORIES[scheme.lower()] = factory


def _azure_provider() -> FileProvider:
    from blobvfs.clients._azure import AZURE_ERRORS, AzureBlobClientFactory
    from blobvfs.providers._blob import BlobFileProvider

    return BlobFileProvider(AzureBlobClientFactory(), copy_errors=AZURE_ERRORS)


def _s3_provider() -> FileProvider:
    from blobvfs.clients._s3 import S3BlobClientFactory
    from blobvfs.providers._blob import BlobFileProvider

    return BlobFileProvider(S3BlobClientFactory())


def _register_builtin_providers() -> None:
    """Register the built-in providers."""
    from blobvfs.providers._local import LocalFileProvider

    _PROVIDER_FACTORIES.setdefault("file", LocalFileProvider)
    _PROVIDER_FACTORIES.setdefault("azsb", _azure_provider)
    _PROVIDER_FACTORIES.setdefault("s3", _s3_provider)


class FileSystemManager:
    """Resolves URIs to file handles, one provider instance per scheme.

    :param options: Default options for file systems created by this manager.
    """

    def __init__(self, options: FileSystemOptions | None = None) -> None:
        _register_builtin_providers()
        self._options = options
        self._providers: dict[str, FileProvider] = {}

    def __repr__(self) -> str:
        return f"FileSystemManager(schemes={sorted(_PROVIDER_FACTORIES)!r})"

    def has_provider(self, scheme: str) -> bool:
        return scheme.lower() in _PROVIDER_FACTORIES

    def _get_provider(self, scheme: str) -> FileProvider:
        """Lazily instantiate and cache the provider for a scheme."""
        scheme = scheme.lower()
        if scheme not in self._providers:
            if scheme not in _PROVIDER_FACTORIES:
                raise ProviderError(
                    f"Unknown scheme '{scheme}'. Registered schemes: {sorted(_PROVIDER_FACTORIES)}",
                    provider=scheme,
                )
            self._providers[scheme] = _PROVIDER_FACTORIES[scheme]()
        return self._providers[scheme]

    def get_provider_capabilities(self, scheme: str) -> CapabilitySet:
        """Return the static capabilities of a scheme's provider."""
        return self._get_provider(scheme).capabilities

    def resolve_file(self, uri: str | FileName, options: FileSystemOptions | None = None) -> FileObject:
        """Return a handle for ``uri``.

        File systems are created once per root and options and reused.

        :raises InvalidPath: If the URI is malformed.
        :raises ProviderError: If no provider handles the scheme or the file
            system cannot be created.
        """
        name = uri if isinstance(uri, FileName) else FileName.parse(uri)
        provider = self._get_provider(name.scheme)
        return provider.find_file(name, options or self._options)

    def close(self) -> None:
        """Close every provider and the file systems they created."""
        for provider in self._providers.values():
            provider.close()
        self._providers.clear()

    def __enter__(self) -> FileSystemManager:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
