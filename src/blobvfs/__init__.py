"""Uniform path-based file system over blob stores."""

from blobvfs._auth import AuthDataType, StaticUserAuthenticator, UserAuthenticationData, UserAuthenticator
from blobvfs._capabilities import Capability, CapabilitySet
from blobvfs._config import BlobFileSystemConfig, FileSystemOptions
from blobvfs._content_type import detect as detect_content_type
from blobvfs._errors import (
    CapabilityNotSupported,
    CopyError,
    InvalidPath,
    NotAFile,
    NotAFolder,
    NotFound,
    ProviderError,
    UnsupportedOperation,
    VfsError,
)
from blobvfs._filesystem import FileProvider, FileSystem
from blobvfs._manager import FileSystemManager, register_provider
from blobvfs._models import FileInfo
from blobvfs._name import ROOT_KEY, FileName, split_container_key
from blobvfs._object import FileObject
from blobvfs._selectors import (
    SELECT_ALL,
    SELECT_CHILDREN,
    SELECT_FILES,
    SELECT_FOLDERS,
    SELECT_SELF,
    SELECT_SELF_AND_CHILDREN,
    DepthSelector,
    FileSelectInfo,
    FileSelector,
    FilterSelector,
    TypeSelector,
    find_files,
)
from blobvfs._types import FileType

__version__ = "0.1.0"

__all__ = [
    # Core
    "FileSystemManager",
    "FileProvider",
    "FileSystem",
    "FileObject",
    "register_provider",
    # Names & Models
    "FileName",
    "ROOT_KEY",
    "split_container_key",
    "FileType",
    "FileInfo",
    "detect_content_type",
    # Capabilities & Selectors
    "Capability",
    "CapabilitySet",
    "FileSelector",
    "FileSelectInfo",
    "DepthSelector",
    "TypeSelector",
    "FilterSelector",
    "SELECT_ALL",
    "SELECT_CHILDREN",
    "SELECT_FILES",
    "SELECT_FOLDERS",
    "SELECT_SELF",
    "SELECT_SELF_AND_CHILDREN",
    "find_files",
    # Config & Auth
    "BlobFileSystemConfig",
    "FileSystemOptions",
    "AuthDataType",
    "UserAuthenticator",
    "UserAuthenticationData",
    "StaticUserAuthenticator",
    # Errors
    "VfsError",
    "InvalidPath",
    "NotFound",
    "NotAFile",
    "NotAFolder",
    "CapabilityNotSupported",
    "UnsupportedOperation",
    "CopyError",
    "ProviderError",
    # Version
    "__version__",
]
