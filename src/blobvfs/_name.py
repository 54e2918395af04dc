"""FileName (immutable URI value object) and the container/key resolver."""

from __future__ import annotations

from typing import Final, Optional
from urllib.parse import quote, unquote, urlsplit

from blobvfs._errors import InvalidPath

SEPARATOR: Final = "/"
ROOT_KEY: Final = "/"


def split_container_key(path: str) -> tuple[str, str]:
    """Split an absolute file-system path into ``(container, key)``.

    The first segment names the container; everything after it is the key.
    A path naming only a container resolves to the root marker ``"/"``.

    :raises InvalidPath: If the path does not name a container.
    """
    stripped = path.lstrip(SEPARATOR)
    if not stripped.strip():
        raise InvalidPath("Path does not name a container", path=path)
    if SEPARATOR not in stripped:
        return stripped, ROOT_KEY
    container, key = stripped.split(SEPARATOR, 1)
    return container, key or ROOT_KEY


def _normalize_path(raw: str, *, uri: str) -> str:
    if "\0" in raw:
        raise InvalidPath("Path contains null byte", path=uri)
    parts: list[str] = []
    for segment in raw.replace("\\", SEPARATOR).split(SEPARATOR):
        if segment == "" or segment == ".":
            continue
        if segment == "..":
            if not parts:
                raise InvalidPath("Path escapes the file system root", path=uri)
            parts.pop()
            continue
        parts.append(segment)
    return SEPARATOR + SEPARATOR.join(parts)


class FileName:
    """An immutable, normalized ``scheme://[user[:password]@]host[:port]/path`` name.

    :param scheme: URI scheme, selects the provider.
    :param path: Absolute path within the file system (``"/"`` is the root).
    :param host: Authority host (empty for ``file:`` names).
    :param port: Optional authority port.
    :param username: Optional user embedded in the authority.
    :param password: Optional password embedded in the authority.
    """

    __slots__ = ("_scheme", "_host", "_port", "_username", "_password", "_path")

    def __init__(
        self,
        scheme: str,
        path: str = SEPARATOR,
        *,
        host: str = "",
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        if not scheme:
            raise InvalidPath("Name has no scheme", path=path)
        object.__setattr__(self, "_scheme", scheme.lower())
        object.__setattr__(self, "_host", host)
        object.__setattr__(self, "_port", port)
        object.__setattr__(self, "_username", username)
        object.__setattr__(self, "_password", password)
        object.__setattr__(self, "_path", _normalize_path(path, uri=f"{scheme}://{host}{path}"))

    @classmethod
    def parse(cls, uri: str) -> FileName:
        """Parse a URI string.

        :raises InvalidPath: If the URI has no scheme or an unsafe path.
        """
        parts = urlsplit(uri)
        if not parts.scheme or "://" not in uri:
            raise InvalidPath("URI has no scheme", path=uri)
        try:
            port = parts.port
        except ValueError:
            raise InvalidPath("URI has an invalid port", path=uri) from None
        return cls(
            parts.scheme,
            unquote(parts.path) or SEPARATOR,
            host=parts.hostname or "",
            port=port,
            username=unquote(parts.username) if parts.username is not None else None,
            password=unquote(parts.password) if parts.password is not None else None,
        )

    # region: components

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> Optional[int]:
        return self._port

    @property
    def username(self) -> Optional[str]:
        return self._username

    @property
    def password(self) -> Optional[str]:
        return self._password

    @property
    def path(self) -> str:
        """Absolute, normalized path (``"/"`` for the root)."""
        return self._path

    @property
    def authority(self) -> str:
        """``host[:port]`` without user info."""
        if self._port is not None:
            return f"{self._host}:{self._port}"
        return self._host

    @property
    def base_name(self) -> str:
        """Final path component, empty for the root."""
        return self._path.rsplit(SEPARATOR, 1)[-1]

    @property
    def extension(self) -> str:
        """File extension without the dot, or an empty string."""
        name = self.base_name
        dot = name.rfind(".")
        if dot <= 0:
            return ""
        return name[dot + 1 :]

    @property
    def depth(self) -> int:
        """Number of path components below the root."""
        if self._path == SEPARATOR:
            return 0
        return self._path.count(SEPARATOR)

    @property
    def root_key(self) -> tuple[str, str, Optional[int], Optional[str], Optional[str]]:
        """Identity of the file system root, including embedded credentials."""
        return (self._scheme, self._host.lower(), self._port, self._username, self._password)

    # endregion

    # region: derived names

    def _with_path(self, path: str) -> FileName:
        return FileName(
            self._scheme,
            path,
            host=self._host,
            port=self._port,
            username=self._username,
            password=self._password,
        )

    @property
    def root(self) -> FileName:
        """Name of the file system root (same authority, path ``"/"``)."""
        return self._with_path(SEPARATOR)

    @property
    def parent(self) -> Optional[FileName]:
        """Parent name, or ``None`` at the root."""
        if self._path == SEPARATOR:
            return None
        return self._with_path(self._path.rsplit(SEPARATOR, 1)[0] or SEPARATOR)

    def child(self, name: str) -> FileName:
        """Name of a direct child of this name."""
        if not name or SEPARATOR in name.strip(SEPARATOR):
            raise InvalidPath(f"Invalid child name: {name!r}", path=self.uri)
        return self._with_path(f"{self._path.rstrip(SEPARATOR)}/{name.strip(SEPARATOR)}")

    def resolve(self, relative: str) -> FileName:
        """Resolve a relative path (``"."`` is this name) against this name."""
        if relative.startswith(SEPARATOR):
            return self._with_path(relative)
        return self._with_path(f"{self._path.rstrip(SEPARATOR)}/{relative}")

    def is_descendant(self, other: FileName) -> bool:
        """Return ``True`` if ``other`` is strictly below this name."""
        if other.root_key != self.root_key:
            return False
        if self._path == SEPARATOR:
            return other._path != SEPARATOR
        return other._path.startswith(self._path + SEPARATOR)

    def relative_name(self, descendant: FileName) -> str:
        """Path of ``descendant`` relative to this name, ``"."`` for itself.

        :raises InvalidPath: If ``descendant`` is not this name or below it.
        """
        if descendant == self:
            return "."
        if not self.is_descendant(descendant):
            raise InvalidPath(f"{descendant.uri!r} is not below {self.uri!r}", path=descendant.uri)
        return descendant._path[len(self._path.rstrip(SEPARATOR)) + 1 :]

    # endregion

    # region: string forms

    def _format(self, *, with_password: bool) -> str:
        user = ""
        if self._username is not None:
            user = quote(self._username, safe="")
            if with_password and self._password is not None:
                user += ":" + quote(self._password, safe="")
            user += "@"
        return f"{self._scheme}://{user}{self.authority}{quote(self._path)}"

    @property
    def uri(self) -> str:
        """Full URI without the password."""
        return self._format(with_password=False)

    @property
    def root_uri(self) -> str:
        """URI of the file system root without the password."""
        return self.root.uri

    def __str__(self) -> str:
        return self.uri

    def __repr__(self) -> str:
        return f"FileName({self.uri!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FileName):
            return self.root_key == other.root_key and self._path == other._path
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.root_key, self._path))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"FileName is immutable: cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"FileName is immutable: cannot delete '{name}'")

    # endregion
