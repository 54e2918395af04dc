"""User authentication data and pluggable authenticators."""

from __future__ import annotations

import abc
import enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from collections.abc import Sequence


class AuthDataType(enum.Enum):
    """Kinds of credential material an authenticator can be asked for."""

    USERNAME = "username"
    PASSWORD = "password"
    DOMAIN = "domain"


class UserAuthenticationData:
    """Transient credential material returned by an authenticator.

    Call :meth:`cleanup` once the credentials have been consumed.
    """

    def __init__(self) -> None:
        self._data: dict[AuthDataType, str] = {}

    def set(self, data_type: AuthDataType, value: Optional[str]) -> None:
        if value is None:
            self._data.pop(data_type, None)
        else:
            self._data[data_type] = value

    def get(self, data_type: AuthDataType, default: Optional[str] = None) -> Optional[str]:
        return self._data.get(data_type, default)

    def cleanup(self) -> None:
        """Forget every stored value."""
        self._data.clear()

    def __contains__(self, data_type: object) -> bool:
        return data_type in self._data

    def __repr__(self) -> str:
        kinds = sorted(t.name for t in self._data)
        return f"UserAuthenticationData({kinds})"


class UserAuthenticator(abc.ABC):
    """Supplies credentials for a file system root."""

    @abc.abstractmethod
    def request_authentication(self, types: Sequence[AuthDataType]) -> Optional[UserAuthenticationData]:
        """Return credentials for the requested ``types``, or ``None``."""


class StaticUserAuthenticator(UserAuthenticator):
    """Authenticator returning a fixed username / password pair.

    For blob stores the username is the account name (or access key id) and
    the password is the account key (or secret key).

    :param username: User or account name.
    :param password: Password or account key.
    :param domain: Optional domain.
    """

    def __init__(self, username: Optional[str] = None, password: Optional[str] = None, domain: Optional[str] = None) -> None:
        self._values = {
            AuthDataType.USERNAME: username,
            AuthDataType.PASSWORD: password,
            AuthDataType.DOMAIN: domain,
        }

    def request_authentication(self, types: Sequence[AuthDataType]) -> Optional[UserAuthenticationData]:
        data = UserAuthenticationData()
        for data_type in types:
            data.set(data_type, self._values.get(data_type))
        return data

    def __repr__(self) -> str:
        return f"StaticUserAuthenticator(username={self._values[AuthDataType.USERNAME]!r})"
