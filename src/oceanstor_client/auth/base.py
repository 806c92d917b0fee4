"""Interfaces for the secret and backend-descriptor collaborators."""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..exceptions import SecretError

PASSWORD_KEY = "password"
AUTH_MODE_KEY = "authenticationMode"
AUTH_MODE_LOCAL = "0"


@dataclass(slots=True)
class Secret:
    """Secret payload whose values can be wiped in place."""

    name: str
    namespace: str
    data: dict[str, bytearray] = field(default_factory=dict)

    def get(self, key: str) -> bytearray | None:
        return self.data.get(key)

    def wipe(self) -> None:
        for value in self.data.values():
            for index in range(len(value)):
                value[index] = 0


@dataclass(frozen=True, slots=True)
class BackendRef:
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True, slots=True)
class BackendDescriptor:
    """Dynamic backend description pointing at the current secrets."""

    secret_meta: str | None = None
    use_cert: bool = False
    cert_secret: str | None = None


class SecretProvider(ABC):
    """Source of credential and certificate secrets."""

    @abstractmethod
    def get_secret(self, name: str, namespace: str) -> Secret:
        """Return the named secret or raise `SecretNotFoundError`."""


class BackendDescriptorProvider(ABC):
    """Source of the storage backend description."""

    @abstractmethod
    def get_backend(self, namespace: str, name: str) -> BackendDescriptor:
        """Return the descriptor of the named backend."""


def split_meta_key(key: str) -> tuple[str, str]:
    """Split a ``<namespace>/<name>`` reference."""

    parts = key.split("/") if isinstance(key, str) else []
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise SecretError(f"Unexpected secret reference {key!r}, expected '<namespace>/<name>'.")
    return parts[0].strip(), parts[1].strip()


def secret_from_mapping(name: str, namespace: str, values: Mapping[str, bytes | str]) -> Secret:
    data = {
        key: bytearray(value.encode("utf-8") if isinstance(value, str) else value)
        for key, value in values.items()
    }
    return Secret(name=name, namespace=namespace, data=data)
