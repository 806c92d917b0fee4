"""In-memory collaborators for scripts, the CLI and tests."""

from __future__ import annotations

from collections.abc import Mapping

from ..exceptions import SecretError, SecretNotFoundError
from .base import (
    AUTH_MODE_KEY,
    PASSWORD_KEY,
    BackendDescriptor,
    BackendDescriptorProvider,
    Secret,
    SecretProvider,
    secret_from_mapping,
)


class StaticSecretProvider(SecretProvider):
    """Serve secrets from a ``{(namespace, name): {key: value}}`` table.

    Each lookup returns a fresh copy so wiping a returned secret leaves the
    table usable for the next login.
    """

    def __init__(self, secrets: Mapping[tuple[str, str], Mapping[str, bytes | str]] | None = None) -> None:
        self._secrets: dict[tuple[str, str], dict[str, bytes]] = {}
        for (namespace, name), values in (secrets or {}).items():
            self.put(namespace, name, values)

    @classmethod
    def for_password(
        cls,
        password: str,
        *,
        name: str = "storage-credentials",
        namespace: str = "default",
        scope: str | None = None,
    ) -> StaticSecretProvider:
        values: dict[str, bytes | str] = {PASSWORD_KEY: password}
        if scope is not None:
            values[AUTH_MODE_KEY] = scope
        return cls({(namespace, name): values})

    def put(self, namespace: str, name: str, values: Mapping[str, bytes | str]) -> None:
        self._secrets[(namespace, name)] = {
            key: value.encode("utf-8") if isinstance(value, str) else bytes(value)
            for key, value in values.items()
        }

    def remove(self, namespace: str, name: str) -> None:
        self._secrets.pop((namespace, name), None)

    def get_secret(self, name: str, namespace: str) -> Secret:
        values = self._secrets.get((namespace, name))
        if values is None:
            raise SecretNotFoundError(f"Secret {namespace}/{name} not found.")
        return secret_from_mapping(name, namespace, values)


class StaticBackendProvider(BackendDescriptorProvider):
    """Serve backend descriptors from a fixed table."""

    def __init__(self, backends: Mapping[tuple[str, str], BackendDescriptor] | None = None) -> None:
        self._backends = dict(backends or {})

    def put(self, namespace: str, name: str, descriptor: BackendDescriptor) -> None:
        self._backends[(namespace, name)] = descriptor

    def get_backend(self, namespace: str, name: str) -> BackendDescriptor:
        descriptor = self._backends.get((namespace, name))
        if descriptor is None:
            raise SecretError(f"Storage backend {namespace}/{name} not found.")
        return descriptor
