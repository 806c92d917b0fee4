"""Credential, certificate and backend-descriptor collaborators."""
from .base import (
    BackendDescriptor,
    BackendDescriptorProvider,
    BackendRef,
    Secret,
    SecretProvider,
    split_meta_key,
)
from .static import StaticBackendProvider, StaticSecretProvider

__all__ = [
    "BackendDescriptor",
    "BackendDescriptorProvider",
    "BackendRef",
    "Secret",
    "SecretProvider",
    "StaticBackendProvider",
    "StaticSecretProvider",
    "split_meta_key",
]
