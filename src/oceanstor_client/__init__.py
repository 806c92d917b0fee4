"""High-level OceanStor client entrypoints."""
from .client import OceanStorClient
from .config import ClientConfig
from .context import CallContext
from .endpoints import EndpointRegistry, default_registry
from .exceptions import OceanStorError
from .retry import RetryPolicy
from .tls import TLSConfig

__all__ = [
    "CallContext",
    "ClientConfig",
    "EndpointRegistry",
    "OceanStorClient",
    "OceanStorError",
    "RetryPolicy",
    "TLSConfig",
    "default_registry",
]
