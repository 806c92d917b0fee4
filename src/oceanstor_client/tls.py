"""TLS trust configuration built from certificate secrets."""

from __future__ import annotations

import logging
import re
import ssl
from dataclasses import dataclass
from typing import Any

from requests.adapters import HTTPAdapter

from .auth.base import BackendDescriptorProvider, BackendRef, SecretProvider, split_meta_key
from .exceptions import CertificateError, SecretError

logger = logging.getLogger(__name__)

CERTIFICATE_KEY = "tls.crt"

_PEM_CERT_RE = re.compile(
    r"-----BEGIN CERTIFICATE-----\s+.+?\s+-----END CERTIFICATE-----",
    re.DOTALL,
)


@dataclass(frozen=True, slots=True)
class TLSConfig:
    """Whether to verify the array certificate and which CA to trust."""

    verify: bool = True
    ca_pem: str | None = None

    @classmethod
    def insecure(cls) -> TLSConfig:
        return cls(verify=False)


def load_ca_pem(data: bytes | bytearray | str, *, source: str = "certificate") -> str:
    """Return the PEM certificates in ``data`` after checking they decode."""

    try:
        text = bytes(data).decode("ascii") if isinstance(data, (bytes, bytearray)) else data
    except UnicodeDecodeError as exc:
        raise CertificateError(f"Certificate data decode error in {source}.") from exc
    blocks = _PEM_CERT_RE.findall(text)
    if not blocks:
        raise CertificateError(f"Certificate data decode error in {source}.")
    for block in blocks:
        try:
            ssl.PEM_cert_to_DER_cert(block)
        except ValueError as exc:
            raise CertificateError(f"Error parsing certificate in {source}: {exc}") from exc
    return "\n".join(blocks) + "\n"


def build_ssl_context(ca_pem: str) -> ssl.SSLContext:
    """Verify the chain against ``ca_pem`` and the certificate against the host name."""

    try:
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cadata=ca_pem)
    except ssl.SSLError as exc:
        raise CertificateError(f"Unable to load CA certificate: {exc}") from exc
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    return context


class TrustedCAAdapter(HTTPAdapter):
    """HTTPS adapter that verifies peers against a dedicated SSL context."""

    def __init__(self, ssl_context: ssl.SSLContext, **kwargs: Any) -> None:
        self._ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["ssl_context"] = self._ssl_context
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args: Any, **kwargs: Any):
        kwargs["ssl_context"] = self._ssl_context
        return super().proxy_manager_for(*args, **kwargs)


def resolve_tls_config(
    backends: BackendDescriptorProvider | None,
    secrets: SecretProvider,
    backend: BackendRef | None,
) -> TLSConfig:
    """Ask the backend descriptor whether certificates are used and load them."""

    if backends is None or backend is None:
        logger.info("No backend descriptor configured, skip certificate verification")
        return TLSConfig.insecure()

    descriptor = backends.get_backend(backend.namespace, backend.name)
    if not descriptor.use_cert:
        logger.info("useCert is false for backend %s, skip the certificate", backend)
        return TLSConfig.insecure()
    if not descriptor.cert_secret:
        raise SecretError(f"certSecret parameter is not configured for backend {backend}")

    namespace, name = split_meta_key(descriptor.cert_secret)
    secret = secrets.get_secret(name, namespace)
    cert_data = secret.get(CERTIFICATE_KEY)
    if cert_data is None:
        raise CertificateError(f"Certificate not configured in secret {namespace}/{name}")
    logger.info("Loaded certificate from secret %s/%s", namespace, name)
    return TLSConfig(verify=True, ca_pem=load_ca_pem(cert_data, source=f"secret {namespace}/{name}"))


__all__ = [
    "CERTIFICATE_KEY",
    "TLSConfig",
    "TrustedCAAdapter",
    "build_ssl_context",
    "load_ca_pem",
    "resolve_tls_config",
]
