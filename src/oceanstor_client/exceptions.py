"""Custom exception hierarchy for the OceanStor client."""
from __future__ import annotations

from typing import Any


class OceanStorError(RuntimeError):
    """Base error for OceanStor failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class TransportError(OceanStorError):
    """Raised when the array cannot be reached or answers with a non-JSON body."""


class CertificateVerificationError(TransportError):
    """Raised when the TLS handshake fails certificate verification."""


class UnexpectedResponseError(OceanStorError):
    """Raised when the API returns an unexpected payload structure."""


class MalformedEnvelopeError(UnexpectedResponseError):
    """Raised when a response envelope lacks a usable status code."""


class RegistryError(OceanStorError):
    """Base error for endpoint registry misuse."""


class TemplateError(RegistryError):
    """Raised when an endpoint template cannot be parsed."""


class UnknownOperationError(RegistryError):
    """Raised when resolving an operation name that was never registered."""


class MissingArgumentError(RegistryError):
    """Raised when a template placeholder has no matching argument."""


class AuthenticationError(OceanStorError):
    """Raised when credentials fail or the login response is rejected."""


class AllEndpointsUnreachableError(AuthenticationError):
    """Raised when every candidate URL fails at transport level during login."""


class InvalidLoginResponseError(AuthenticationError):
    """Raised when a login response lacks the device id, token or account state."""


class AccountStateInvalidError(AuthenticationError):
    """Raised when the account state reported on login is not usable."""


class RequestError(OceanStorError):
    """Raised when the array answers an operation with a failure code."""


class SecretError(OceanStorError):
    """Raised when credential or certificate secrets cannot be read."""


class SecretNotFoundError(SecretError):
    """Raised by secret providers when the requested secret does not exist."""


class CertificateError(OceanStorError):
    """Raised when certificate material cannot be decoded into a trust store."""


class CallCancelledError(OceanStorError):
    """Raised when a call is cancelled or its deadline elapses."""
