"""High-level OceanStor REST client."""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence
from functools import partial
from typing import Any

import requests

from . import codes
from .auth.base import BackendDescriptorProvider, BackendRef, SecretProvider
from .config import ClientConfig
from .context import CallContext
from .endpoints import EndpointRegistry, default_registry
from .envelope import Envelope, Outcome, classify
from .exceptions import OceanStorError, TransportError
from .gate import AdmissionGate
from .http import Transport
from .resources import (
    FilesystemsResource,
    LabelsResource,
    LunsResource,
    PerformanceResource,
    SystemResource,
)
from .retry import CallResult, retry_call
from .session import SESSIONS_PATH, SessionManager, SessionState
from .tls import TLSConfig, resolve_tls_config

logger = logging.getLogger(__name__)


class OceanStorClient:
    """Wrap OceanStor REST endpoints with session recovery and retries."""

    def __init__(
        self,
        *,
        urls: Sequence[str],
        user: str,
        secrets: SecretProvider,
        secret_name: str = "storage-credentials",
        secret_namespace: str = "default",
        backends: BackendDescriptorProvider | None = None,
        backend_name: str | None = None,
        backend_namespace: str | None = None,
        tls: TLSConfig | None = None,
        max_concurrency: int = 30,
        timeout: float = 60.0,
        max_retries: int = 5,
        retry_interval: float = 2.0,
        default_headers: Mapping[str, str] | None = None,
        registry: EndpointRegistry | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = ClientConfig(
            urls=urls,
            user=user,
            secret_name=secret_name,
            secret_namespace=secret_namespace,
            backend_name=backend_name,
            backend_namespace=backend_namespace,
            max_concurrency=max_concurrency,
            timeout=timeout,
            max_retries=max_retries,
            retry_interval=retry_interval,
            default_headers=default_headers,
        )
        self.registry = registry or default_registry()
        self.gate = AdmissionGate(self.config.max_concurrency)

        backend_ref = None
        if backend_name and backend_namespace:
            backend_ref = BackendRef(namespace=backend_namespace, name=backend_name)
        if tls is not None:
            tls_loader = partial(_fixed_tls, tls)
        else:
            tls_loader = partial(resolve_tls_config, backends, secrets, backend_ref)

        self._transport = Transport(
            timeout=self.config.timeout,
            session=session,
            tls=tls_loader(),
            default_headers=self.config.resolved_headers(),
        )
        self.sessions = SessionManager(
            urls=self.config.urls,
            user=self.config.user,
            transport=self._transport,
            gate=self.gate,
            secrets=secrets,
            secret_name=self.config.secret_name,
            secret_namespace=self.config.secret_namespace,
            backends=backends,
            backend=backend_ref,
            tls_loader=tls_loader,
        )
        self.system = SystemResource(self)
        self.filesystems = FilesystemsResource(self)
        self.luns = LunsResource(self)
        self.labels = LabelsResource(self)
        self.performance = PerformanceResource(self)

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> OceanStorClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    # Public API --------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self.sessions.state

    def login(self, *, context: CallContext | None = None) -> None:
        self.sessions.login(context=context)

    def logout(self) -> None:
        self.sessions.logout()

    def call(
        self,
        method: str,
        operation: str,
        args: Mapping[str, Any] | None = None,
        payload: Mapping[str, Any] | None = None,
        *,
        retry_codes: Collection[int] = codes.DEFAULT_RETRY_CODES,
        permitted_codes: Collection[int] = (),
        context: CallContext | None = None,
    ) -> Outcome:
        """Run a registered operation and return its successful outcome.

        Busy codes in ``retry_codes`` are redriven with a fixed delay; any
        other failure code is raised as `RequestError`.
        """

        policy = self.config.retry_policy(retry_codes)

        def unit() -> CallResult[Outcome]:
            try:
                path = self.registry.resolve(operation, args)
                envelope = self._dispatch(method, path, payload, context=context)
            except OceanStorError as exc:
                logger.error("storage call %s failed: %s", operation, exc)
                return CallResult(error=exc)
            outcome = classify(envelope, policy.retryable_codes, permitted_codes)
            if outcome.ok:
                return CallResult(result=outcome, code=outcome.code)
            logger.error(
                "storage call %s failed, code: %s, description: %s",
                operation,
                envelope.code,
                envelope.description,
            )
            return CallResult(result=outcome, code=outcome.code, error=outcome.error())

        return retry_call(policy, unit, context=context)

    def request(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None = None,
        *,
        context: CallContext | None = None,
    ) -> Envelope:
        """Send a raw path through session recovery without classification."""

        normalized = path if path.startswith("/") else f"/{path}"
        return self._dispatch(method, normalized, payload, context=context)

    def close(self) -> None:
        if self.sessions.state is SessionState.ACTIVE:
            self.sessions.logout()
        self._transport.close()

    # Internal helpers -------------------------------------------------------
    def _dispatch(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None,
        *,
        context: CallContext | None,
    ) -> Envelope:
        if path.endswith(SESSIONS_PATH):
            return self.sessions.send(method, path, payload, context=context)

        snapshot = self.sessions.session.snapshot
        token = snapshot.token
        try:
            envelope = self.sessions.send(method, path, payload, snapshot=snapshot, context=context)
        except TransportError as exc:
            logger.warning("storage call %s %s failed, relogin and retry: %s", method, path, exc)
            return self._relogin_call(method, path, payload, token, context)

        if envelope.code == codes.NO_AUTHENTICATION:
            logger.info("%s %s no authentication, need relogin", method, path)
            return self._relogin_call(method, path, payload, token, context)
        return envelope

    def _relogin_call(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None,
        stale_token: str,
        context: CallContext | None,
    ) -> Envelope:
        if context is not None:
            context.check()
        self.sessions.relogin(stale_token)
        return self.sessions.send(method, path, payload, context=context)


def _fixed_tls(tls: TLSConfig) -> TLSConfig:
    return tls


__all__ = ["OceanStorClient"]
