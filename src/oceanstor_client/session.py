"""Session state machine: login, relogin de-duplication and logout."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from . import codes
from .auth.base import (
    AUTH_MODE_KEY,
    AUTH_MODE_LOCAL,
    PASSWORD_KEY,
    BackendDescriptorProvider,
    BackendRef,
    Secret,
    SecretProvider,
    split_meta_key,
)
from .config import DEVICE_MANAGER_PATH
from .context import CallContext
from .envelope import Envelope
from .exceptions import (
    AccountStateInvalidError,
    AllEndpointsUnreachableError,
    AuthenticationError,
    CertificateVerificationError,
    InvalidLoginResponseError,
    OceanStorError,
    SecretError,
    SecretNotFoundError,
    TransportError,
)
from .gate import AdmissionGate
from .http import Transport
from .tls import TLSConfig

logger = logging.getLogger(__name__)

LOGIN_PATH = "/xx/sessions"
SESSIONS_PATH = "/sessions"
API_V2_PREFIX = "/api/v2"


class SessionState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    ACTIVE = "active"
    RELOGGING_IN = "relogging-in"
    LOGGED_OUT = "logged-out"


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """One consistent view of the login state.

    A request reads a single snapshot for both its URL and its token, so a
    relogin in progress never mixes a new device id with an old token.
    """

    base_url: str | None = None
    device_id: str = ""
    token: str = ""
    vstore: str | None = None
    generation: int = 0


@dataclass(slots=True)
class ClientSession:
    """Login state shared by every caller of one client.

    The current snapshot is replaced as a whole; it is never edited in place.
    """

    urls: Sequence[str]
    user: str
    snapshot: SessionSnapshot = field(default_factory=SessionSnapshot)

    @property
    def base_url(self) -> str | None:
        return self.snapshot.base_url

    @property
    def device_id(self) -> str:
        return self.snapshot.device_id

    @property
    def token(self) -> str:
        return self.snapshot.token

    @property
    def vstore(self) -> str | None:
        return self.snapshot.vstore

    @property
    def generation(self) -> int:
        return self.snapshot.generation

    def publish(self, **changes: Any) -> SessionSnapshot:
        self.snapshot = replace(self.snapshot, **changes)
        return self.snapshot

    def clear(self) -> None:
        self.publish(device_id="", token="", vstore=None)


class SessionManager:
    """Own the `ClientSession` and every request that depends on it.

    Only code holding the relogin guard mutates the session's base URL,
    device id and token.
    """

    def __init__(
        self,
        *,
        urls: Sequence[str],
        user: str,
        transport: Transport,
        gate: AdmissionGate,
        secrets: SecretProvider,
        secret_name: str,
        secret_namespace: str,
        backends: BackendDescriptorProvider | None = None,
        backend: BackendRef | None = None,
        tls_loader: Callable[[], TLSConfig] | None = None,
    ) -> None:
        self.session = ClientSession(urls=list(urls), user=user)
        self.state = SessionState.UNAUTHENTICATED
        self._transport = transport
        self._gate = gate
        self._secrets = secrets
        self._secret_name = secret_name
        self._secret_namespace = secret_namespace
        self._backends = backends
        self._backend = backend
        self._tls_loader = tls_loader
        self._guard = threading.Lock()

    # Requests ----------------------------------------------------------------
    def send(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None = None,
        *,
        snapshot: SessionSnapshot | None = None,
        context: CallContext | None = None,
    ) -> Envelope:
        """Send one request and parse the envelope.

        The URL and token both come from ``snapshot``, or from the current
        session when none is given.
        """

        return self._send(method, None, path, payload, snapshot=snapshot, token=None, context=context)

    def request_url(self, path: str, snapshot: SessionSnapshot | None = None) -> str:
        current = self.session.snapshot if snapshot is None else snapshot
        base = current.base_url
        if not base:
            raise TransportError("Storage client has no active session.")
        if path.startswith(API_V2_PREFIX):
            return base.split(DEVICE_MANAGER_PATH)[0] + path
        if current.device_id and path != LOGIN_PATH:
            return f"{base}/{current.device_id}{path}"
        return base + path

    def refresh_tls(self) -> None:
        """Rebuild the transport's trust configuration from its source."""

        if self._tls_loader is None:
            logger.info("No certificate source configured, keep current TLS settings")
            return
        self._transport.configure_tls(self._tls_loader())

    def _send(
        self,
        method: str,
        url: str | None,
        path: str,
        payload: Mapping[str, Any] | None,
        *,
        snapshot: SessionSnapshot | None,
        token: str | None,
        context: CallContext | None,
    ) -> Envelope:
        gate_timeout = None
        timeout = None
        if context is not None:
            context.check()
            gate_timeout = context.remaining()
            timeout = context.bound(self._transport.timeout)
        with self._gate.slot(timeout=gate_timeout):
            logger.debug("call semaphore available permits: %d", self._gate.available)
            current = self.session.snapshot if snapshot is None else snapshot
            target = url or self.request_url(path, current)
            header_token = current.token if token is None else token
            try:
                raw = self._transport.execute(method, target, payload, token=header_token, timeout=timeout)
            except CertificateVerificationError as exc:
                logger.warning("Certificate error calling %s, rebuilding TLS configuration: %s", target, exc)
                self.refresh_tls()
                raw = self._transport.execute(method, target, payload, token=header_token, timeout=timeout)
        return Envelope.parse(raw)

    # State machine -----------------------------------------------------------
    def login(self, *, context: CallContext | None = None) -> None:
        with self._guard:
            self._login_locked(context)

    def relogin(self, stale_token: str | None = None, *, context: CallContext | None = None) -> bool:
        """Replace the session unless another caller already did.

        ``stale_token`` is the token the failed request carried. Returns True
        when this caller performed the logout and login round trip.
        """

        seen = self.session.token if stale_token is None else stale_token
        logger.info("storage client relogin start")
        with self._guard:
            live = self.session.token
            if live and live != seen:
                logger.info("Relogin has been done by another caller, no need to relogin again")
                return False
            self.state = SessionState.RELOGGING_IN
            # Callers keep using the old session until the new login publishes.
            self._logout_locked(context, clear=False)
            try:
                self._login_locked(context)
            except OceanStorError as exc:
                logger.error("storage client try to relogin error: %s", exc)
                raise
        logger.info("storage client relogin success")
        return True

    def logout(self, *, context: CallContext | None = None) -> None:
        with self._guard:
            self._logout_locked(context)

    def _login_locked(self, context: CallContext | None) -> None:
        logger.info("storage client login start, urls: %s", list(self.session.urls))
        self.state = SessionState.AUTHENTICATING
        try:
            payload = self._login_payload()
            try:
                base_url, envelope = self._login_call(payload, context)
            finally:
                payload[PASSWORD_KEY] = ""
            device_id, token, vstore = self._check_login_response(envelope)
        except Exception:
            self.session.clear()
            self.state = SessionState.UNAUTHENTICATED
            raise

        self.session.publish(
            base_url=base_url,
            device_id=device_id,
            token=token,
            vstore=vstore,
            generation=self.session.generation + 1,
        )
        self.state = SessionState.ACTIVE
        logger.info("storage client login success, url: %s", base_url)

    def _logout_locked(self, context: CallContext | None, *, clear: bool = True) -> None:
        logger.info("storage client logout start")
        if self.session.base_url and self.session.token:
            try:
                envelope = self._send(
                    "DELETE", None, SESSIONS_PATH, None, snapshot=None, token=None, context=context
                )
            except OceanStorError as exc:
                logger.error("storage client logout %s error: %s", self.session.base_url, exc)
            else:
                if envelope.code != codes.SUCCESS:
                    logger.error(
                        "storage client logout %s error, code: %s, description: %s",
                        self.session.base_url,
                        envelope.code,
                        envelope.description,
                    )
                else:
                    logger.info("storage client logout %s success", self.session.base_url)
        if clear:
            self.session.clear()
        self.state = SessionState.LOGGED_OUT

    def _login_call(
        self, payload: dict[str, Any], context: CallContext | None
    ) -> tuple[str, Envelope]:
        for url in self.session.urls:
            base_url = url.rstrip("/") + DEVICE_MANAGER_PATH
            logger.info("storage client try to login: %s", base_url)
            try:
                envelope = self._send(
                    "POST",
                    base_url + LOGIN_PATH,
                    LOGIN_PATH,
                    payload,
                    snapshot=None,
                    token="",
                    context=context,
                )
            except TransportError as exc:
                logger.info("storage client %s login error, going to try another url: %s", base_url, exc)
                continue
            return base_url, envelope
        raise AllEndpointsUnreachableError("storage client all url connect error")

    def _login_payload(self) -> dict[str, Any]:
        secret = self._load_secret()
        try:
            password = secret.get(PASSWORD_KEY)
            if password is None:
                raise SecretError(
                    f"Failed to query the password, secret: {secret.namespace}/{secret.name}"
                )
            auth_mode = secret.get(AUTH_MODE_KEY)
            try:
                scope = auth_mode.decode("utf-8") if auth_mode else AUTH_MODE_LOCAL
                decoded = password.decode("utf-8")
            except UnicodeDecodeError:
                raise SecretError(
                    f"Secret {secret.namespace}/{secret.name} is not valid UTF-8."
                ) from None
            return {
                "username": self.session.user,
                "password": decoded,
                "scope": scope,
            }
        finally:
            secret.wipe()

    def _load_secret(self) -> Secret:
        try:
            return self._secrets.get_secret(self._secret_name, self._secret_namespace)
        except SecretNotFoundError:
            if self._backends is None or self._backend is None:
                raise
        # The backend may have rotated its credentials into a new secret.
        logger.info(
            "secret [%s/%s] not found, try to get new one from backend %s",
            self._secret_namespace,
            self._secret_name,
            self._backend,
        )
        descriptor = self._backends.get_backend(self._backend.namespace, self._backend.name)
        if not descriptor.secret_meta:
            raise SecretError(f"Backend {self._backend} does not reference a credential secret.")
        namespace, name = split_meta_key(descriptor.secret_meta)
        secret = self._secrets.get_secret(name, namespace)
        logger.info("got secret [%s/%s] from backend %s", namespace, name, self._backend)
        return secret

    @staticmethod
    def _check_login_response(envelope: Envelope) -> tuple[str, str, str | None]:
        if envelope.code != codes.SUCCESS:
            raise AuthenticationError(
                f"storage client login failed, code: {envelope.code}, "
                f"description: {envelope.description}",
                status_code=envelope.code,
                details=envelope.description,
            )
        data = envelope.data
        if not isinstance(data, dict):
            raise InvalidLoginResponseError(f"login response data is not an object: {data!r:.200}")

        device_id = data.get("deviceid")
        if not isinstance(device_id, str) or not device_id:
            raise InvalidLoginResponseError(
                f"login response deviceid: {device_id!r} can not convert to string"
            )
        token = data.get("iBaseToken")
        if not isinstance(token, str) or not token:
            raise InvalidLoginResponseError("login response iBaseToken can not convert to string")

        state = data.get("accountstate")
        if isinstance(state, bool) or not isinstance(state, (int, float)):
            raise InvalidLoginResponseError(f"login response accountstate: {state!r} is not a number")
        if not codes.is_usable_account_state(state):
            raise AccountStateInvalidError(
                f"login invalid accountstate: {codes.describe_account_state(state)}",
                details=state,
            )
        logger.info("login valid accountstate: %s", codes.describe_account_state(state))

        vstore = data.get("vstoreName")
        if not isinstance(vstore, str):
            logger.info("login response vstoreName: %r can not convert to string", vstore)
            vstore = None
        return device_id, token, vstore


__all__ = ["ClientSession", "SessionManager", "SessionSnapshot", "SessionState"]
