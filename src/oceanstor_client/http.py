"""HTTP transport for OceanStor API access."""

from __future__ import annotations

import json
import logging
import zlib
from collections.abc import Mapping
from typing import Any

import requests
import urllib3
from requests import Response, Session
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning

from .exceptions import CertificateVerificationError, TransportError
from .tls import TLSConfig, TrustedCAAdapter, build_ssl_context

logger = logging.getLogger(__name__)

# Roughly one page of log output; larger responses are logged compressed.
LOG_CHAR_LIMIT = 20000

SESSIONS_PATH = "/sessions"
TOKEN_HEADER = "iBaseToken"


def compress_for_log(text: str) -> str:
    """Deflate ``text`` and return it hex encoded."""

    compressor = zlib.compressobj(zlib.Z_BEST_COMPRESSION, zlib.DEFLATED, -zlib.MAX_WBITS)
    return (compressor.compress(text.encode("utf-8")) + compressor.flush()).hex()


def decompress_from_log(blob: str) -> str:
    return zlib.decompress(bytes.fromhex(blob), -zlib.MAX_WBITS).decode("utf-8")


def parse_json(response: Response) -> Any:
    """Parse JSON with helpful error context."""

    try:
        return response.json()
    except ValueError as exc:
        snippet = response.text[:200] if response.content else "<empty body>"
        raise TransportError(
            f"Response did not contain valid JSON (HTTP {response.status_code}): {snippet}",
            details=snippet,
        ) from exc


class Transport:
    """Send JSON requests to the array and decode the JSON body."""

    def __init__(
        self,
        *,
        timeout: float = 60.0,
        session: Session | None = None,
        tls: TLSConfig | None = None,
        default_headers: Mapping[str, str] | None = None,
    ) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()
        self._default_headers = dict(default_headers or {})
        self.tls = tls or TLSConfig.insecure()
        self.configure_tls(self.tls)

    def configure_tls(self, tls: TLSConfig) -> None:
        """Apply a trust configuration and start with an empty cookie jar."""

        self.tls = tls
        self._session.cookies.clear()
        previous = self._session.adapters.get("https://")
        if tls.verify and tls.ca_pem:
            self._session.mount("https://", TrustedCAAdapter(build_ssl_context(tls.ca_pem)))
        else:
            self._session.mount("https://", HTTPAdapter())
        if previous is not None:
            # Pooled connections still carry the old trust settings.
            previous.close()
        self._session.verify = tls.verify
        if not tls.verify:
            urllib3.disable_warnings(InsecureRequestWarning)
        logger.info("Configured storage transport, skip verify certificate: %s", not tls.verify)

    def execute(
        self,
        method: str,
        url: str,
        payload: Mapping[str, Any] | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Perform one HTTP exchange and return the decoded JSON body."""

        is_session_call = SESSIONS_PATH in url
        if not is_session_call:
            logger.info("call request %s %s, request: %s", method.upper(), url, payload)

        headers = self._prepare_headers(token)
        try:
            body = json.dumps(payload) if payload is not None else None
        except (TypeError, ValueError) as exc:
            raise TransportError(f"Unable to encode request body for {method} {url}: {exc}") from exc

        try:
            response = self._session.request(
                method=method.upper(),
                url=url,
                data=body,
                headers=headers,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except requests.exceptions.SSLError as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            raise CertificateVerificationError(
                f"TLS error talking to {url}: {reason}", details=reason
            ) from exc
        except requests.RequestException as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            raise TransportError(
                f"Failed to communicate with OceanStor API: {reason}", details=reason
            ) from exc

        data = parse_json(response)
        if not is_session_call:
            self._log_response(method, url, data)
        return data

    def close(self) -> None:
        self._session.close()

    def _prepare_headers(self, token: str | None) -> dict[str, str]:
        headers: dict[str, str] = {
            "Connection": "keep-alive",
            "Content-Type": "application/json",
        }
        headers.update(self._default_headers)
        if token:
            headers[TOKEN_HEADER] = token
        return headers

    @staticmethod
    def _log_response(method: str, url: str, data: Any) -> None:
        rendered = str(data)
        if len(rendered) <= LOG_CHAR_LIMIT:
            logger.info("call response %s %s, response: %s", method.upper(), url, rendered)
            return
        logger.info(
            "call response %s %s, response compressed by deflate algorithm: %s",
            method.upper(),
            url,
            compress_for_log(rendered),
        )
        logger.debug("call response %s %s, response: %s", method.upper(), url, rendered)


__all__ = ["Transport", "compress_for_log", "decompress_from_log", "parse_json"]
