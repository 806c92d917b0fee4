import json
import ssl
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest
import requests

from oceanstor_client.auth.base import BackendDescriptor, BackendRef
from oceanstor_client.auth.static import StaticBackendProvider, StaticSecretProvider
from oceanstor_client.exceptions import CertificateError, CertificateVerificationError, SecretError
from oceanstor_client.http import Transport
from oceanstor_client.tls import (
    TLSConfig,
    TrustedCAAdapter,
    build_ssl_context,
    load_ca_pem,
    resolve_tls_config,
)

FAKE_PEM = "-----BEGIN CERTIFICATE-----\nTUlJQ2Zha2VDZXJ0aWZpY2F0ZQ==\n-----END CERTIFICATE-----\n"
BACKEND = BackendRef(namespace="storage", name="array-a")
DATA = Path(__file__).parent / "data"


def _backends(**descriptor):
    return StaticBackendProvider({("storage", "array-a"): BackendDescriptor(**descriptor)})


def test_without_backend_verification_is_skipped():
    assert resolve_tls_config(None, StaticSecretProvider(), None) == TLSConfig.insecure()


def test_use_cert_false_is_insecure():
    config = resolve_tls_config(_backends(use_cert=False), StaticSecretProvider(), BACKEND)
    assert config.verify is False


def test_use_cert_loads_certificate_secret():
    secrets = StaticSecretProvider({("certs", "array-ca"): {"tls.crt": FAKE_PEM}})

    config = resolve_tls_config(
        _backends(use_cert=True, cert_secret="certs/array-ca"), secrets, BACKEND
    )

    assert config.verify is True
    assert config.ca_pem == FAKE_PEM


def test_use_cert_without_secret_reference_fails():
    with pytest.raises(SecretError):
        resolve_tls_config(_backends(use_cert=True), StaticSecretProvider(), BACKEND)


def test_certificate_key_missing_fails():
    secrets = StaticSecretProvider({("certs", "array-ca"): {"ca.crt": FAKE_PEM}})

    with pytest.raises(CertificateError, match="not configured"):
        resolve_tls_config(
            _backends(use_cert=True, cert_secret="certs/array-ca"), secrets, BACKEND
        )


@pytest.mark.parametrize("data", [b"not a certificate", "", b"\xff\xfe"])
def test_undecodable_certificate_data_fails(data):
    with pytest.raises(CertificateError):
        load_ca_pem(data)


def test_multiple_pem_blocks_are_kept():
    assert load_ca_pem((FAKE_PEM * 2).encode()).count("BEGIN CERTIFICATE") == 2


def _test_ca_pem():
    return load_ca_pem((DATA / "ca.pem").read_bytes(), source="test CA")


class _SystemHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        body = json.dumps({"data": {"ID": "array-1"}, "error": {"code": 0}}).encode()
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):  # pragma: no cover - silence
        pass


@pytest.fixture
def array_port():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _SystemHandler)
    server_context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    server_context.load_cert_chain(DATA / "array.pem", DATA / "array.key")
    server.socket = server_context.wrap_socket(server.socket, server_side=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server.server_address[1]
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


@pytest.fixture
def pinned_transport():
    session = requests.Session()
    session.trust_env = False
    transport = Transport(session=session, timeout=5, tls=TLSConfig(verify=True, ca_pem=_test_ca_pem()))
    yield transport
    transport.close()


def test_ssl_context_trusts_only_the_given_ca_and_checks_host_names():
    context = build_ssl_context(_test_ca_pem())

    assert context.check_hostname is True
    assert context.verify_mode == ssl.CERT_REQUIRED
    subjects = [dict(entry[0] for entry in cert["subject"]) for cert in context.get_ca_certs()]
    assert subjects == [{"commonName": "OceanStor Test CA"}]


def test_unloadable_ca_is_a_certificate_error():
    with pytest.raises(CertificateError, match="Unable to load"):
        build_ssl_context(FAKE_PEM)


def test_trusted_ca_adapter_hands_context_to_pools_and_proxies():
    context = build_ssl_context(_test_ca_pem())
    adapter = TrustedCAAdapter(context)

    assert adapter.poolmanager.connection_pool_kw["ssl_context"] is context
    proxy = adapter.proxy_manager_for("http://proxy.example:3128")
    assert proxy.connection_pool_kw["ssl_context"] is context
    adapter.close()


def test_pinned_transport_accepts_certificate_for_its_host(array_port, pinned_transport):
    assert isinstance(pinned_transport._session.get_adapter("https://localhost"), TrustedCAAdapter)

    body = pinned_transport.execute("GET", f"https://localhost:{array_port}/deviceManager/rest/system/")

    assert body["data"] == {"ID": "array-1"}


def test_pinned_transport_rejects_certificate_issued_for_another_host(array_port, pinned_transport):
    # The array certificate names localhost only.
    with pytest.raises(CertificateVerificationError):
        pinned_transport.execute("GET", f"https://127.0.0.1:{array_port}/deviceManager/rest/system/")
