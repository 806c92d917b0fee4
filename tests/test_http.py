import logging

import pytest
import requests
from urllib3.exceptions import InsecureRequestWarning

from oceanstor_client.exceptions import CertificateVerificationError, TransportError
from oceanstor_client.http import (
    LOG_CHAR_LIMIT,
    Transport,
    compress_for_log,
    decompress_from_log,
)
from oceanstor_client.tls import TLSConfig, TrustedCAAdapter

URL = "https://array:8088/deviceManager/rest/1/lun/count"


def test_execute_sends_json_body_and_token(requests_mock):
    requests_mock.post(URL, json={"error": {"code": 0}})
    transport = Transport(default_headers={"X-Trace": "abc"})

    body = transport.execute("post", URL, {"NAME": "lun-1"}, token="token-1")

    assert body == {"error": {"code": 0}}
    request = requests_mock.last_request
    assert request.method == "POST"
    assert request.json() == {"NAME": "lun-1"}
    assert request.headers["iBaseToken"] == "token-1"
    assert request.headers["X-Trace"] == "abc"


def test_execute_omits_body_and_empty_token(requests_mock):
    requests_mock.get(URL, json={"error": {"code": 0}})

    Transport().execute("GET", URL, token="")

    request = requests_mock.last_request
    assert request.body is None
    assert "iBaseToken" not in request.headers


def test_non_json_body_is_transport_error(requests_mock):
    requests_mock.get(URL, text="<html>gateway</html>", status_code=502)

    with pytest.raises(TransportError, match="HTTP 502"):
        Transport().execute("GET", URL)


def test_http_status_is_not_interpreted(requests_mock):
    requests_mock.get(URL, json={"error": {"code": -401}}, status_code=401)

    assert Transport().execute("GET", URL) == {"error": {"code": -401}}


def test_connection_failures_map_to_transport_errors(requests_mock):
    requests_mock.get(URL, exc=requests.exceptions.ConnectTimeout("timed out"))
    with pytest.raises(TransportError, match="timed out"):
        Transport().execute("GET", URL)

    requests_mock.get(URL, exc=requests.exceptions.SSLError("certificate verify failed"))
    with pytest.raises(CertificateVerificationError):
        Transport().execute("GET", URL)


def test_large_responses_are_logged_compressed(requests_mock, caplog):
    payload = {"error": {"code": 0}, "data": [{"NAME": "x" * LOG_CHAR_LIMIT}]}
    requests_mock.get(URL, json=payload)

    with caplog.at_level(logging.INFO, logger="oceanstor_client.http"):
        Transport().execute("GET", URL)

    messages = [record.getMessage() for record in caplog.records]
    compressed = [message for message in messages if "compressed by deflate" in message]
    assert len(compressed) == 1
    blob = compressed[0].rsplit(": ", 1)[1]
    assert decompress_from_log(blob) == str(payload)


def test_session_calls_are_not_logged(requests_mock, caplog):
    url = "https://array:8088/deviceManager/rest/xx/sessions"
    requests_mock.post(url, json={"error": {"code": 0}})

    with caplog.at_level(logging.DEBUG, logger="oceanstor_client.http"):
        Transport().execute("POST", url, {"password": "Admin@123"})

    assert "Admin@123" not in caplog.text


def test_compression_round_trip():
    text = "response " * 100
    assert decompress_from_log(compress_for_log(text)) == text


def test_disables_insecure_warning_when_verify_disabled(monkeypatch):
    captured: list[object] = []

    def fake_disable(warning):  # pragma: no cover - helper
        captured.append(warning)

    monkeypatch.setattr(
        "oceanstor_client.http.urllib3.disable_warnings",
        fake_disable,
    )

    transport = Transport(tls=TLSConfig.insecure())

    assert captured and captured[0] is InsecureRequestWarning
    assert transport.tls.verify is False


def test_configure_tls_replaces_adapter_and_clears_cookies(monkeypatch):
    monkeypatch.setattr("oceanstor_client.http.build_ssl_context", lambda pem: object())
    session = requests.Session()
    session.cookies.set("JSESSIONID", "stale")
    transport = Transport(session=session, tls=TLSConfig(verify=True, ca_pem="pem"))

    assert isinstance(session.get_adapter("https://array"), TrustedCAAdapter)
    assert session.verify is True
    assert not session.cookies

    transport.configure_tls(TLSConfig.insecure())

    assert not isinstance(session.get_adapter("https://array"), TrustedCAAdapter)
    assert session.verify is False


def test_configure_tls_closes_replaced_adapter(monkeypatch):
    session = requests.Session()
    transport = Transport(session=session, tls=TLSConfig.insecure())
    replaced = session.get_adapter("https://array")
    closed: list[bool] = []
    monkeypatch.setattr(replaced, "close", lambda: closed.append(True))

    transport.configure_tls(TLSConfig.insecure())

    assert closed == [True]
    assert session.get_adapter("https://array") is not replaced
