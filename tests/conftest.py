import pytest

from helpers import LOGIN_URL, SESSION_URL, build_client, login_response, ok


@pytest.fixture
def client(requests_mock):
    requests_mock.post(LOGIN_URL, json=login_response())
    requests_mock.delete(SESSION_URL, json=ok())
    client = build_client()
    client.login()
    return client
