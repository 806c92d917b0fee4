from oceanstor_client import OceanStorClient
from oceanstor_client.auth.static import StaticSecretProvider
from oceanstor_client.tls import TLSConfig

ARRAY_URL = "https://array:8088"
BASE_URL = f"{ARRAY_URL}/deviceManager/rest"
LOGIN_URL = f"{BASE_URL}/xx/sessions"
DEVICE_ID = "2102351234"
DEVICE_URL = f"{BASE_URL}/{DEVICE_ID}"
SESSION_URL = f"{DEVICE_URL}/sessions"

SECRET_NAME = "storage-credentials"
SECRET_NAMESPACE = "default"
PASSWORD = "Admin@storage1"

SYSTEM_BUSY = 1077949006


def login_response(token="token-1", *, device_id=DEVICE_ID, account_state=1, code=0):
    return {
        "error": {"code": code, "description": "0"},
        "data": {
            "deviceid": device_id,
            "iBaseToken": token,
            "accountstate": account_state,
            "vstoreName": "System_vStore",
        },
    }


def ok(data=None):
    body = {"error": {"code": 0, "description": "0"}}
    if data is not None:
        body["data"] = data
    return body


def failure(code, description="failed"):
    return {"error": {"code": code, "description": description}}


def build_secrets(password=PASSWORD):
    return StaticSecretProvider.for_password(password, name=SECRET_NAME, namespace=SECRET_NAMESPACE)


def build_client(**overrides):
    kwargs = {
        "urls": [ARRAY_URL],
        "user": "admin",
        "secrets": build_secrets(),
        "secret_name": SECRET_NAME,
        "secret_namespace": SECRET_NAMESPACE,
        "tls": TLSConfig.insecure(),
        "retry_interval": 0.0,
    }
    kwargs.update(overrides)
    return OceanStorClient(**kwargs)
