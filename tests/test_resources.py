from urllib.parse import unquote

import pytest

from helpers import DEVICE_URL, SYSTEM_BUSY, failure, ok
from oceanstor_client import codes
from oceanstor_client.exceptions import RequestError, UnexpectedResponseError
from oceanstor_client.resources import PodLabelRequest, PvLabelRequest

FILESYSTEM_URL = f"{DEVICE_URL}/filesystem"
LUN_URL = f"{DEVICE_URL}/lun"


def test_filesystem_count_parses_string_count(client, requests_mock):
    requests_mock.get(f"{FILESYSTEM_URL}/count", json=ok({"COUNT": "42"}))

    assert client.filesystems.count() == 42


def test_lun_count_parses_integer_count(client, requests_mock):
    requests_mock.get(f"{LUN_URL}/count", json=ok({"COUNT": 7}))

    assert client.luns.count() == 7


@pytest.mark.parametrize("data", [None, {}, {"COUNT": None}, {"COUNT": "many"}, {"COUNT": True}])
def test_count_without_usable_value_fails(client, requests_mock, data):
    requests_mock.get(f"{LUN_URL}/count", json=ok(data))

    with pytest.raises(UnexpectedResponseError, match="count not found"):
        client.luns.count()


def test_filesystem_page_requests_range(client, requests_mock):
    requests_mock.get(FILESYSTEM_URL, json=ok([{"ID": "1", "NAME": "fs-1"}]))

    assert client.filesystems.page(0, 100) == [{"ID": "1", "NAME": "fs-1"}]
    assert unquote(requests_mock.last_request.url).endswith("/filesystem?range=[0-100]")


def test_lun_page_with_absent_data_is_empty(client, requests_mock):
    requests_mock.get(LUN_URL, json=ok())

    assert client.luns.page(100, 200) == []
    assert "filter=SUBTYPE::0&range=[100-200]" in unquote(requests_mock.last_request.url)


def test_invalid_page_range_is_rejected(client):
    with pytest.raises(ValueError):
        client.luns.page(10, 5)


def test_filesystem_by_name_returns_single_match(client, requests_mock):
    requests_mock.get(FILESYSTEM_URL, json=ok([{"ID": "11", "NAME": "fs-a"}]))

    assert client.filesystems.id_by_name("fs-a") == "11"
    assert "filter=NAME::fs-a" in unquote(requests_mock.last_request.url)


def test_filesystem_by_name_not_found(client, requests_mock):
    requests_mock.get(FILESYSTEM_URL, json=ok([]))

    assert client.filesystems.get_by_name("missing") is None
    assert client.filesystems.id_by_name("missing") is None


def test_filesystem_by_name_with_duplicates_fails(client, requests_mock):
    requests_mock.get(FILESYSTEM_URL, json=ok([{"ID": "1"}, {"ID": "2"}]))

    with pytest.raises(UnexpectedResponseError, match="more than one"):
        client.filesystems.get_by_name("fs")


def test_filesystem_lookup_retries_generic_failure(client, requests_mock):
    lookup = requests_mock.get(
        f"{FILESYSTEM_URL}/11",
        [{"json": failure(codes.OPERATION_FAILED)}, {"json": ok({"ID": "11"})}],
    )

    assert client.filesystems.get_by_id("11") == {"ID": "11"}
    assert lookup.call_count == 2


def test_lun_by_name(client, requests_mock):
    requests_mock.get(LUN_URL, json=ok([{"ID": "5", "NAME": "lun-a"}]))

    assert client.luns.id_by_name("lun-a") == "5"


def test_storage_pools_and_controllers(client, requests_mock):
    requests_mock.get(f"{DEVICE_URL}/storagepool", json=ok([{"ID": "0", "NAME": "pool"}]))
    requests_mock.get(f"{DEVICE_URL}/controller", json=ok([{"ID": "0A"}]))

    assert client.system.storage_pools()[0]["NAME"] == "pool"
    assert client.system.controllers() == [{"ID": "0A"}]


def test_create_pv_label_sends_payload(client, requests_mock):
    label = requests_mock.post(f"{DEVICE_URL}/container_pv", json=ok({"ID": "9"}))
    request = PvLabelRequest(
        resource_id="11", resource_type="40", pv_name="pvc-1", cluster_name="cluster"
    )

    assert client.labels.create_pv_label(request) == {"ID": "9"}
    assert label.last_request.json() == {
        "resourceId": "11",
        "resourceType": "40",
        "pvName": "pvc-1",
        "clusterName": "cluster",
    }


def test_existing_pv_label_counts_as_success(client, requests_mock):
    requests_mock.post(f"{DEVICE_URL}/container_pv", json=failure(codes.PV_LABEL_EXIST))
    request = PvLabelRequest(
        resource_id="11", resource_type="40", pv_name="pvc-1", cluster_name="cluster"
    )

    assert client.labels.create_pv_label(request) == {}


def test_missing_pv_label_counts_as_deleted(client, requests_mock):
    label = requests_mock.delete(f"{DEVICE_URL}/container_pv", json=failure(codes.PV_LABEL_NOT_EXIST))

    assert client.labels.delete_pv_label("11", "40") == {}
    assert label.last_request.json() == {"resourceId": "11", "resourceType": "40"}


def test_pod_label_idempotence(client, requests_mock):
    requests_mock.post(f"{DEVICE_URL}/container_pod", json=failure(codes.POD_LABEL_EXIST))
    requests_mock.delete(f"{DEVICE_URL}/container_pod", json=failure(codes.POD_LABEL_NOT_EXIST))
    request = PodLabelRequest(resource_id="11", resource_type="11", pod_name="web-0", namespace="apps")

    assert client.labels.create_pod_label(request) == {}
    assert client.labels.delete_pod_label(request) == {}
    assert requests_mock.last_request.json()["nameSpace"] == "apps"


def test_label_code_is_only_permitted_for_its_own_operation(client, requests_mock):
    requests_mock.post(f"{DEVICE_URL}/container_pod", json=failure(codes.PV_LABEL_EXIST))
    request = PodLabelRequest(resource_id="11", resource_type="11", pod_name="web-0", namespace="apps")

    with pytest.raises(RequestError):
        client.labels.create_pod_label(request)


def test_performance_query_by_get(client, requests_mock):
    requests_mock.get(f"{DEVICE_URL}/performance_data", json=ok([{"indicator_values": [10, 20]}]))

    assert client.performance.query(11, [22, 25]) == [{"indicator_values": [10, 20]}]
    assert "object_type=11&indicators=[22,25]" in unquote(requests_mock.last_request.url)


def test_performance_query_by_post(client, requests_mock):
    perf = requests_mock.post(
        f"{DEVICE_URL}/performance_data",
        [{"json": failure(SYSTEM_BUSY)}, {"json": ok([])}],
    )

    assert client.performance.query_by_post(11, [22]) == []
    assert perf.call_count == 2
    assert perf.last_request.json() == {"object_type": 11, "indicators": [22]}
