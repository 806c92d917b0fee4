import pytest

from oceanstor_client.endpoints import STORAGE_ENDPOINTS, EndpointRegistry, default_registry
from oceanstor_client.exceptions import MissingArgumentError, TemplateError, UnknownOperationError


def test_every_default_operation_resolves_without_placeholders_left():
    registry = default_registry()

    for name in STORAGE_ENDPOINTS:
        args = {field: f"v{index}" for index, field in enumerate(registry.placeholders(name))}
        url = registry.resolve(name, args)
        assert "{" not in url and "}" not in url
        assert url.startswith("/")


def test_resolve_substitutes_named_arguments():
    registry = default_registry()

    url = registry.resolve("GetFilesystem", {"start": 0, "end": 100})

    assert url == "/filesystem?range=[0-100]"


def test_resolve_does_not_reparse_argument_values():
    registry = EndpointRegistry({"ByName": "/lun?filter=NAME::{name}"})

    url = registry.resolve("ByName", {"name": "{end}"})

    assert url == "/lun?filter=NAME::{end}"


def test_unknown_operation_is_rejected():
    with pytest.raises(UnknownOperationError):
        default_registry().resolve("DeleteEverything", {})


def test_missing_argument_is_an_error_not_an_empty_substitution():
    with pytest.raises(MissingArgumentError) as excinfo:
        default_registry().resolve("GetFileSystemById", {})

    assert excinfo.value.details == {"operation": "GetFileSystemById", "argument": "id"}


@pytest.mark.parametrize(
    "pattern",
    ["/lun/{", "/lun/}", "/lun/{0}", "/lun/{}", "/lun/{id!r}", "/lun/{id:>4}", "/lun/{obj.id}", "lun"],
)
def test_malformed_templates_fail_at_construction(pattern):
    with pytest.raises(TemplateError):
        EndpointRegistry({"Broken": pattern})


def test_registry_is_read_only_mapping():
    registry = default_registry()

    assert "GetLunCount" in registry
    assert len(registry) == len(STORAGE_ENDPOINTS)
    with pytest.raises(TypeError):
        registry["GetLunCount"] = "/elsewhere"  # type: ignore[index]
