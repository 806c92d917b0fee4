"""Logical operation registry mapping operation names to URL templates."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from string import Formatter
from types import MappingProxyType
from typing import Any

from .exceptions import MissingArgumentError, TemplateError, UnknownOperationError

STORAGE_ENDPOINTS: Mapping[str, str] = {
    # system
    "GetSystemInfo": "/system/",
    # filesystem
    "CreateFileSystem": "/filesystem",
    "GetFileSystemByName": "/filesystem?filter=NAME::{fs_name}&range=[0-100]",
    "GetFileSystemById": "/filesystem/{id}",
    "GetFilesystem": "/filesystem?range=[{start}-{end}]",
    "GetFilesystemCount": "/filesystem/count",
    # performance
    "PerformanceData": "/performance_data?object_type={object_type}&indicators={indicators}",
    "PerformanceDataPost": "/performance_data",
    # storage info
    "GetStoragePools": "/storagepool",
    "GetControllers": "/controller",
    # lun
    "GetLuns": "/lun?filter=SUBTYPE::0&range=[{start}-{end}]",
    "GetLunCount": "/lun/count",
    "GetLunByName": "/lun?filter=NAME::{lun_name}&range=[0-100]",
    # label
    "CreatePvLabel": "/container_pv",
    "DeletePvLabel": "/container_pv",
    "CreatePodLabel": "/container_pod",
    "DeletePodLabel": "/container_pod",
}


@dataclass(frozen=True, slots=True)
class EndpointTemplate:
    """A parsed URL pattern with named placeholders."""

    name: str
    pattern: str
    segments: tuple[tuple[str, str | None], ...]

    @property
    def placeholders(self) -> tuple[str, ...]:
        return tuple(field for _, field in self.segments if field is not None)

    @classmethod
    def parse(cls, name: str, pattern: str) -> EndpointTemplate:
        if not isinstance(pattern, str) or not pattern.startswith("/"):
            raise TemplateError(f"Endpoint template for {name!r} must be a path starting with '/'.")
        segments: list[tuple[str, str | None]] = []
        try:
            parsed = list(Formatter().parse(pattern))
        except ValueError as exc:
            raise TemplateError(f"Endpoint template for {name!r} is malformed: {exc}") from exc
        for literal, field, spec, conversion in parsed:
            if field is None:
                segments.append((literal, None))
                continue
            if not field.isidentifier():
                raise TemplateError(
                    f"Endpoint template for {name!r} has an invalid placeholder {{{field}}}."
                )
            if spec or conversion:
                raise TemplateError(
                    f"Endpoint template for {name!r} may not use format specs on {{{field}}}."
                )
            segments.append((literal, field))
        return cls(name=name, pattern=pattern, segments=tuple(segments))

    def format(self, args: Mapping[str, Any]) -> str:
        parts: list[str] = []
        for literal, field in self.segments:
            parts.append(literal)
            if field is None:
                continue
            if field not in args:
                raise MissingArgumentError(
                    f"Operation {self.name!r} requires argument {field!r}.",
                    details={"operation": self.name, "argument": field},
                )
            parts.append(str(args[field]))
        return "".join(parts)


class EndpointRegistry(Mapping[str, EndpointTemplate]):
    """Immutable operation-name to template mapping built once at startup."""

    def __init__(self, templates: Mapping[str, str]) -> None:
        parsed = {name: EndpointTemplate.parse(name, pattern) for name, pattern in templates.items()}
        self._templates: Mapping[str, EndpointTemplate] = MappingProxyType(parsed)

    def __getitem__(self, name: str) -> EndpointTemplate:
        return self._templates[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def resolve(self, name: str, args: Mapping[str, Any] | None = None) -> str:
        """Substitute ``args`` into the template registered under ``name``."""

        template = self._templates.get(name)
        if template is None:
            raise UnknownOperationError(f"Unknown storage operation {name!r}.", details=name)
        return template.format(args or {})

    def placeholders(self, name: str) -> tuple[str, ...]:
        template = self._templates.get(name)
        if template is None:
            raise UnknownOperationError(f"Unknown storage operation {name!r}.", details=name)
        return template.placeholders


def default_registry() -> EndpointRegistry:
    return EndpointRegistry(STORAGE_ENDPOINTS)


__all__ = ["EndpointRegistry", "EndpointTemplate", "STORAGE_ENDPOINTS", "default_registry"]
