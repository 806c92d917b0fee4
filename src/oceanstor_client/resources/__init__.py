"""Resource-specific convenience wrappers."""
from .filesystems import FilesystemsResource
from .labels import LabelsResource, PodLabelRequest, PvLabelRequest
from .luns import LunsResource
from .performance import PerformanceResource
from .system import SystemResource

__all__ = [
    "FilesystemsResource",
    "LabelsResource",
    "LunsResource",
    "PerformanceResource",
    "PodLabelRequest",
    "PvLabelRequest",
    "SystemResource",
]
