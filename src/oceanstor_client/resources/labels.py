"""Container label associations for PVs and pods."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .. import codes
from ..context import CallContext
from ..envelope import expect_object
from .base import ResourceBase


@dataclass(frozen=True, slots=True)
class PvLabelRequest:
    resource_id: str
    resource_type: str
    pv_name: str
    cluster_name: str

    def payload(self) -> dict[str, Any]:
        return {
            "resourceId": self.resource_id,
            "resourceType": self.resource_type,
            "pvName": self.pv_name,
            "clusterName": self.cluster_name,
        }


@dataclass(frozen=True, slots=True)
class PodLabelRequest:
    resource_id: str
    resource_type: str
    pod_name: str
    namespace: str

    def payload(self) -> dict[str, Any]:
        return {
            "resourceId": self.resource_id,
            "resourceType": self.resource_type,
            "podName": self.pod_name,
            "nameSpace": self.namespace,
        }


class LabelsResource(ResourceBase):
    """Create and delete labels; both directions are idempotent."""

    def create_pv_label(
        self, request: PvLabelRequest, *, context: CallContext | None = None
    ) -> dict[str, Any]:
        return self._label_call(
            "POST", "CreatePvLabel", request.payload(), codes.PV_LABEL_EXIST, context
        )

    def delete_pv_label(
        self, resource_id: str, resource_type: str, *, context: CallContext | None = None
    ) -> dict[str, Any]:
        payload = {"resourceId": resource_id, "resourceType": resource_type}
        return self._label_call("DELETE", "DeletePvLabel", payload, codes.PV_LABEL_NOT_EXIST, context)

    def create_pod_label(
        self, request: PodLabelRequest, *, context: CallContext | None = None
    ) -> dict[str, Any]:
        return self._label_call(
            "POST", "CreatePodLabel", request.payload(), codes.POD_LABEL_EXIST, context
        )

    def delete_pod_label(
        self, request: PodLabelRequest, *, context: CallContext | None = None
    ) -> dict[str, Any]:
        return self._label_call(
            "DELETE", "DeletePodLabel", request.payload(), codes.POD_LABEL_NOT_EXIST, context
        )

    def _label_call(
        self,
        method: str,
        operation: str,
        payload: Mapping[str, Any],
        permitted_code: int,
        context: CallContext | None,
    ) -> dict[str, Any]:
        outcome = self._client.call(
            method,
            operation,
            payload,
            payload,
            permitted_codes=(permitted_code,),
            context=context,
        )
        return expect_object(outcome) or {}


__all__ = ["LabelsResource", "PodLabelRequest", "PvLabelRequest"]
