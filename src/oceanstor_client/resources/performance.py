"""Performance statistics queries."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..context import CallContext
from ..envelope import expect_list
from .base import ResourceBase


class PerformanceResource(ResourceBase):
    """Read real-time performance indicators for an object type."""

    def query(
        self, object_type: int, indicators: Sequence[int], *, context: CallContext | None = None
    ) -> list[dict[str, Any]]:
        indicator_param = "[" + ",".join(str(int(value)) for value in indicators) + "]"
        return self._get_list(
            "PerformanceData",
            {"object_type": int(object_type), "indicators": indicator_param},
            context=context,
        )

    def query_by_post(
        self, object_type: int, indicators: Sequence[int], *, context: CallContext | None = None
    ) -> list[dict[str, Any]]:
        payload = {"object_type": int(object_type), "indicators": [int(value) for value in indicators]}
        outcome = self._client.call("POST", "PerformanceDataPost", None, payload, context=context)
        return expect_list(outcome)


__all__ = ["PerformanceResource"]
