"""LUN queries."""

from __future__ import annotations

from typing import Any

from .. import codes
from ..context import CallContext
from .base import ResourceBase


class LunsResource(ResourceBase):
    """Interact with OceanStor LUNs."""

    def page(self, start: int, end: int, *, context: CallContext | None = None) -> list[dict[str, Any]]:
        return self._page("GetLuns", start, end, context=context)

    def count(self, *, context: CallContext | None = None) -> int:
        return self._count("GetLunCount", context=context)

    def get_by_name(self, name: str, *, context: CallContext | None = None) -> dict[str, Any] | None:
        return self._get_single(
            "GetLunByName",
            {"lun_name": name},
            retry_codes=codes.FILESYSTEM_RETRY_CODES,
            context=context,
        )

    def id_by_name(self, name: str, *, context: CallContext | None = None) -> str | None:
        lun = self.get_by_name(name, context=context)
        if not lun:
            return None
        lun_id = lun.get("ID")
        return lun_id if isinstance(lun_id, str) else None


__all__ = ["LunsResource"]
