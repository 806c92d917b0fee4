"""System, storage pool and controller queries."""
from __future__ import annotations

from typing import Any

from ..context import CallContext
from .base import ResourceBase


class SystemResource(ResourceBase):
    """Expose array-wide inventory endpoints."""

    def info(self, *, context: CallContext | None = None) -> dict[str, Any]:
        """Return the /system/ payload (no busy retries, like the array UI)."""

        return self._get_object("GetSystemInfo", retry_codes=(), context=context) or {}

    def storage_pools(self, *, context: CallContext | None = None) -> list[dict[str, Any]]:
        return self._get_list("GetStoragePools", context=context)

    def controllers(self, *, context: CallContext | None = None) -> list[dict[str, Any]]:
        return self._get_list("GetControllers", context=context)


__all__ = ["SystemResource"]
