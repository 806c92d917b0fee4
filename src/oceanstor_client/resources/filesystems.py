"""Filesystem queries."""

from __future__ import annotations

from typing import Any

from .. import codes
from ..context import CallContext
from .base import ResourceBase


class FilesystemsResource(ResourceBase):
    """Look up filesystems on the array."""

    def get_by_name(self, name: str, *, context: CallContext | None = None) -> dict[str, Any] | None:
        """Find a filesystem by its exact name.

        Args:
            name: The filesystem name.

        Returns:
            The filesystem object if found, else None.
        """
        return self._get_single(
            "GetFileSystemByName",
            {"fs_name": name},
            retry_codes=codes.FILESYSTEM_RETRY_CODES,
            context=context,
        )

    def id_by_name(self, name: str, *, context: CallContext | None = None) -> str | None:
        filesystem = self.get_by_name(name, context=context)
        if not filesystem:
            return None
        fs_id = filesystem.get("ID")
        return fs_id if isinstance(fs_id, str) else None

    def get_by_id(self, fs_id: str, *, context: CallContext | None = None) -> dict[str, Any] | None:
        return self._get_object(
            "GetFileSystemById",
            {"id": fs_id},
            retry_codes=codes.FILESYSTEM_RETRY_CODES,
            context=context,
        )

    def page(self, start: int, end: int, *, context: CallContext | None = None) -> list[dict[str, Any]]:
        return self._page("GetFilesystem", start, end, context=context)

    def count(self, *, context: CallContext | None = None) -> int:
        return self._count("GetFilesystemCount", context=context)


__all__ = ["FilesystemsResource"]
