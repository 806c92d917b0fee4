"""Common helpers for resource wrappers."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import TYPE_CHECKING, Any

from .. import codes
from ..context import CallContext
from ..envelope import expect_list, expect_object, expect_single
from ..exceptions import UnexpectedResponseError

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..client import OceanStorClient


class ResourceBase:
    """Provide shared helpers for resource modules."""

    def __init__(self, client: OceanStorClient) -> None:
        self._client = client

    def _get_object(
        self,
        operation: str,
        args: Mapping[str, Any] | None = None,
        *,
        retry_codes: Collection[int] = codes.DEFAULT_RETRY_CODES,
        context: CallContext | None = None,
    ) -> dict[str, Any] | None:
        outcome = self._client.call(
            "GET", operation, args, retry_codes=retry_codes, context=context
        )
        return expect_object(outcome)

    def _get_list(
        self,
        operation: str,
        args: Mapping[str, Any] | None = None,
        *,
        retry_codes: Collection[int] = codes.DEFAULT_RETRY_CODES,
        context: CallContext | None = None,
    ) -> list[dict[str, Any]]:
        outcome = self._client.call(
            "GET", operation, args, retry_codes=retry_codes, context=context
        )
        return expect_list(outcome)

    def _get_single(
        self,
        operation: str,
        args: Mapping[str, Any] | None = None,
        *,
        retry_codes: Collection[int] = codes.DEFAULT_RETRY_CODES,
        context: CallContext | None = None,
    ) -> dict[str, Any] | None:
        outcome = self._client.call(
            "GET", operation, args, retry_codes=retry_codes, context=context
        )
        return expect_single(outcome)

    def _page(
        self, operation: str, start: int, end: int, *, context: CallContext | None = None
    ) -> list[dict[str, Any]]:
        if start < 0 or end < start:
            raise ValueError(f"Invalid page range [{start}-{end}].")
        return self._get_list(operation, {"start": start, "end": end}, context=context)

    def _count(self, operation: str, *, context: CallContext | None = None) -> int:
        result = self._get_object(operation, context=context)
        count = (result or {}).get("COUNT")
        if isinstance(count, bool) or count is None:
            raise UnexpectedResponseError(
                f"{operation} count not found, return result is {result}", details=result
            )
        try:
            return int(count)
        except (TypeError, ValueError) as exc:
            raise UnexpectedResponseError(
                f"{operation} count not found, COUNT value {count!r} is not an integer",
                details=result,
            ) from exc
