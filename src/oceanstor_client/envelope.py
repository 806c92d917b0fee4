"""Response envelope model and status code classification."""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from . import codes
from .exceptions import MalformedEnvelopeError, RequestError, UnexpectedResponseError

logger = logging.getLogger(__name__)


class PayloadKind(Enum):
    OBJECT = "object"
    LIST = "list"
    ABSENT = "absent"


class Verdict(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    NEEDS_RELOGIN = "needs-relogin"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class Envelope:
    """Decoded ``{"error": {...}, "data": ...}`` response wrapper."""

    code: int
    description: str | None
    data: dict[str, Any] | list[Any] | None

    @property
    def kind(self) -> PayloadKind:
        if self.data is None:
            return PayloadKind.ABSENT
        if isinstance(self.data, list):
            return PayloadKind.LIST
        return PayloadKind.OBJECT

    @classmethod
    def parse(cls, raw: Any) -> Envelope:
        """Validate a decoded JSON body, failing on a missing status code."""

        if not isinstance(raw, Mapping):
            raise MalformedEnvelopeError(
                f"Response body is not a JSON object: {raw!r:.200}", details=raw
            )
        status = raw.get("error")
        if not isinstance(status, Mapping):
            raise MalformedEnvelopeError(
                f"Response status does not exist, response: {raw!r:.200}", details=raw
            )
        code = status.get("code")
        if isinstance(code, bool) or not isinstance(code, (int, float)):
            raise MalformedEnvelopeError(
                f"Response status code does not exist, response: {raw!r:.200}", details=raw
            )
        if isinstance(code, float):
            if not code.is_integer():
                raise MalformedEnvelopeError(f"Response status code {code} is not integral.", details=raw)
            code = int(code)
        description = status.get("description")
        data = raw.get("data")
        if data is not None and not isinstance(data, (dict, list)):
            raise MalformedEnvelopeError(
                f"Response data must be an object or a list, got {type(data).__name__}.", details=raw
            )
        return cls(
            code=code,
            description=None if description is None else str(description),
            data=data,
        )


@dataclass(frozen=True, slots=True)
class Outcome:
    verdict: Verdict
    code: int
    envelope: Envelope

    @property
    def ok(self) -> bool:
        return self.verdict is Verdict.SUCCESS

    @property
    def data(self) -> dict[str, Any] | list[Any] | None:
        return self.envelope.data

    def error(self) -> RequestError:
        message = (
            f"OceanStor API error, code: {self.envelope.code}, "
            f"description: {self.envelope.description}"
        )
        return RequestError(message, status_code=self.envelope.code, details=self.envelope.description)


def classify(
    envelope: Envelope,
    retryable_codes: Collection[int] = (),
    permitted_codes: Collection[int] = (),
) -> Outcome:
    """Map an envelope's status code onto a call verdict.

    ``permitted_codes`` are failure codes that mean the resource is already in
    the requested state; they are reported as success.
    """

    code = envelope.code
    if code == codes.SUCCESS:
        return Outcome(Verdict.SUCCESS, code, envelope)
    if code in permitted_codes:
        logger.info("Response code %s means the resource is already in the requested state", code)
        return Outcome(Verdict.SUCCESS, codes.SUCCESS, envelope)
    if code == codes.NO_AUTHENTICATION:
        return Outcome(Verdict.NEEDS_RELOGIN, code, envelope)
    if code in retryable_codes:
        return Outcome(Verdict.RETRYABLE, code, envelope)
    return Outcome(Verdict.FATAL, code, envelope)


def expect_object(outcome: Outcome) -> dict[str, Any] | None:
    data = outcome.data
    if data is None:
        return None
    if not isinstance(data, dict):
        raise UnexpectedResponseError(
            f"Response data is not an object: {data!r:.200}", details=data
        )
    return data


def expect_list(outcome: Outcome) -> list[dict[str, Any]]:
    data = outcome.data
    if data is None:
        return []
    if not isinstance(data, list):
        raise UnexpectedResponseError(f"Response data is not a list: {data!r:.200}", details=data)
    for item in data:
        if not isinstance(item, dict):
            raise UnexpectedResponseError(
                f"Response list item is not an object: {item!r:.200}", details=data
            )
    return data


def expect_single(outcome: Outcome) -> dict[str, Any] | None:
    items = expect_list(outcome)
    if not items:
        return None
    if len(items) > 1:
        raise UnexpectedResponseError(
            f"Found more than one item in response data list: {items!r:.200}", details=items
        )
    return items[0]


__all__ = [
    "Envelope",
    "Outcome",
    "PayloadKind",
    "Verdict",
    "classify",
    "expect_list",
    "expect_object",
    "expect_single",
]
