from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import Any


class UpstreamErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    BAD_REQUEST = "bad_request"
    TRANSPORT = "transport"


_MESSAGES = {
    UpstreamErrorKind.NOT_FOUND: "Restaurant not found",
    UpstreamErrorKind.RATE_LIMITED: "Rate limit exceeded",
    UpstreamErrorKind.BAD_REQUEST: "Invalid request parameters",
    UpstreamErrorKind.TRANSPORT: "API request failed",
}


class UpstreamError(RuntimeError):
    """
    Any failed call to the reservation API.

    `payload` keeps the raw upstream body (decoded JSON when possible) for diagnostics.
    """

    def __init__(
        self,
        kind: UpstreamErrorKind,
        status_code: int,
        payload: Any = None,  # noqa: ANN401 - raw upstream body
        message: str | None = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.payload = payload
        super().__init__(message or _MESSAGES[kind])

    @property
    def message(self) -> str:
        return str(self)


def error_for_status(status_code: int, payload: Any = None) -> UpstreamError:  # noqa: ANN401
    if status_code == 404:
        return UpstreamError(UpstreamErrorKind.NOT_FOUND, 404, payload)
    if status_code == 429:
        return UpstreamError(UpstreamErrorKind.RATE_LIMITED, 429, payload)
    if status_code == 400:
        return UpstreamError(UpstreamErrorKind.BAD_REQUEST, 400, payload)
    return UpstreamError(UpstreamErrorKind.TRANSPORT, status_code, payload)


def describe_validation_errors(errors: Sequence[Any]) -> str:
    """
    One clause per failed field, e.g. "num_people: Input should be less than or equal to 20".
    Accepts `.errors()` from pydantic or FastAPI validation errors.
    """
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = str(err.get("msg", "invalid value")).removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid request"
