from __future__ import annotations

import time
from typing import Any

import httpx
from opentelemetry import trace

from services.reservations.app.errors import UpstreamError, UpstreamErrorKind, error_for_status
from services.reservations.app.logging import logger
from services.reservations.app.observability import record_upstream_error, record_upstream_latency
from services.reservations.app.schemas import UpstreamRequest
from services.reservations.app.settings import SETTINGS


class UpstreamClient:
    """
    Thin async client for the reservation API. One attempt per call: no retries, and no timeout unless
    `UPSTREAM_TIMEOUT_MS` is configured. Every failure surfaces as an `UpstreamError`.
    """

    _default_transport: httpx.AsyncBaseTransport | None = None

    @classmethod
    def set_default_transport(cls, transport: httpx.AsyncBaseTransport | None) -> None:
        cls._default_transport = transport

    def __init__(self, base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self._base_url = (base_url or SETTINGS.upstream_base_url).rstrip("/")
        timeout_ms = SETTINGS.upstream_timeout_ms
        self._timeout = httpx.Timeout(timeout_ms / 1000.0 if timeout_ms is not None else None)
        self._transport = transport or self._default_transport

    async def _send(self, req: UpstreamRequest) -> tuple[httpx.Response, int]:
        t0 = time.perf_counter()
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        ) as client:
            # When transport is set (tests), this routes to a mock upstream.
            if req.method == "POST":
                resp = await client.post(req.path, params=req.params or None, json=req.body)
            else:
                resp = await client.get(req.path, params=req.params or None)
        latency_ms = int((time.perf_counter() - t0) * 1000)
        return resp, latency_ms

    async def fetch(self, endpoint: str, req: UpstreamRequest) -> Any:  # noqa: ANN401 - upstream JSON is dynamic
        tracer = trace.get_tracer("reservations.upstream")
        with tracer.start_as_current_span("upstream_call") as span:
            span.set_attribute("upstream.endpoint", endpoint)
            logger.info("upstream_call_started", endpoint=endpoint, method=req.method, path=req.path)
            try:
                resp, latency_ms = await self._send(req)
            except httpx.HTTPError as e:
                record_upstream_error(endpoint, UpstreamErrorKind.TRANSPORT.value)
                span.record_exception(e)
                logger.info("upstream_call_finished", endpoint=endpoint, status="ERROR", error=str(e))
                raise UpstreamError(UpstreamErrorKind.TRANSPORT, 500, payload=str(e)) from e

            record_upstream_latency(endpoint, latency_ms)
            span.set_attribute("upstream.latency_ms", latency_ms)
            span.set_attribute("http.status_code", resp.status_code)

            if not resp.is_success:
                err = error_for_status(resp.status_code, _body(resp))
                record_upstream_error(endpoint, err.kind.value)
                logger.info(
                    "upstream_call_finished",
                    endpoint=endpoint,
                    status="ERROR",
                    status_code=resp.status_code,
                    kind=err.kind.value,
                    latency_ms=latency_ms,
                )
                raise err

            try:
                data = resp.json()
            except ValueError as e:
                record_upstream_error(endpoint, UpstreamErrorKind.TRANSPORT.value)
                logger.info(
                    "upstream_call_finished",
                    endpoint=endpoint,
                    status="ERROR",
                    status_code=resp.status_code,
                    kind=UpstreamErrorKind.TRANSPORT.value,
                    error="non_json_body",
                    latency_ms=latency_ms,
                )
                raise UpstreamError(
                    UpstreamErrorKind.TRANSPORT,
                    resp.status_code,
                    payload=resp.text,
                    message="API returned a non-JSON response",
                ) from e

            logger.info(
                "upstream_call_finished",
                endpoint=endpoint,
                status="OK",
                status_code=resp.status_code,
                latency_ms=latency_ms,
            )
            return data


def _body(resp: httpx.Response) -> Any:  # noqa: ANN401
    try:
        return resp.json()
    except ValueError:
        return resp.text
