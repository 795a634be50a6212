from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor


REGISTRY = CollectorRegistry()
ProcessCollector(registry=REGISTRY)
PlatformCollector(registry=REGISTRY)
GCCollector(registry=REGISTRY)

_MS_BUCKETS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)

HTTP_REQUESTS_TOTAL = Counter(
    "reservations_http_requests_total",
    "HTTP requests served by the tool service",
    ["route", "method", "status_class"],
    registry=REGISTRY,
)
HTTP_LATENCY = Histogram(
    "reservations_http_latency_ms",
    "Tool service request latency in milliseconds",
    ["route", "method"],
    buckets=_MS_BUCKETS,
    registry=REGISTRY,
)
UPSTREAM_LATENCY = Histogram(
    "reservations_upstream_latency_ms",
    "Reservation API latency in milliseconds",
    ["endpoint"],
    buckets=_MS_BUCKETS,
    registry=REGISTRY,
)
UPSTREAM_ERROR_TOTAL = Counter(
    "reservations_upstream_error_total",
    "Failed reservation API calls by error kind",
    ["endpoint", "kind"],
    registry=REGISTRY,
)
TOOL_ERROR_RESULT_TOTAL = Counter(
    "reservations_tool_error_result_total",
    "Tool calls answered with an error result",
    ["tool", "kind"],
    registry=REGISTRY,
)


def record_upstream_latency(endpoint: str, latency_ms: int) -> None:
    UPSTREAM_LATENCY.labels(endpoint).observe(latency_ms)


def record_upstream_error(endpoint: str, kind: str) -> None:
    UPSTREAM_ERROR_TOTAL.labels(endpoint, kind).inc()


def record_tool_error(tool: str, kind: str) -> None:
    TOOL_ERROR_RESULT_TOTAL.labels(tool, kind).inc()


def setup_tracing(app: FastAPI, service_name: str, endpoint: str | None = None) -> None:
    """
    Export spans over OTLP/HTTP. Without an explicit endpoint the exporter falls back to the standard
    `OTEL_EXPORTER_OTLP_*` environment variables.
    """
    exporter = OTLPSpanExporter(endpoint=endpoint) if endpoint else OTLPSpanExporter()
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()


def _route_label(request: Request) -> str:
    # Label by the matched route template so unknown paths cannot blow up label cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def add_metrics_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def _metrics(request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        resp = await call_next(request)
        route = _route_label(request)
        HTTP_LATENCY.labels(route, request.method).observe((time.perf_counter() - started) * 1000)
        HTTP_REQUESTS_TOTAL.labels(route, request.method, f"{resp.status_code // 100}xx").inc()
        return resp

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
