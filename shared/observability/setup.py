import os
import logging
import uuid

import structlog
from fastapi import FastAPI, Request
from prometheus_fastapi_instrumentator import Instrumentator

# OpenTelemetry
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from shared.config.settings import OTEL_ENABLED, METRICS_ENABLED

# All four services usually share one process (see main.py); the provider and
# the httpx instrumentation are process-wide and must only be installed once.
_tracer_provider_installed = False


def add_otel_ids(logger, log_method, event_dict):
    """Puts the active trace/span ids on every log line so logs join up with Jaeger."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def configure_logging():
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_otel_ids,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(app: FastAPI, service_name: str):
    """Tags every log line emitted while serving a request with the service and a request id.

    Notification tasks spawned during a checkout copy the context at creation,
    so their retries carry the checkout's request id too.
    """
    @app.middleware("http")
    async def _bind(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        with structlog.contextvars.bound_contextvars(service=service_name, request_id=request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def configure_tracing(app: FastAPI, service_name: str):
    global _tracer_provider_installed
    if not _tracer_provider_installed:
        resource = Resource.create({SERVICE_NAME: service_name})
        provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(provider)

        # Export to Jaeger via OTLP gRPC (defaults to localhost:4317)
        otlp_endpoint = os.getenv("OTLP_ENDPOINT", "http://localhost:4317")
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)))

        # Child spans for the checkout's calls to catalog, order store and notifier
        HTTPXClientInstrumentor().instrument()
        _tracer_provider_installed = True

    FastAPIInstrumentor.instrument_app(app)


def configure_metrics(app: FastAPI):
    # HTTP latency / status codes, exposed at /metrics next to the ecomm_* counters
    Instrumentator().instrument(app).expose(app)


def setup_observability(app: FastAPI, service_name: str):
    """
    Bootstraps logging, tracing and metrics for one service app.
    Tracing and HTTP metrics are switched off with OTEL_ENABLED / METRICS_ENABLED
    (test runs and local scripts have no collector to export to).
    """
    configure_logging()
    bind_request_context(app, service_name)
    if OTEL_ENABLED:
        configure_tracing(app, service_name)
    if METRICS_ENABLED:
        configure_metrics(app)
