"""Observability setup for OpenTelemetry, Prometheus metrics and structured logging."""

import logging

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from .config import settings

SERVICE_NAME = "venue-booking-api"
SERVICE_VERSION = "1.0.0"

# Prometheus metrics
REGISTRY = CollectorRegistry()

BOOKINGS_CREATED = Counter(
    'bookings_created_total',
    'Total bookings created',
    ['venue_id', 'admin'],
    registry=REGISTRY
)

BOOKING_CONFLICTS = Counter(
    'booking_conflicts_detected_total',
    'Booking requests that overlapped existing bookings',
    ['venue_id'],
    registry=REGISTRY
)

BOOKINGS_OVERRIDDEN = Counter(
    'bookings_overridden_total',
    'Bookings cancelled by an administrator override',
    registry=REGISTRY
)

STATUS_TRANSITIONS = Counter(
    'booking_status_transitions_total',
    'Booking status transitions by target status',
    ['status'],
    registry=REGISTRY
)

SLOT_SUGGESTIONS = Counter(
    'booking_slot_suggestions_total',
    'Alternative slot suggestion requests',
    ['venue_id'],
    registry=REGISTRY
)

BOOKINGS_COMPLETED_LAST_RUN = Gauge(
    'bookings_completed_last_run',
    'Bookings marked completed by the most recent worker run',
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            # request_id is bound here by RequestIDMiddleware
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _resource() -> Resource:
    return Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })


def setup_tracing():
    """Setup OpenTelemetry tracing."""
    provider = TracerProvider(resource=_resource())

    if settings.otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint))
        )

    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def setup_metrics():
    """Setup OpenTelemetry metrics."""
    if settings.otlp_endpoint:
        reader = PeriodicExportingMetricReader(
            exporter=OTLPMetricExporter(endpoint=settings.otlp_endpoint),
            export_interval_millis=60000,
        )
        metrics.set_meter_provider(MeterProvider(resource=_resource(), metric_readers=[reader]))

    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument the SQLAlchemy engine with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for booking business metrics."""

    @staticmethod
    def record_booking_created(venue_id: str, admin: bool = False):
        """Record a booking creation."""
        BOOKINGS_CREATED.labels(venue_id=venue_id, admin=str(admin).lower()).inc()

    @staticmethod
    def record_conflict(venue_id: str):
        """Record a detected booking conflict."""
        BOOKING_CONFLICTS.labels(venue_id=venue_id).inc()

    @staticmethod
    def record_overridden(count: int):
        """Record bookings cancelled by an admin override."""
        if count:
            BOOKINGS_OVERRIDDEN.inc(count)

    @staticmethod
    def record_status_transition(status: str):
        """Record a booking status transition."""
        STATUS_TRANSITIONS.labels(status=status).inc()

    @staticmethod
    def record_suggestion_request(venue_id: str):
        """Record an alternative slot suggestion request."""
        SLOT_SUGGESTIONS.labels(venue_id=venue_id).inc()

    @staticmethod
    def set_completed_last_run(count: int):
        """Set how many bookings the last completion run finished."""
        BOOKINGS_COMPLETED_LAST_RUN.set(count)


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


class StructuredLogger:
    """Structured logger for audit events such as administrator overrides."""

    def __init__(self, name_or_logger):
        if isinstance(name_or_logger, str):
            self.logger = structlog.get_logger(name_or_logger)
        else:
            self.logger = name_or_logger

    def info(self, message: str, **kwargs):
        """Log info message with context."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with context."""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with context."""
        self.logger.error(message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug message with context."""
        self.logger.debug(message, **kwargs)

    def with_context(self, **kwargs):
        """Add context to logger."""
        return StructuredLogger(self.logger.bind(**kwargs))


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
