import logging
from opentelemetry import trace

logger = logging.getLogger(__name__)

_tracing_configured = False


def setup_tracing():
    """
    Install an OTLP span exporter on the global tracer provider.

    Without this call spans go to the no-op provider, which is what tests and
    most debugging sessions want.
    """
    global _tracing_configured
    if _tracing_configured:
        return

    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

    trace_provider = TracerProvider()
    trace_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
    trace.set_tracer_provider(trace_provider)
    _tracing_configured = True
    logger.info("OpenTelemetry tracing initialized with OTLPSpanExporter.")


def get_tracer(name: str) -> trace.Tracer:
    """Returns a tracer with the specified name."""
    return trace.get_tracer(name)
