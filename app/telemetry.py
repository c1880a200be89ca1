from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.flask import FlaskInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from models import db

TRACER_NAME = "cantina.orders"


def _span_exporter(app):
    if app.config.get("TESTING"):
        return ConsoleSpanExporter()
    return OTLPSpanExporter(endpoint=app.config["OTEL_EXPORTER_OTLP_ENDPOINT"])


def init_tracing(app):
    """Install the tracer provider and instrument Flask and the SQLAlchemy engine."""
    resource = Resource.create({
        "service.name": app.config["OTEL_SERVICE_NAME"],
        "service.version": app.config.get("APP_VERSION", "1.0.0"),
    })
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(_span_exporter(app)))
    trace.set_tracer_provider(provider)
    set_global_textmap(TraceContextTextMapPropagator())

    FlaskInstrumentor().instrument_app(app)
    with app.app_context():
        SQLAlchemyInstrumentor().instrument(engine=db.engine)


def order_span(name: str, **attributes):
    """Span around one order lifecycle step; ``None`` attributes are skipped."""
    tracer = trace.get_tracer(TRACER_NAME)
    attrs = {f"order.{key}": value for key, value in attributes.items() if value is not None}
    return tracer.start_as_current_span(name, attributes=attrs)
