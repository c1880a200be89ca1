from flask import request, current_app, has_app_context
from prometheus_client import CollectorRegistry, Histogram, Counter
from prometheus_flask_exporter import PrometheusMetrics
from sqlalchemy import event
import time

from models import db

EXTENSION_KEY = "cantina_metrics"


class AppMetrics:
    """Collectors bound to one application's registry."""

    def __init__(self, registry):
        # Histogram buckets for DB query durations
        self.db_query_duration = Histogram(
            "db_query_duration_seconds",
            "Database query duration in seconds",
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
            registry=registry,
        )
        # Counter for HTTP errors
        self.error_counter = Counter(
            "flask_error_total",
            "Count of HTTP responses with status >= 400",
            ["endpoint", "method", "code"],
            registry=registry,
        )
        self.orders_created = Counter(
            "orders_created_total",
            "Orders created from carts",
            registry=registry,
        )
        self.status_transitions = Counter(
            "order_status_transitions_total",
            "Accepted order status transitions",
            ["status"],
            registry=registry,
        )


def init_app(app):
    """Expose /metrics and attach metric hooks to the app and database."""
    registry = CollectorRegistry(auto_describe=True)
    exporter = PrometheusMetrics(app, path="/metrics", registry=registry)
    exporter.info("app_info", "Application info", version=app.config.get("APP_VERSION", "1.0.0"))
    collectors = AppMetrics(registry)
    app.extensions[EXTENSION_KEY] = collectors

    with app.app_context():
        engine = db.engine

        @event.listens_for(engine, "before_cursor_execute")
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault("_query_start_time", []).append(time.time())

        @event.listens_for(engine, "after_cursor_execute")
        def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            starts = conn.info.get("_query_start_time")
            if starts:
                collectors.db_query_duration.observe(time.time() - starts.pop(-1))

    @app.after_request
    def track_errors(resp):
        if resp.status_code >= 400:
            endpoint = request.endpoint or "unknown"
            collectors.error_counter.labels(endpoint, request.method, resp.status_code).inc()
        return resp

    return collectors


def _collectors():
    if not has_app_context():
        return None
    return current_app.extensions.get(EXTENSION_KEY)


def record_order_created():
    collectors = _collectors()
    if collectors:
        collectors.orders_created.inc()


def record_status_transition(status: str):
    collectors = _collectors()
    if collectors:
        collectors.status_transitions.labels(status).inc()
