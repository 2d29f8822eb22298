from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from flask import Response, request
import time
from functools import wraps

from f95rss.exceptions import StoreError

# Database Metrics
db_query_duration_seconds = Histogram(
    "f95rss_db_query_duration_seconds", "Database query duration", ["operation", "phase"]
)

db_query_total = Counter("f95rss_db_queries_total", "Total database queries", ["operation", "status"])

db_games_total = Gauge("f95rss_games_total", "Total number of stored games")

# Ingestion Metrics
ingest_cycles_total = Counter("f95rss_ingest_cycles_total", "Ingestion cycles by outcome", ["status"])

ingest_entries_total = Counter("f95rss_ingest_entries_total", "Ingested entries by outcome", ["status"])

ingest_cycle_duration_seconds = Histogram("f95rss_ingest_cycle_duration_seconds", "Ingestion cycle duration")

ACTIVE_CYCLES = Gauge("f95rss_active_ingest_cycles", "Number of running ingestion cycles")

# Feed Metrics
feed_requests_total = Counter("f95rss_feed_requests_total", "Feed requests", ["status_code"])

feed_items_rendered = Histogram(
    "f95rss_feed_items_rendered", "Items per rendered feed", buckets=(0, 1, 5, 10, 25, 50, 100, 250, 500)
)

# HTTP Metrics
http_request_duration_seconds = Histogram(
    "f95rss_http_request_duration_seconds", "HTTP request duration", ["endpoint", "method"]
)


def init_metrics(app, store_factory=None):
    """Register /metrics and per-request timing on the app.

    ``store_factory`` returns a GameRepository used to refresh the games gauge.
    """

    @app.route("/metrics")
    def metrics():
        if store_factory is not None:
            update_store_metrics(store_factory())
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    @app.before_request
    def before_request():
        request.start_time = time.time()

    @app.after_request
    def after_request(response):
        duration = time.time() - getattr(request, "start_time", time.time())
        http_request_duration_seconds.labels(endpoint=request.endpoint or "unknown", method=request.method).observe(
            duration
        )
        return response

    app.logger.info("Prometheus metrics initialized at /metrics")


def update_store_metrics(store):
    """Refresh store gauges. Failures here must not break the metrics endpoint."""
    try:
        db_games_total.set(store.count_games())
    except StoreError:
        pass


def track_db_query(operation, phase="unknown"):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
                db_query_total.labels(operation=operation, status="success").inc()
                return result
            except Exception:
                db_query_total.labels(operation=operation, status="error").inc()
                raise
            finally:
                duration = time.time() - start_time
                db_query_duration_seconds.labels(operation=operation, phase=phase).observe(duration)

        return wrapper

    return decorator
