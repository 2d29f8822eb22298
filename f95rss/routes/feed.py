"""
Feed Routes - curated RSS feed and health check
"""

from flask import Blueprint, Response, current_app, jsonify
import structlog

from f95rss.allowlist import read_allowed_ids
from f95rss.constants import RSS_CONTENT_TYPE
from f95rss.exceptions import F95RSSException, plain_error
from f95rss.feed import render_rss
from f95rss.metrics import feed_items_rendered, feed_requests_total

logger = structlog.get_logger("routes.feed")

feed_bp = Blueprint("feed", __name__)


def _services():
    return current_app.extensions["f95rss"]


@feed_bp.route("/feed")
def serve_feed():
    """RSS feed of the allow-listed games, in allow-list order"""
    services = _services()

    try:
        ids = read_allowed_ids(services.id_file)
    except F95RSSException:
        feed_requests_total.labels(status_code=500).inc()
        return plain_error("Error reading IDs from file")

    try:
        items = services.projector.build_feed(ids)
        body = render_rss(items, services.channel)
    except F95RSSException:
        feed_requests_total.labels(status_code=500).inc()
        return plain_error("Error generating feed")

    feed_items_rendered.observe(len(items))
    feed_requests_total.labels(status_code=200).inc()
    return Response(body, content_type=RSS_CONTENT_TYPE)


@feed_bp.route("/health")
def health():
    services = _services()
    report = services.ingestion.last_report
    try:
        games = services.store.count_games()
    except F95RSSException:
        return jsonify({"status": "unhealthy"}), 503

    return jsonify(
        {
            "status": "healthy",
            "games": games,
            "ingesting": services.ingestion.running,
            "last_cycle": report.to_dict() if report else None,
        }
    )
