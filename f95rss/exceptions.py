"""
f95rss - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import Response
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class F95RSSException(Exception):
    """Base exception for f95rss"""
    def __init__(self, message: str, code: str = "F95RSS_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigError(F95RSSException):
    """Invalid configuration: bad paths, schedule or allow-list contents"""
    def __init__(self, message: str):
        super().__init__(message, code="CONFIG_ERROR")
        logger.error(f"Config error: {message}")


class FetchError(F95RSSException):
    """Catalog source unreachable, timed out or returned a bad response"""
    def __init__(self, message: str, url: str = None):
        super().__init__(message, code="FETCH_ERROR")
        self.url = url
        logger.error(f"Fetch error: {message}", url=url)


class ParseError(F95RSSException):
    """A single raw entry could not be normalized"""
    def __init__(self, message: str, entry_ref=None):
        super().__init__(message, code="PARSE_ERROR")
        self.entry_ref = entry_ref
        logger.warning(f"Parse error: {message}", entry=entry_ref)


class StoreError(F95RSSException):
    """Database constraint violation or I/O failure"""
    def __init__(self, message: str, game_id: int = None):
        super().__init__(message, code="STORE_ERROR")
        self.game_id = game_id
        logger.error(f"Store error: {message}", game_id=game_id)


def plain_error(message: str, status: int = 500):
    """Plain-text error response that carries no internal detail"""
    return Response(message, status=status, mimetype='text/plain')


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return plain_error(e.name, e.code)

    @app.errorhandler(F95RSSException)
    def handle_f95rss_exception(e):
        """Handle f95rss exceptions without leaking their message"""
        logger.error("Request failed", code=e.code)
        return plain_error('Internal server error', 500)

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return plain_error('Internal server error', 500)
