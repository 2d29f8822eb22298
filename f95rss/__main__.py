import sys

import structlog

from f95rss.app import create_app
from f95rss.exceptions import ConfigError
from f95rss.logging_config import configure_logging
from f95rss.settings import load_settings


def main():
    configure_logging()
    logger = structlog.get_logger('main')

    try:
        settings = load_settings()
        app = create_app(settings)
    except ConfigError as e:
        logger.error(f"Startup aborted: {e.message}")
        return 1

    host = settings['server']['host']
    port = settings['server']['port']
    logger.info(f"Serving feed on http://{host}:{port}/feed")
    try:
        app.run(host=host, port=port, threaded=True, use_reloader=False)
    finally:
        scheduler = app.extensions['f95rss'].scheduler
        if scheduler is not None:
            scheduler.shutdown()
    return 0


if __name__ == '__main__':
    sys.exit(main())
