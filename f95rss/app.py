"""
f95rss - Application factory and initialization

The store handle is built once here and handed to the components that use
it; nothing below this module reaches for a global database session.
"""
import os
from dataclasses import dataclass
from typing import Optional

import structlog
from flask import Flask

from f95rss.db import db, init_db, sqlite_uri
from f95rss.exceptions import register_exception_handlers
from f95rss.feed import Channel, FeedProjector
from f95rss.ingest import IngestionService
from f95rss.jobs.scheduler import JobScheduler
from f95rss.metrics import init_metrics
from f95rss.repositories import GameRepository
from f95rss.routes.feed import feed_bp
from f95rss.settings import load_settings, validate_settings
from f95rss.source import CatalogSource

logger = structlog.get_logger('main')


@dataclass
class Services:
    settings: dict
    store: GameRepository
    source: CatalogSource
    ingestion: IngestionService
    projector: FeedProjector
    channel: Channel
    id_file: str
    scheduler: Optional[JobScheduler] = None


def create_app(settings=None, start_scheduler=True, source=None):
    """Application factory

    ``source`` replaces the HTTP catalog source, e.g. with a fake in tests.
    """
    settings = validate_settings(settings or load_settings())

    store_path = settings['store']['path']
    store_dir = os.path.dirname(os.path.abspath(store_path))
    os.makedirs(store_dir, exist_ok=True)

    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = sqlite_uri(store_path)
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = {'connect_args': {'check_same_thread': False, 'timeout': 30}}

    # Initialize components
    db.init_app(app)
    init_db(app)

    store = GameRepository(db.session)
    source = source or CatalogSource.from_settings(settings)
    ingestion = IngestionService(source, store)
    services = Services(
        settings=settings,
        store=store,
        source=source,
        ingestion=ingestion,
        projector=FeedProjector(store, base_url=settings['feed']['base_url']),
        channel=Channel.from_settings(settings),
        id_file=settings['feed']['id_file'],
    )
    app.extensions['f95rss'] = services

    # Register exception handlers
    register_exception_handlers(app)

    # Register blueprints
    app.register_blueprint(feed_bp)

    # Initialize metrics
    init_metrics(app, store_factory=lambda: services.store)

    if start_scheduler:
        services.scheduler = JobScheduler()
        services.scheduler.init_app(
            app,
            ingestion,
            settings['schedule']['cron'],
            run_on_start=bool(settings['schedule'].get('run_on_start')),
        )

    logger.info("Application created", store=store_path, id_file=services.id_file)
    return app
