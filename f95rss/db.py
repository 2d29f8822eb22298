import logging
import os
import sqlite3

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event, inspect

# Retrieve main logger
logger = logging.getLogger("main")

db = SQLAlchemy()


def sqlite_uri(path):
    return "sqlite:///" + os.path.abspath(path)


def _set_sqlite_pragma(dbapi_connection, connection_record):
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    # WAL lets feed readers run while an ingestion cycle is writing
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA synchronous=NORMAL;")
    cursor.execute("PRAGMA busy_timeout=30000;")
    cursor.close()


def init_db(app):
    """Attach connection pragmas and create the schema if it is missing."""
    # Register models on the metadata before create_all
    import f95rss.models  # noqa: F401

    with app.app_context():
        engine = db.engine
        if not event.contains(engine, "connect", _set_sqlite_pragma):
            event.listen(engine, "connect", _set_sqlite_pragma)

        inspector = inspect(engine)
        if not inspector.has_table("game"):
            logger.info("Initializing database tables...")
            db.create_all()
            logger.info("Database and tables created successfully.")
        else:
            logger.info("Database already exists.")
