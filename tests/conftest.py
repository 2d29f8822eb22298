"""
Pytest fixtures and configuration for f95rss tests
"""
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import MagicMock

from f95rss.exceptions import FetchError
from f95rss.normalizer import CanonicalRecord
from f95rss.settings import load_settings


class FakeSource:
    """Catalog source returning canned snapshots instead of hitting the network"""

    def __init__(self, entries=None, error=None):
        self.entries = entries or []
        self.error = error
        self.calls = 0

    def fetch(self):
        self.calls += 1
        if self.error:
            raise FetchError(self.error)
        return list(self.entries)


class FixedClock:
    """Deterministic clock, one second per call"""

    def __init__(self, start=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture
def settings(tmp_path):
    """Settings pointing the store and allow-list into a temp directory"""
    settings = load_settings(environ={})
    settings['store']['path'] = str(tmp_path / 'f95rss.db')
    settings['feed']['id_file'] = str(tmp_path / 'id.txt')
    return settings


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def app(settings, fake_source):
    from f95rss.app import create_app

    _app = create_app(settings, start_scheduler=False, source=fake_source)
    _app.config.update({'TESTING': True})
    yield _app

    from f95rss.db import db
    with _app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def services(app):
    return app.extensions['f95rss']


@pytest.fixture
def store(app, services):
    """GameRepository bound to a live app context"""
    with app.app_context():
        yield services.store


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def write_ids(settings):
    """Write the allow-list file"""
    def _write(*lines):
        with open(settings['feed']['id_file'], 'w') as f:
            f.write('\n'.join(str(line) for line in lines) + '\n')
    return _write


@pytest.fixture
def make_record():
    def _make(game_id=123, title='Foo', version='1.2', creator='Dev', cover_url=None,
              preview_urls=(), tag_ids=(), prefix_ids=()):
        return CanonicalRecord(
            id=game_id,
            title=title,
            version=version,
            creator=creator,
            cover_url=cover_url,
            preview_urls=tuple(preview_urls),
            tag_ids=frozenset(tag_ids),
            prefix_ids=frozenset(prefix_ids),
        )
    return _make


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing"""
    logger = MagicMock()
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.debug = MagicMock()
    return logger


@pytest.fixture
def sample_raw_entries():
    """Raw entries as the source adapter produces them"""
    return [
        {
            'id': None,
            'link': 'https://f95zone.to/threads/eternum.100/',
            'title': "[Ren'Py] Eternum [v0.7]",
            'creators': ['Caribdis'],
            'cover': 'https://attachments.f95zone.to/eternum.jpg',
            'previews': [],
            'tags': [],
            'prefixes': [],
        },
        {
            'id': 200,
            'link': None,
            'title': 'Summertime Saga [v21.0.0]',
            'creators': ['Kompas', 'DarkCookie'],
            'cover': None,
            'previews': ['https://attachments.f95zone.to/ss1.jpg', 'https://attachments.f95zone.to/ss2.jpg'],
            'tags': [107, 130],
            'prefixes': [7],
        },
        {
            'id': 300,
            'link': None,
            'title': 'Broken title without version',
            'creators': ['Nobody'],
            'cover': None,
            'previews': [],
            'tags': [],
            'prefixes': [],
        },
        {
            'id': '400',
            'link': None,
            'title': 'Being a DIK [0.10.1]',
            'creators': [],
            'cover': 'https://attachments.f95zone.to/dik.jpg',
            'previews': [],
            'tags': ['45'],
            'prefixes': [],
        },
    ]


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def make_source():
    return FakeSource
