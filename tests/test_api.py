"""
Tests for HTTP endpoints
"""
from datetime import datetime, timezone
from xml.etree import ElementTree as ET

from unittest.mock import patch

from f95rss.exceptions import StoreError


T1 = datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)


class TestFeedEndpoint:
    """Tests for GET /feed"""

    def test_feed_follows_allow_list(self, client, store, make_record, write_ids):
        store.upsert_game(make_record(game_id=5, title='Five', version='1'), now=T1)
        store.upsert_game(make_record(game_id=3, title='Three', version='2', cover_url='https://img/3.jpg'), now=T1)
        write_ids(5, 3, '', 404, 3)

        response = client.get('/feed')

        assert response.status_code == 200
        assert response.mimetype == 'application/rss+xml'
        root = ET.fromstring(response.data)
        titles = [item.findtext('title') for item in root.iter('item')]
        assert titles == ['Five [1]', 'Three [2]', 'Three [2]']
        links = [item.findtext('link') for item in root.iter('item')]
        assert links[0] == 'https://f95zone.to/threads/5'

    def test_missing_allow_list(self, client, settings):
        response = client.get('/feed')

        assert response.status_code == 500
        assert response.mimetype == 'text/plain'
        assert response.get_data(as_text=True) == 'Error reading IDs from file'
        assert settings['feed']['id_file'] not in response.get_data(as_text=True)

    def test_bad_allow_list_line(self, client, write_ids):
        write_ids(5, 'five')

        response = client.get('/feed')

        assert response.status_code == 500
        assert 'five' not in response.get_data(as_text=True)

    def test_undecodable_allow_list(self, client, settings):
        with open(settings['feed']['id_file'], 'wb') as f:
            f.write(b'5\n\xff\n')

        response = client.get('/feed')

        assert response.status_code == 500
        assert response.get_data(as_text=True) == 'Error reading IDs from file'

    def test_store_failure(self, client, services, write_ids):
        write_ids(5)

        with patch.object(services.store, 'get_game_by_id',
                          side_effect=StoreError('get_game_by_id failed (OperationalError)', game_id=5)):
            response = client.get('/feed')

        assert response.status_code == 500
        assert response.mimetype == 'text/plain'
        assert response.get_data(as_text=True) == 'Error generating feed'

    def test_unexpected_failure_is_generic(self, client, services, write_ids):
        write_ids(5)

        with patch.object(services.projector, 'build_feed', side_effect=RuntimeError('/var/lib/secret.db')):
            response = client.get('/feed')

        assert response.status_code == 500
        assert 'secret' not in response.get_data(as_text=True)


class TestHealthEndpoint:
    """Tests for GET /health"""

    def test_health(self, client, store, make_record):
        store.upsert_game(make_record(), now=T1)

        response = client.get('/health')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['games'] == 1
        assert data['ingesting'] is False
        assert data['last_cycle'] is None

    def test_health_reports_last_cycle(self, client, services, fake_source, sample_raw_entries):
        fake_source.entries = sample_raw_entries
        with client.application.app_context():
            services.ingestion.run_cycle()

        data = client.get('/health').get_json()

        assert data['last_cycle']['committed'] == 3
        assert data['last_cycle']['parse_failures'] == 1


class TestMetricsEndpoint:
    """Tests for GET /metrics"""

    def test_metrics_exposition(self, client):
        response = client.get('/metrics')

        assert response.status_code == 200
        assert b'f95rss_games_total' in response.data
