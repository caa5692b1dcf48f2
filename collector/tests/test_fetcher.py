"""fetcher / collection モジュールのテスト."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from conftest import http_error

from koku_pipeline.collection import LocationCollector
from koku_pipeline.fetcher import Fetcher, is_not_found
from koku_pipeline.models import LocationDraft, ScraperConfig


class TestFetcher:
    """Fetcher のテスト."""

    def test_fetch_html(self):
        session = MagicMock()
        session.get.return_value = MagicMock(text="<html><h1>Hello</h1></html>")
        fetcher = Fetcher(user_agent="TestAgent/1.0", session=session)

        soup = fetcher.fetch_html("https://example.com/", headers={"Accept-Language": "ja"})

        assert soup.h1.get_text() == "Hello"
        _, kwargs = session.get.call_args
        assert kwargs["headers"]["User-Agent"] == "TestAgent/1.0"
        assert kwargs["headers"]["Accept-Language"] == "ja"
        assert kwargs["timeout"] == 30

    def test_http_error_propagates(self):
        session = MagicMock()
        session.get.return_value.raise_for_status.side_effect = http_error(404)
        fetcher = Fetcher(session=session)

        with pytest.raises(requests.HTTPError):
            fetcher.fetch_html("https://example.com/missing")

    @patch("koku_pipeline.fetcher.time.sleep")
    def test_delay(self, mock_sleep):
        fetcher = Fetcher(rate_limit=2.0, session=MagicMock())

        fetcher.delay()
        fetcher.delay(0.5)

        assert [c.args[0] for c in mock_sleep.call_args_list] == [2.0, 0.5]

    def test_is_not_found(self):
        assert is_not_found(http_error(404))
        assert not is_not_found(http_error(500))
        assert not is_not_found(requests.ConnectionError("connection reset"))

    def test_server_error_on_404_url(self):
        """URL に "404" を含んでもステータスが 500 なら 404 扱いしないこと."""
        error = http_error(500, "https://www.japan.travel/en/spot/404/")

        assert "404" in str(error)
        assert not is_not_found(error)
        assert not is_not_found(requests.ConnectionError("failed for url: https://www.japan.travel/en/spot/1404/"))


class TestLocationCollector:
    """LocationCollector のテスト."""

    def _collector(self):
        return LocationCollector(ScraperConfig(name="test_site", base_url="https://example.com/", region="Kansai"))

    def test_add_location(self):
        collector = self._collector()

        location = collector.add_location(LocationDraft(
            name="Nara Park",
            category="Parks & Gardens",
            region="Kansai",
            prefecture="Nara",
            city="Nara",
            source_url="https://example.com/nara-park",
            description="",
        ))

        assert location.category == "nature"
        assert location.source == "test_site"
        assert location.note == "TEST DATA - DELETE BEFORE LAUNCH"
        assert location.description is None
        assert collector.stats.total_locations == 1
        assert collector.stats.category_counts == {"nature": 1}
        assert collector.stats.prefecture_counts == {"Nara": 1}
        assert collector.stats.city_counts == {"Nara": 1}
        assert collector.has_name("Nara Park")
        assert collector.source_urls() == {"https://example.com/nara-park"}

    def test_counters(self):
        collector = self._collector()
        collector.record_success()
        collector.record_failure()
        collector.record_failure()

        assert collector.stats.successful_scrapes == 1
        assert collector.stats.failed_scrapes == 2
