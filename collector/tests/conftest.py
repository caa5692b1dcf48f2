"""テスト共通のフェイク."""

from pathlib import Path

import pytest
import requests
from bs4 import BeautifulSoup

from koku_pipeline.collection import LocationCollector

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def http_error(status: int, url: str = "https://example.com/") -> requests.HTTPError:
    """raise_for_status と同じ形式（メッセージに URL を含む）の HTTPError."""
    response = requests.Response()
    response.status_code = status
    response.url = url
    kind = "Client" if status < 500 else "Server"
    return requests.HTTPError(f"{status} {kind} Error: for url: {url}", response=response)


class FakeFetcher:
    """URL → HTML の辞書から応答するフェイク（未登録 URL は 404）."""

    def __init__(self, pages: dict[str, str] | None = None, errors: dict[str, Exception] | None = None):
        self.pages = pages or {}
        self.errors = errors or {}
        self.requested: list[str] = []
        self.delays = 0

    def fetch_html(self, url, headers=None):
        self.requested.append(url)
        if url in self.errors:
            raise self.errors[url]
        if url not in self.pages:
            raise http_error(404, url)
        return BeautifulSoup(self.pages[url], "html.parser")

    def delay(self, seconds=None):
        self.delays += 1


@pytest.fixture
def collector_for():
    def _make(site):
        return LocationCollector(site.config)

    return _make
