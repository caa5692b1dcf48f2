"""四国ツーリズム創造機構サイトのスクレイパー.

対象: https://shikoku-tourism.com/en/
"see-and-do" 一覧を 7 ページ（約 250 件）まで取得する。
一覧ページには説明・市区町村が無いため名称と県のみを記録する。
"""

from __future__ import annotations

import math
import re

import requests
from bs4 import BeautifulSoup

from koku_pipeline.collection import LocationCollector
from koku_pipeline.config import REGIONAL_RATE_LIMIT
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.models import LocationDraft, ScrapedLocation, ScraperConfig
from koku_pipeline.sites.base import SiteScraper, first_text
from koku_pipeline.text_utils import clean_text, infer_category

SITE_ROOT = "https://shikoku-tourism.com"
MAX_PAGES = 7
RESULTS_PER_PAGE = 36
DEFAULT_TOTAL_PAGES = 18

SHIKOKU_PREFECTURES = ("Ehime", "Kagawa", "Kochi", "Tokushima")

_DETAIL_PATH = re.compile(r"/en/see-and-do/\d+$")
_PAGE_PATH = re.compile(r"/page:(\d+)")
_RESULTS_FOUND = re.compile(r"(\d+)\s+results?\s+found", re.IGNORECASE)

_CATEGORY_RULES = [
    ("culture", ["temple", "shrine", "castle", "museum", "heritage"]),
    ("nature", [
        "onsen", "hot spring", "park", "mountain", "river", "valley",
        "bridge", "cape", "gorge", "beach",
    ]),
    ("shopping", ["market", "shopping", "arcade"]),
    ("food", ["restaurant", "food", "dining", "udon"]),
]


def extract_total_pages(soup: BeautifulSoup) -> int:
    """ページャーのリンク、または "N results found" から総ページ数を求める."""
    pages = []
    for a in soup.select('a[href*="/page:"]'):
        match = _PAGE_PATH.search(a.get("href") or "")
        pages.append(int(match.group(1)) if match else 0)
    if pages:
        return max(pages)

    match = _RESULTS_FOUND.search(soup.get_text(" "))
    if match:
        return math.ceil(int(match.group(1)) / RESULTS_PER_PAGE)

    return DEFAULT_TOTAL_PAGES


def extract_prefecture(text: str) -> str:
    return next((p for p in SHIKOKU_PREFECTURES if p in text), "")


class ShikokuScraper(SiteScraper):
    def __init__(self) -> None:
        super().__init__(ScraperConfig(
            name="shikoku_tourism",
            base_url="https://shikoku-tourism.com/en/",
            region="Shikoku",
            rate_limit=REGIONAL_RATE_LIMIT,
        ))

    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        list_url = f"{self.config.base_url}see-and-do"
        soup = fetcher.fetch_html(list_url)

        total_pages = extract_total_pages(soup)
        self.logger.info("ページ数: %d", total_pages)

        self._scrape_page(soup, 1, collector)

        for page in range(2, min(total_pages, MAX_PAGES) + 1):
            fetcher.delay()
            try:
                page_soup = fetcher.fetch_html(f"{list_url}/page:{page}")
            except requests.RequestException as e:
                self.logger.error("ページ取得失敗: %d ページ目: %s", page, e)
                collector.record_failure()
                continue
            self._scrape_page(page_soup, page, collector)

        self.logger.info(
            "%d 件取得しました (%s)", collector.stats.successful_scrapes, self.name
        )
        return collector.locations

    def _scrape_page(self, soup: BeautifulSoup, page_number: int, collector: LocationCollector) -> None:
        self.logger.info("%d ページ目を取得中...", page_number)

        links = [
            a for a in soup.select('a[href^="/en/see-and-do/"]')
            if _DETAIL_PATH.search(a.get("href") or "")
        ]
        if not links:
            self.logger.warning("%d ページ目に観光地がありません", page_number)
            return

        self.logger.info("観光地 %d 件 (%d ページ目)", len(links), page_number)

        processed_urls: set[str] = set()

        for index, link in enumerate(links):
            try:
                href = link.get("href") or ""
                detail_url = href if href.startswith("http") else f"{SITE_ROOT}{href}"
                if detail_url in processed_urls:
                    continue
                processed_urls.add(detail_url)

                name = first_text(link, "h3") or clean_text(link.get_text(" "))
                if not name:
                    self.logger.warning("名称が見つかりません: %s", detail_url)
                    continue

                img = link.find("img")
                img_alt = (img.get("alt") or "") if img else ""
                prefecture = extract_prefecture(f"{name} {img_alt}")

                collector.add_location(LocationDraft(
                    name=name,
                    category=infer_category(name, _CATEGORY_RULES),
                    region=self.config.region,
                    prefecture=prefecture or None,
                    source_url=detail_url,
                ))
                collector.record_success()
            except Exception as e:
                self.logger.error("パース失敗: %d 件目 (%d ページ目): %s", index, page_number, e)
                collector.record_failure()


if __name__ == "__main__":
    from koku_pipeline.runner import main

    main(ShikokuScraper)
