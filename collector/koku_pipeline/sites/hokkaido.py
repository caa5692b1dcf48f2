"""北海道 DMO サイトのスクレイパー.

対象: https://www.visit-hokkaido.jp/en/
想定件数: 200〜300 件（一覧 15 ページまで）
"""

from __future__ import annotations

import re

import requests
from bs4 import BeautifulSoup, Tag

from koku_pipeline.collection import LocationCollector
from koku_pipeline.config import REGIONAL_RATE_LIMIT
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.models import LocationDraft, ScrapedLocation, ScraperConfig
from koku_pipeline.sites.base import SiteScraper, absolute_url, closest, first_text
from koku_pipeline.text_utils import clean_text, infer_category, normalize_category

MAX_PAGES = 15

_AREA_PATTERNS = [
    re.compile(r"Area around ([^,\n]+)", re.IGNORECASE),
    re.compile(r"([^,\n]+) Area", re.IGNORECASE),
    re.compile(
        r"(Sapporo|Otaru|Asahikawa|Hakodate|Furano|Biei|Kushiro|Niseko|Noboribetsu)",
        re.IGNORECASE,
    ),
]

_CATEGORY_RULES = [
    ("culture", ["temple", "shrine", "museum"]),
    ("nature", ["park", "mountain", "pond", "lake"]),
    ("food", ["restaurant", "food", "market"]),
]


class HokkaidoScraper(SiteScraper):
    def __init__(self) -> None:
        super().__init__(ScraperConfig(
            name="hokkaido_dmo",
            base_url="https://www.visit-hokkaido.jp/en/",
            region="Hokkaido",
            rate_limit=REGIONAL_RATE_LIMIT,
        ))

    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        spots_url = f"{self.config.base_url}spot/index.html"
        soup = fetcher.fetch_html(spots_url)

        total_pages = extract_total_pages(soup)
        self.logger.info("ページ数: %d", total_pages)

        self._scrape_page(soup, 1, collector)

        for page in range(2, min(total_pages, MAX_PAGES) + 1):
            fetcher.delay()
            page_url = f"{spots_url}?page={page}"
            try:
                page_soup = fetcher.fetch_html(page_url)
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

        # 詳細ページへのリンクは detail_11270.html のような相対パス
        links = soup.select('a[href^="detail_"]')
        if not links:
            self.logger.warning("%d ページ目に観光地がありません", page_number)
            return

        self.logger.info("観光地 %d 件 (%d ページ目)", len(links), page_number)

        for index, link in enumerate(links):
            try:
                draft = self._parse_link(link)
            except Exception as e:
                self.logger.error("パース失敗: %d 件目 (%d ページ目): %s", index, page_number, e)
                collector.record_failure()
                continue
            if draft is None:
                continue
            collector.add_location(draft)
            collector.record_success()

    def _parse_link(self, link: Tag) -> LocationDraft | None:
        href = link.get("href") or ""
        if not href:
            return None

        detail_url = absolute_url(re.sub(r"^\./", "", href), f"{self.config.base_url}spot/")

        name = link.get("title") or ""
        if not name:
            img = link.find("img")
            name = (img.get("alt") or "") if img else ""
        if not name:
            name = clean_text(link.get_text(" "))
        name = clean_text(name)
        if not name:
            self.logger.warning("名称が見つかりません: %s", detail_url)
            return None

        parent = closest(link, names=("li", "article"), classes=("spot-item", "attraction-card"))
        parent_text = clean_text(parent.get_text(" ")) if parent else ""

        city = ""
        for pattern in _AREA_PATTERNS:
            match = pattern.search(parent_text)
            if match:
                city = clean_text(match.group(1) or match.group(0))
                break

        description = first_text(parent, "p, .description") if parent else ""
        category_text = (
            clean_text(" ".join(t.get_text(" ") for t in parent.select(".category, .type, .tag")))
            if parent
            else ""
        )
        if category_text:
            category = normalize_category(category_text)
        else:
            category = infer_category(f"{name} {description}", _CATEGORY_RULES)

        return LocationDraft(
            name=name,
            category=category,
            region=self.config.region,
            prefecture="Hokkaido",
            city=city or None,
            source_url=detail_url,
            description=description or None,
        )


def extract_total_pages(soup: BeautifulSoup) -> int:
    """ページャーから総ページ数を推定する（不明なら 15）."""
    pager_text = clean_text(" ".join(el.get_text(" ") for el in soup.select(".pagination, .pager, .page-numbers")))
    match = re.search(r"(\d+)\s*$", pager_text)
    if match:
        return int(match.group(1))

    pages = []
    for a in soup.select('a[href*="?page="], a[href*="&page="]'):
        m = re.search(r"[?&]page=(\d+)", a.get("href") or "")
        pages.append(int(m.group(1)) if m else 0)
    if pages:
        return max(pages)

    return MAX_PAGES


if __name__ == "__main__":
    from koku_pipeline.runner import main

    main(HokkaidoScraper)
