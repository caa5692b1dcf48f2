"""九州観光機構サイトのスクレイパー.

対象: https://www.visit-kyushu.com/en/

1. "see-and-do" 配下の 6 カテゴリページから観光地 URL を集める
2. 各観光地の詳細ページを開き、名称・住所・カテゴリを取得する
"""

from __future__ import annotations

import re

import requests
from bs4 import BeautifulSoup

from koku_pipeline.collection import LocationCollector
from koku_pipeline.config import DEFAULT_CATEGORY, REGIONAL_RATE_LIMIT
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.models import LocationDraft, ScrapedLocation, ScraperConfig
from koku_pipeline.sites.base import SiteScraper, first_text, joined_text
from koku_pipeline.text_utils import clean_text

SITE_ROOT = "https://www.visit-kyushu.com"

# カテゴリスラッグ → 標準カテゴリ
CATEGORY_MAPPING = {
    "activities-and-experiences": "attraction",
    "art-and-culture": "culture",
    "heritage-and-history": "culture",
    "wellness-and-relaxation": "nature",
    "nature-and-outdoors": "nature",
    "leisure-and-entertainment": "attraction",
}

# 九州観光機構は沖縄も扱うことがある
KYUSHU_PREFECTURES = (
    "Fukuoka", "Saga", "Nagasaki", "Kumamoto", "Oita", "Miyazaki", "Kagoshima", "Okinawa",
)

_JAPANESE_PARENTHETICAL = re.compile(
    r"[\uff08(][\u3000-\u303f\u3040-\u309f\u30a0-\u30ff\uff00-\uff9f\u4e00-\u9faf\u3400-\u4dbf]+[\uff09)]"
)
_CITY = re.compile(r"([A-Za-z\s]+)\s+city", re.IGNORECASE)

_NATURE_WORDS = ("nature", "outdoor", "park", "mountain")
_CULTURE_WORDS = ("culture", "art", "heritage", "history", "museum", "shrine", "temple")


def extract_spot_urls(soup: BeautifulSoup) -> list[str]:
    """カテゴリページから観光地詳細ページの URL を出現順に重複なく取り出す."""
    urls: list[str] = []
    for a in soup.select('a[href*="/see-and-do/spots/"]'):
        href = a.get("href") or ""
        if href and "#" not in href and href not in urls:
            urls.append(href)
    return urls


def tag_category(soup: BeautifulSoup) -> str:
    """詳細ページのタグリンクから標準カテゴリを決める."""
    for a in soup.select('a[href*="/see-and-do/"], a[href*="/travel-directory/"]'):
        href = a.get("href") or ""
        text = clean_text(a.get_text(" ")).lower()

        for slug, category in CATEGORY_MAPPING.items():
            if slug in href or slug.replace("-", " ") in text:
                return category

        if any(word in text for word in _NATURE_WORDS):
            return "nature"
        if any(word in text for word in _CULTURE_WORDS):
            return "culture"

    return DEFAULT_CATEGORY


class KyushuScraper(SiteScraper):
    def __init__(self) -> None:
        super().__init__(ScraperConfig(
            name="kyushu_tourism",
            base_url="https://www.visit-kyushu.com/en/",
            region="Kyushu",
            rate_limit=REGIONAL_RATE_LIMIT,
        ))

    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        spot_urls: list[str] = []

        self.logger.info("フェーズ 1: カテゴリページから観光地 URL を収集中...")
        for slug in CATEGORY_MAPPING:
            fetcher.delay()
            self.logger.info("カテゴリ取得中: %s", slug)
            try:
                soup = fetcher.fetch_html(f"{self.config.base_url}see-and-do/{slug}/")
            except requests.RequestException as e:
                self.logger.error("カテゴリ取得失敗: %s: %s", slug, e)
                collector.record_failure()
                continue

            found = extract_spot_urls(soup)
            for url in found:
                if url not in spot_urls:
                    spot_urls.append(url)
            self.logger.info("  %d 件 (%s) / ユニーク合計 %d 件", len(found), slug, len(spot_urls))

        self.logger.info("フェーズ 1 完了: ユニーク URL %d 件", len(spot_urls))
        self.logger.info("フェーズ 2: 観光地ページを個別に取得中...")

        for count, spot_url in enumerate(spot_urls, start=1):
            fetcher.delay()
            full_url = spot_url if spot_url.startswith("http") else f"{SITE_ROOT}{spot_url}"
            self.logger.info("[%d/%d] 取得中: %s", count, len(spot_urls), full_url)
            try:
                soup = fetcher.fetch_html(full_url)
                draft = self._parse_spot_page(soup, full_url)
            except Exception as e:
                self.logger.error("観光地ページ取得失敗: %s: %s", spot_url, e)
                collector.record_failure()
                continue

            if draft is None:
                self.logger.warning("名称が見つかりません: %s", full_url)
                continue
            collector.add_location(draft)
            collector.record_success()
            self.logger.info("  %s (%s)", draft.name, draft.prefecture or "不明")

        self.logger.info(
            "%d 件取得しました (%s)", collector.stats.successful_scrapes, self.name
        )
        return collector.locations

    def _parse_spot_page(self, soup: BeautifulSoup, url: str) -> LocationDraft | None:
        name = first_text(soup, ".mod__spot-info--name-en") or first_text(soup, "h2")
        # "Dazaifu Tenmangu（太宰府天満宮）" の日本語部分を落とす
        name = _JAPANESE_PARENTHETICAL.sub("", name).strip()
        if not name:
            return None

        description = first_text(soup, ".mod__spot-info--txt .font--01, .mod__spot-info--txt p")

        prefecture = ""
        city = ""
        address_icons = soup.select('img[alt="Address"], img[alt*="address"]')
        address_text = joined_text(img.parent for img in address_icons if img.parent is not None)
        if address_text:
            prefecture = next((p for p in KYUSHU_PREFECTURES if p in address_text), "")
            match = _CITY.search(address_text)
            if match:
                city = clean_text(match.group(1))

        if not prefecture:
            for a in soup.select('a[href*="/destinations/"]'):
                href = (a.get("href") or "").lower()
                prefecture = next((p for p in KYUSHU_PREFECTURES if p.lower() in href), "")
                if prefecture:
                    break

        return LocationDraft(
            name=name,
            category=tag_category(soup),
            region=self.config.region,
            prefecture=prefecture or None,
            city=city or None,
            source_url=url,
            description=description or None,
        )


if __name__ == "__main__":
    from koku_pipeline.runner import main

    main(KyushuScraper)
