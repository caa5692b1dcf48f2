"""中部（昇龍道）観光サイトのスクレイパー.

対象: https://shoryudo.go-centraljapan.jp/en/
9 県の県別ページから、見出し（h3）ごとに分類された観光地を取得する。
"""

from __future__ import annotations

import requests
from bs4 import BeautifulSoup, Tag

from koku_pipeline.collection import LocationCollector
from koku_pipeline.config import DEFAULT_CATEGORY, REGIONAL_RATE_LIMIT
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.models import LocationDraft, ScrapedLocation, ScraperConfig
from koku_pipeline.sites.base import SiteScraper, first_text
from koku_pipeline.text_utils import clean_text

SITE_ROOT = "https://shoryudo.go-centraljapan.jp"

# (表示名, URL スラッグ)
PREFECTURES = [
    ("Aichi", "aichi"),
    ("Gifu", "gifu"),
    ("Nagano", "nagano"),
    ("Shizuoka", "shizuoka"),
    ("Ishikawa", "ishikawa"),
    ("Toyama", "toyama"),
    ("Fukui", "fukui"),
    ("Shiga", "shiga"),
    ("Mie", "mie"),
]

_EXCLUDED_PATHS = ("/special-prefecture/", "/courses/", "/short-trip/")

# 見出しのキーワード → 標準カテゴリ（先頭から照合）
_SECTION_CATEGORIES = [
    ("landscape", "nature"),
    ("activity", "attraction"),
    ("entertainment", "attraction"),
    ("life", "culture"),
    ("culture", "culture"),
    ("eating", "food"),
    ("food", "food"),
]


def section_category(heading_text: str) -> str:
    """県別ページの見出しテキストを標準カテゴリに変換する."""
    lowered = heading_text.lower()
    for keyword, category in _SECTION_CATEGORIES:
        if keyword in lowered:
            return category
    return DEFAULT_CATEGORY


class CentralJapanScraper(SiteScraper):
    def __init__(self) -> None:
        super().__init__(ScraperConfig(
            name="central_japan_dmo",
            base_url="https://shoryudo.go-centraljapan.jp/en/",
            region="Chubu",
            rate_limit=REGIONAL_RATE_LIMIT,
        ))

    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        self.logger.info("%d 県の取得を開始します", len(PREFECTURES))

        for prefecture, slug in PREFECTURES:
            fetcher.delay()
            prefecture_url = f"{self.config.base_url}special-prefecture/{slug}/"
            self.logger.info("県ページ取得中: %s", prefecture)
            try:
                soup = fetcher.fetch_html(prefecture_url)
            except requests.RequestException as e:
                self.logger.error("県ページ取得失敗: %s: %s", prefecture, e)
                collector.record_failure()
                continue
            self._scrape_prefecture(soup, prefecture, collector)

        self.logger.info(
            "%d 件取得しました (%d 県)",
            collector.stats.successful_scrapes,
            len(PREFECTURES),
        )
        return collector.locations

    def _is_detail_link(self, link: Tag) -> bool:
        href = link.get("href") or ""
        if "go-centraljapan.jp/en/" not in href or href == self.config.base_url:
            return False
        if any(path in href for path in _EXCLUDED_PATHS):
            return False
        return link.find("h4") is not None

    def _scrape_prefecture(self, soup: BeautifulSoup, prefecture: str, collector: LocationCollector) -> None:
        # 構造: <a href="..."><img><h4>名称</h4></a>
        links = [a for a in soup.select('a[href*="go-centraljapan.jp/en/"]') if self._is_detail_link(a)]
        if not links:
            self.logger.warning("観光地が見つかりません: %s", prefecture)
            return

        self.logger.info("観光地 %d 件 (%s)", len(links), prefecture)

        for index, link in enumerate(links):
            try:
                name = clean_text(link.find("h4").get_text(" "))
                if not name:
                    self.logger.warning("名称が見つかりません: %d 件目 (%s)", index, prefecture)
                    continue

                href = link.get("href") or ""
                if href.startswith("http"):
                    detail_url = href
                else:
                    detail_url = f"{SITE_ROOT}{'' if href.startswith('/') else '/'}{href}"

                # 直前の h3 がそのセクションの分類
                heading = link.find_previous("h3")
                category = section_category(clean_text(heading.get_text(" ")) if heading else "")

                description = first_text(link, "p, .description")

                collector.add_location(LocationDraft(
                    name=name,
                    category=category,
                    region=self.config.region,
                    prefecture=prefecture,
                    source_url=detail_url,
                    description=description or None,
                ))
                collector.record_success()
            except Exception as e:
                self.logger.error("パース失敗: %d 件目 (%s): %s", index, prefecture, e)
                collector.record_failure()


if __name__ == "__main__":
    from koku_pipeline.runner import main

    main(CentralJapanScraper)
