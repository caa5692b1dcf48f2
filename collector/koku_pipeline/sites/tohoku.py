"""東北観光推進機構サイトのスクレイパー.

対象: https://www.tohokukanko.jp/en/
一覧は 1 ページ 40 件。先頭 6 ページ（約 240 件）までを取得する。
"""

from __future__ import annotations

import requests
from bs4 import BeautifulSoup

from koku_pipeline.collection import LocationCollector
from koku_pipeline.config import REGIONAL_RATE_LIMIT
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.models import LocationDraft, ScrapedLocation, ScraperConfig
from koku_pipeline.sites.base import SiteScraper, absolute_url
from koku_pipeline.text_utils import clean_text, infer_category

MAX_PAGES = 6

TOHOKU_PREFECTURES = ("Aomori", "Iwate", "Miyagi", "Akita", "Yamagata", "Fukushima")

_CATEGORY_RULES = [
    ("nature", [
        "onsen", "hot spring", "mountain", "lake", "river", "waterfall", "park",
        "nature", "garden", "gorge", "valley", "beach", "coast",
    ]),
    ("culture", [
        "temple", "shrine", "museum", "castle", "historic", "heritage",
        "traditional", "festival", "samurai", "edo", "cultural",
    ]),
    ("food", ["restaurant", "food", "cuisine", "market", "dining"]),
    ("shopping", ["shopping", "market", "shop", "mall"]),
    ("attraction", ["aquarium", "zoo", "theme park", "entertainment", "observation", "tower"]),
]


def _find_prefecture(text: str) -> str:
    for prefecture in TOHOKU_PREFECTURES:
        if prefecture in text:
            return prefecture
    return ""


class TohokuScraper(SiteScraper):
    def __init__(self) -> None:
        super().__init__(ScraperConfig(
            name="tohoku_tourism",
            base_url="https://www.tohokukanko.jp/en/",
            region="Tohoku",
            rate_limit=REGIONAL_RATE_LIMIT,
        ))

    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        attractions_url = f"{self.config.base_url}attractions/"
        soup = fetcher.fetch_html(f"{attractions_url}index.html")
        self._scrape_page(soup, 1, collector)

        for page in range(2, MAX_PAGES + 1):
            fetcher.delay()
            page_url = f"{attractions_url}index_{page}_2______0___.html"
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

        # 各観光地は <h3>名称</h3><p>県名</p><p>説明</p><a href="detail_X.html"> の並び
        headings = soup.select("h3")
        if not headings:
            self.logger.warning("%d ページ目に観光地がありません", page_number)
            return

        self.logger.info("観光地 %d 件 (%d ページ目)", len(headings), page_number)

        for index, heading in enumerate(headings):
            try:
                name = clean_text(heading.get_text(" "))
                if len(name) < 2:
                    continue

                container = heading.parent
                detail_link = container.select_one('a[href^="detail_"]')
                href = (detail_link.get("href") or "") if detail_link else ""
                if not href:
                    self.logger.warning("詳細リンクが見つかりません: %s", name)
                    continue

                detail_url = absolute_url(
                    href.removeprefix("./"), f"{self.config.base_url}attractions/"
                )

                paragraphs = container.select("p")
                prefecture = ""
                description = ""
                if paragraphs:
                    prefecture = _find_prefecture(clean_text(paragraphs[0].get_text(" ")))
                    if prefecture:
                        if len(paragraphs) > 1:
                            description = clean_text(paragraphs[1].get_text(" "))
                    else:
                        description = clean_text(paragraphs[0].get_text(" "))

                if not prefecture:
                    prefecture = _find_prefecture(container.get_text(" "))

                collector.add_location(LocationDraft(
                    name=name,
                    category=infer_category(f"{name} {description}", _CATEGORY_RULES),
                    region=self.config.region,
                    prefecture=prefecture or None,
                    source_url=detail_url,
                    description=description or None,
                ))
                collector.record_success()
            except Exception as e:
                self.logger.error("パース失敗: %d 件目 (%d ページ目): %s", index, page_number, e)
                collector.record_failure()


if __name__ == "__main__":
    from koku_pipeline.runner import main

    main(TohokuScraper)
