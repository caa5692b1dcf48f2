"""関西観光サイト（The KANSAI Guide）のスクレイパー.

対象: https://www.the-kansai-guide.com/en/
網羅的なデータベースではなく厳選掲載のため、総数は 80〜100 件程度。
カテゴリ別ディレクトリ → 府県別ディレクトリの順に巡回し、
同じ詳細ページ URL は 1 度だけ採用する。
"""

from __future__ import annotations

import re

import requests
from bs4 import BeautifulSoup

from koku_pipeline.collection import LocationCollector
from koku_pipeline.config import REGIONAL_RATE_LIMIT
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.models import LocationDraft, ScrapedLocation, ScraperConfig
from koku_pipeline.sites.base import SiteScraper, first_text
from koku_pipeline.text_utils import clean_text, infer_category, normalize_category

TARGET_LOCATION_COUNT = 200
MAX_PAGES_PER_DIRECTORY = 10

CATEGORY_DIRECTORIES = ["tourist-attractions", "gourmet-experience", "traditional-crafts", "nature"]
PREFECTURE_DIRECTORIES = ["osaka", "kyoto", "hyogo", "nara", "wakayama", "shiga", "mie"]

KANSAI_PREFECTURES = ["Osaka", "Kyoto", "Hyogo", "Nara", "Wakayama", "Shiga", "Mie"]
KANSAI_CITIES = [
    "Osaka City", "Osaka", "Sakai", "Higashiosaka",
    "Kyoto City", "Kyoto", "Uji", "Kameoka",
    "Kobe", "Himeji", "Nishinomiya", "Amagasaki", "Akashi",
    "Nara City", "Nara", "Kashihara", "Ikoma",
    "Wakayama City", "Wakayama", "Tanabe", "Shirahama",
    "Otsu", "Hikone", "Nagahama",
    "Tsu", "Yokkaichi", "Suzuka", "Ise", "Matsusaka",
]

_CITY_PREFECTURES = {
    "Himeji": "Hyogo",
    "Nishinomiya": "Hyogo",
    "Tanabe": "Wakayama",
    "Shirahama": "Wakayama",
    "Otsu": "Shiga",
    "Hikone": "Shiga",
    "Nagahama": "Shiga",
    "Tsu": "Mie",
    "Ise": "Mie",
    "Yokkaichi": "Mie",
    "Suzuka": "Mie",
}

_CATEGORY_RULES = [
    ("nature", [
        "onsen", "hot spring", "mountain", "mt.", "lake", "river", "waterfall", "park",
        "nature", "garden", "gorge", "valley", "beach", "coast", "island", "hiking", "trail",
    ]),
    ("culture", [
        "temple", "shrine", "museum", "castle", "historic", "heritage", "traditional",
        "festival", "samurai", "edo", "cultural", "zen", "buddhist", "shinto", "pagoda",
        "palace", "art", "gallery",
    ]),
    ("food", ["restaurant", "food", "cuisine", "market", "dining", "cafe", "ramen", "sushi", "izakaya"]),
    ("shopping", ["shopping", "shop", "mall", "arcade", "store", "boutique"]),
    ("hotel", ["hotel", "resort", "accommodation", "inn", "ryokan", "lodging"]),
    ("attraction", ["aquarium", "zoo", "theme park", "entertainment", "observation", "tower", "observatory"]),
]


def _mentions(word: str, text: str) -> bool:
    return re.search(rf"\b{re.escape(word)}\b", text, re.IGNORECASE) is not None


def extract_location(name: str, description: str) -> tuple[str, str]:
    """名称と説明から (府県, 市区町村) を推定する.

    府県が見つからず市区町村だけ分かった場合は、市区町村から府県を補う。
    """
    text = f"{name} {description}"

    prefecture = next((p for p in KANSAI_PREFECTURES if _mentions(p, text)), "")
    city = next((c for c in KANSAI_CITIES if _mentions(c, text)), "")

    if city and not prefecture:
        if city in _CITY_PREFECTURES:
            prefecture = _CITY_PREFECTURES[city]
        elif "Kobe" in city:
            prefecture = "Hyogo"
        else:
            prefecture = next((p for p in KANSAI_PREFECTURES if p in city), "")

    return prefecture, city


def extract_total_pages(soup: BeautifulSoup) -> int:
    numbers = []
    for el in soup.select(".tkg-pager__number"):
        text = el.get_text().strip()
        numbers.append(int(text) if text.isdigit() else 0)
    if numbers:
        return max(numbers)

    # 次ページリンクだけある場合は多めに見積もる
    if soup.select_one(".tkg-pager__nextLink") is not None:
        return 25
    return 20


class KansaiScraper(SiteScraper):
    def __init__(self) -> None:
        super().__init__(ScraperConfig(
            name="kansai_guide",
            base_url="https://www.the-kansai-guide.com/en/",
            region="Kansai",
            rate_limit=REGIONAL_RATE_LIMIT,
        ))

    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        for directory in CATEGORY_DIRECTORIES:
            if collector.stats.total_locations >= TARGET_LOCATION_COUNT:
                self.logger.info("目標の %d 件に達したため終了します", TARGET_LOCATION_COUNT)
                break

            directory_url = f"{self.config.base_url}catalog/directory/{directory}/"
            self.logger.info("カテゴリ取得中: %s (%s)", directory, directory_url)
            try:
                self._scrape_directory(fetcher, directory_url, collector)
            except requests.RequestException as e:
                self.logger.error("カテゴリ取得失敗: %s: %s", directory, e)

            if collector.stats.total_locations < TARGET_LOCATION_COUNT:
                fetcher.delay()

        if collector.stats.total_locations < TARGET_LOCATION_COUNT:
            self.logger.info(
                "現在 %d 件。府県別ページからも取得します",
                collector.stats.total_locations,
            )
            for prefecture in PREFECTURE_DIRECTORIES:
                if collector.stats.total_locations >= TARGET_LOCATION_COUNT:
                    break

                prefecture_url = f"{self.config.base_url}catalog/directory/{prefecture}/"
                self.logger.info("府県ページ取得中: %s (%s)", prefecture, prefecture_url)
                try:
                    self._scrape_directory(fetcher, prefecture_url, collector)
                except requests.RequestException as e:
                    self.logger.error("府県ページ取得失敗: %s: %s", prefecture, e)

                fetcher.delay()

        self.logger.info(
            "%d 件取得しました (%s)", collector.stats.successful_scrapes, self.name
        )
        return collector.locations

    def _scrape_directory(
        self,
        fetcher: Fetcher,
        directory_url: str,
        collector: LocationCollector,
    ) -> None:
        """ディレクトリの 1 ページ目を取得し、残りのページを巡回する.

        1 ページ目の取得失敗は呼び出し元に送出する。
        """
        soup = fetcher.fetch_html(directory_url)

        total_pages = extract_total_pages(soup)
        self.logger.info("ページ数: %d", total_pages)

        self._scrape_page(soup, 1, collector)

        for page in range(2, min(total_pages, MAX_PAGES_PER_DIRECTORY) + 1):
            fetcher.delay()
            try:
                page_soup = fetcher.fetch_html(f"{directory_url}?page={page}")
            except requests.RequestException as e:
                self.logger.error("ページ取得失敗: %d ページ目: %s", page, e)
                collector.record_failure()
                continue
            self._scrape_page(page_soup, page, collector)

    def _scrape_page(
        self,
        soup: BeautifulSoup,
        page_number: int,
        collector: LocationCollector,
    ) -> None:
        self.logger.info("%d ページ目を取得中...", page_number)

        items = soup.select(".gw-directoryLinks__item")
        if not items:
            self.logger.warning("%d ページ目に観光地がありません", page_number)
            return

        self.logger.info("観光地 %d 件 (%d ページ目)", len(items), page_number)

        # カテゴリをまたいだ重複を避ける
        seen_urls = collector.source_urls()
        site_root = re.sub(r"/en/$", "", self.config.base_url)

        for index, item in enumerate(items):
            try:
                link = item.select_one(".gw-directoryLinks__directoryLink")
                href = (link.get("href") or "") if link else ""
                if not href:
                    self.logger.warning("リンクが見つかりません: %d 件目 (%d ページ目)", index, page_number)
                    continue

                detail_url = href if href.startswith("http") else f"{site_root}{href}"
                if detail_url in seen_urls:
                    continue

                name = first_text(item, ".gw-directoryLinks__title")
                if len(name) < 2:
                    self.logger.warning("有効な名称が見つかりません: %d 件目 (%d ページ目)", index, page_number)
                    continue

                description = first_text(item, ".gw-directoryLinks__description")

                labels = [
                    label
                    for label in (
                        clean_text(el.get_text(" "))
                        for el in item.select(".gw-directoryLinks__labels span, .gw-directoryLinks__labels div")
                    )
                    if label
                ]
                if labels:
                    category = normalize_category(labels[0])
                else:
                    category = infer_category(f"{name} {description}", _CATEGORY_RULES)

                prefecture, city = extract_location(name, description)

                collector.add_location(LocationDraft(
                    name=name,
                    category=category,
                    region=self.config.region,
                    prefecture=prefecture or None,
                    city=city or None,
                    source_url=detail_url,
                    description=description or None,
                ))
                seen_urls.add(detail_url)
                collector.record_success()
            except Exception as e:
                self.logger.error("パース失敗: %d 件目 (%d ページ目): %s", index, page_number, e)
                collector.record_failure()


if __name__ == "__main__":
    from koku_pipeline.runner import main

    main(KansaiScraper)
