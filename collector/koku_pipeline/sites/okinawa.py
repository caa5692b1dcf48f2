"""沖縄観光コンベンションビューローサイトのスクレイパー.

対象: https://visitokinawajapan.com/
ビーチ・世界遺産・離島・本島各地域・ダイビングスポットの各ページを巡回する。
想定件数: 100〜150 件
"""

from __future__ import annotations

import re
from typing import Callable

import requests
from bs4 import BeautifulSoup, Tag

from koku_pipeline.collection import LocationCollector
from koku_pipeline.config import REGIONAL_RATE_LIMIT
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.models import LocationDraft, ScrapedLocation, ScraperConfig
from koku_pipeline.sites.base import (
    SiteScraper,
    closest,
    first_text,
    is_skipped_link,
    is_skipped_name,
    joined_text,
    own_text,
)
from koku_pipeline.text_utils import clean_text, infer_category, truncate_description

PREFECTURE = "Okinawa"

# (パス, 地域名)
BEACH_PAGES = [
    ("discover/beach-information/beaches-northern-okinawa/", "Northern Okinawa"),
    ("discover/beach-information/beaches-central-southern-okinawa/", "Central & Southern Okinawa"),
    ("discover/beach-information/beaches-kume-miyako-yaeyama/", "Kume, Miyako & Yaeyama Islands"),
]
HERITAGE_PATH = "discover/world-heritage-top/"
ISLAND_PAGES = [
    ("destinations/kerama-islands/", "Kerama Islands"),
    ("destinations/miyako-islands/", "Miyako Islands"),
    ("destinations/yaeyama-islands/", "Yaeyama Islands"),
    ("destinations/kume-island/", "Kume Island"),
]
MAIN_ISLAND_PAGES = [
    ("destinations/okinawa-main-island/northern-okinawa-main-island/", "Northern Okinawa"),
    ("destinations/okinawa-main-island/central-okinawa-main-island/", "Central Okinawa"),
    ("destinations/okinawa-main-island/southern-okinawa-main-island/", "Southern Okinawa"),
]
DIVE_SITE_PAGES = [
    ("discover/dive-sites-okinawa/okinawa-main-island-diving/", "Okinawa Main Island"),
    ("discover/dive-sites-okinawa/kerama-islands-diving/", "Kerama Islands"),
    ("discover/dive-sites-okinawa/kume-island-diving/", "Kume Island"),
    ("discover/dive-sites-okinawa/miyako-islands-diving/", "Miyako Islands"),
    ("discover/dive-sites-okinawa/yaeyama-islands-diving/", "Yaeyama Islands"),
    ("discover/dive-sites-okinawa/yonaguni-island-diving/", "Yonaguni Island"),
]

_BEACH_NAME = re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\s+Beach")
_CASTLE_NAME = re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\s+(Castle|Castle Ruins|Castle Site)", re.IGNORECASE)
_ADDRESS_CITY = re.compile(r"([^,]+?)\s+(City|Village|Town|Island)", re.IGNORECASE)
_READ_MORE = re.compile(r"\s*(READ MORE|Learn more)\s*$", re.IGNORECASE)
_CAPITALIZED = re.compile(r"^[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*")
_DIVE_MARKERS = ("Cave", "Reef", "Wall", "Point")

_NATURAL_HERITAGE_WORDS = ("national park", "forest", "nature")
_MAIN_ISLAND_RULES = [
    ("culture", ["castle", "temple", "shrine", "museum"]),
    ("nature", ["park", "garden", "forest", "island"]),
]


def link_name(link: Tag) -> str:
    """リンクから名称を取り出す（見出し → 画像 alt → 直下のテキスト）.

    末尾の "READ MORE" などの誘導文言は除去する。
    """
    name = first_text(link, "h2, h3, h4")
    if not name:
        img = link.find("img")
        name = clean_text(img.get("alt")) if img else ""
    if not name:
        name = own_text(link)
    return _READ_MORE.sub("", name).strip()


def link_description(link: Tag) -> str:
    description = joined_text(link.find_all("p"))
    if not description:
        container = closest(link, names=("div", "article"))
        if container is not None:
            description = first_text(container, "p")
    return truncate_description(description)


class OkinawaScraper(SiteScraper):
    def __init__(self) -> None:
        super().__init__(ScraperConfig(
            name="okinawa_tourism",
            base_url="https://visitokinawajapan.com/",
            region="Okinawa",
            rate_limit=REGIONAL_RATE_LIMIT,
        ))

    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        self._scrape_beaches(fetcher, collector)
        self._scrape_world_heritage(fetcher, collector)
        self._scrape_islands(fetcher, collector)
        self._scrape_main_island_regions(fetcher, collector)
        self._scrape_dive_sites(fetcher, collector)

        self.logger.info(
            "%d 件取得しました (%s)", collector.stats.successful_scrapes, self.name
        )
        return collector.locations

    def _fetch(self, fetcher: Fetcher, url: str, collector: LocationCollector, what: str) -> BeautifulSoup | None:
        """ページを取得する。失敗は記録して None を返す."""
        fetcher.delay()
        try:
            return fetcher.fetch_html(url)
        except requests.RequestException as e:
            self.logger.error("取得失敗: %s %s: %s", what, url, e)
            collector.record_failure()
            return None

    def _add(self, collector: LocationCollector, **fields) -> None:
        collector.add_location(LocationDraft(region=self.config.region, prefecture=PREFECTURE, **fields))
        collector.record_success()

    def _absolute(self, href: str) -> str:
        return href if href.startswith("http") else f"{self.config.base_url}{href.removeprefix('/')}"

    # ------------------------------------------------------------------
    # ビーチ
    # ------------------------------------------------------------------

    def _scrape_beaches(self, fetcher: Fetcher, collector: LocationCollector) -> None:
        for path, area in BEACH_PAGES:
            page_url = f"{self.config.base_url}{path}"
            self.logger.info("ビーチ取得中: %s", area)
            soup = self._fetch(fetcher, page_url, collector, "ビーチページ")
            if soup is None:
                continue

            # ビーチごとに #con-01, #con-02 ... のアンカーが付いている
            sections = soup.select('section[id^="con-"], div[id^="con-"]')
            if not sections:
                self.logger.warning("ビーチのセクションが見つからないため本文から探します: %s", page_url)
                self._scrape_beaches_from_text(soup, page_url, area, collector)
                continue

            for index, section in enumerate(sections):
                try:
                    self._parse_beach_section(section, page_url, area, collector)
                except Exception as e:
                    self.logger.error("ビーチのパース失敗: %d 件目 (%s): %s", index, page_url, e)
                    collector.record_failure()

    def _parse_beach_section(self, section: Tag, page_url: str, area: str, collector: LocationCollector) -> None:
        name = first_text(section, "h2, h3, h4") or first_text(section, "strong")
        if not name:
            self.logger.warning("ビーチ名が見つかりません: %s", page_url)
            return

        city = ""
        address_text = joined_text(section.select('p:-soup-contains("Address"), .address'))
        match = _ADDRESS_CITY.search(address_text)
        if match:
            city = f"{match.group(1).strip()} {match.group(2)}"

        source_url = page_url
        website = section.select_one('a:-soup-contains("WEBSITE"), a[href*="http"]')
        if website is not None:
            href = website.get("href") or ""
            if href.startswith("http"):
                source_url = href

        description = truncate_description(first_text(section, "p"))

        self._add(
            collector,
            name=name,
            category="nature",
            city=city or None,
            source_url=source_url,
            description=description or f"Beach in {area}",
        )

    def _scrape_beaches_from_text(
        self, soup: BeautifulSoup, page_url: str, area: str, collector: LocationCollector
    ) -> None:
        """セクションが見つからない場合、本文中の "X Beach" を拾う."""
        for match in _BEACH_NAME.finditer(soup.get_text()):
            name = f"{match.group(1).strip()} Beach"
            if collector.has_name(name):
                continue
            self._add(
                collector,
                name=name,
                category="nature",
                source_url=page_url,
                description=f"Beach in {area}",
            )

    # ------------------------------------------------------------------
    # 世界遺産
    # ------------------------------------------------------------------

    def _scrape_world_heritage(self, fetcher: Fetcher, collector: LocationCollector) -> None:
        self.logger.info("世界遺産を取得中...")
        soup = self._fetch(fetcher, f"{self.config.base_url}{HERITAGE_PATH}", collector, "世界遺産ページ")
        if soup is None:
            return

        links = [
            a for a in soup.select(f'a[href*="/{HERITAGE_PATH}"]')
            if (a.get("href") or "") != f"/{HERITAGE_PATH}" and "#" not in (a.get("href") or "")
        ]

        def build(name: str, url: str, link: Tag) -> LocationDraft:
            natural = any(word in name.lower() for word in _NATURAL_HERITAGE_WORDS)
            return LocationDraft(
                name=name,
                category="nature" if natural else "culture",
                region=self.config.region,
                prefecture=PREFECTURE,
                source_url=url,
                description=(
                    "UNESCO Natural World Heritage Site" if natural else "UNESCO Cultural World Heritage Site"
                ),
            )

        count = self._collect_links(links, build, "世界遺産", collector)
        self.logger.info("世界遺産 %d 件", count)

    # ------------------------------------------------------------------
    # 離島
    # ------------------------------------------------------------------

    def _scrape_islands(self, fetcher: Fetcher, collector: LocationCollector) -> None:
        for path, group in ISLAND_PAGES:
            page_url = f"{self.config.base_url}{path}"
            self.logger.info("離島取得中: %s", group)
            soup = self._fetch(fetcher, page_url, collector, "離島ページ")
            if soup is None:
                continue

            child_path = path.split("destinations/", 1)[1]
            links = [
                a for a in soup.select('a[href*="/destinations/"]')
                if child_path in (a.get("href") or "")
                and (a.get("href") or "") != page_url
                and "#" not in (a.get("href") or "")
            ]

            def build(name: str, url: str, link: Tag, group: str = group) -> LocationDraft:
                return LocationDraft(
                    name=name,
                    category="attraction",
                    region=self.config.region,
                    prefecture=PREFECTURE,
                    source_url=url,
                    description=link_description(link) or f"Island in {group}",
                )

            count = self._collect_links(links, build, f"離島 ({group})", collector)
            self.logger.info("離島 %d 件 (%s)", count, group)

            self._scrape_castles_from_text(soup, page_url, group, collector)

    def _scrape_castles_from_text(
        self, soup: BeautifulSoup, page_url: str, group: str, collector: LocationCollector
    ) -> None:
        """離島ページ本文に出てくる城跡（グスク）を拾う."""
        for match in _CASTLE_NAME.finditer(soup.get_text()):
            name = f"{match.group(1).strip()} {match.group(2)}"
            if collector.has_name(name):
                continue
            self._add(
                collector,
                name=name,
                category="culture",
                source_url=page_url,
                description=f"Historic site in {group}",
            )

    # ------------------------------------------------------------------
    # 本島の各地域
    # ------------------------------------------------------------------

    def _scrape_main_island_regions(self, fetcher: Fetcher, collector: LocationCollector) -> None:
        for path, area in MAIN_ISLAND_PAGES:
            page_url = f"{self.config.base_url}{path}"
            self.logger.info("地域ページ取得中: %s", area)
            soup = self._fetch(fetcher, page_url, collector, "地域ページ")
            if soup is None:
                continue

            region_slug = path.split("destinations/okinawa-main-island/", 1)[1]
            links = [
                a for a in soup.select('a[href*="/destinations/okinawa-main-island/"]')
                if region_slug in (a.get("href") or "")
                and (a.get("href") or "") != page_url
                and "#" not in (a.get("href") or "")
            ]

            def build(name: str, url: str, link: Tag, area: str = area) -> LocationDraft:
                return LocationDraft(
                    name=name,
                    category=infer_category(name, _MAIN_ISLAND_RULES),
                    region=self.config.region,
                    prefecture=PREFECTURE,
                    source_url=url,
                    description=link_description(link) or f"Attraction in {area}",
                )

            count = self._collect_links(links, build, f"観光地 ({area})", collector)
            self.logger.info("観光地 %d 件 (%s)", count, area)

    # ------------------------------------------------------------------
    # ダイビングスポット
    # ------------------------------------------------------------------

    def _scrape_dive_sites(self, fetcher: Fetcher, collector: LocationCollector) -> None:
        for path, area in DIVE_SITE_PAGES:
            page_url = f"{self.config.base_url}{path}"
            self.logger.info("ダイビングスポット取得中: %s", area)
            soup = self._fetch(fetcher, page_url, collector, "ダイビングページ")
            if soup is None:
                continue

            for index, element in enumerate(soup.select("h2, h3, h4, strong")):
                try:
                    name = clean_text(element.get_text(" "))
                    if not is_dive_site_name(name) or collector.has_name(name):
                        continue
                    self._add(
                        collector,
                        name=name,
                        category="nature",
                        source_url=page_url,
                        description=f"Dive site in {area}",
                    )
                except Exception as e:
                    self.logger.error("ダイビングスポットのパース失敗: %d 件目 (%s): %s", index, area, e)
                    collector.record_failure()

    # ------------------------------------------------------------------

    def _collect_links(
        self,
        links: list[Tag],
        build: Callable[[str, str, Tag], LocationDraft],
        what: str,
        collector: LocationCollector,
    ) -> int:
        """リンク一覧から観光地を追加する.

        SNS・他言語リンクと不正な名称は除外し、同じ URL は一覧内で 1 度だけ扱う。

        Returns:
            一覧内のユニーク URL 数
        """
        unique_urls: set[str] = set()
        for index, link in enumerate(links):
            try:
                url = self._absolute(link.get("href") or "")
                if is_skipped_link(url) or url in unique_urls:
                    continue
                unique_urls.add(url)

                name = link_name(link)
                if not name:
                    self.logger.warning("名称が見つかりません: %s %d 件目", what, index)
                    continue
                if is_skipped_name(name):
                    continue

                collector.add_location(build(name, url, link))
                collector.record_success()
            except Exception as e:
                self.logger.error("パース失敗: %s %d 件目: %s", what, index, e)
                collector.record_failure()
        return len(unique_urls)


def is_dive_site_name(name: str) -> bool:
    """見出しや強調テキストがダイビングスポット名らしいかどうか."""
    if not name or len(name) > 50:
        return False
    lowered = name.lower()
    if any(word in lowered for word in ("diving", "explore", "read more")):
        return False
    return bool(_CAPITALIZED.match(name)) or any(marker in name for marker in _DIVE_MARKERS)


if __name__ == "__main__":
    from koku_pipeline.runner import main

    main(OkinawaScraper)
