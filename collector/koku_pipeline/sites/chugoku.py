"""中国地方観光サイト（INTO YOU）のスクレイパー.

対象: https://www.into-you.jp/en/
鳥取・島根・岡山・広島・山口の県別検索結果を各 2 ページまで取得する。
"""

from __future__ import annotations

import re

import requests
from bs4 import BeautifulSoup, Tag

from koku_pipeline.collection import LocationCollector
from koku_pipeline.config import REGIONAL_RATE_LIMIT
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.models import LocationDraft, ScrapedLocation, ScraperConfig
from koku_pipeline.sites.base import SiteScraper
from koku_pipeline.text_utils import clean_text, infer_category, truncate_description

SITE_ROOT = "https://www.into-you.jp"
MAX_PAGES = 2

# URL スラッグ → 県名
PREFECTURES = {
    "tottori": "Tottori",
    "shimane": "Shimane",
    "okayama": "Okayama",
    "hiroshima": "Hiroshima",
    "yamaguchi": "Yamaguchi",
}

CHUGOKU_CITIES = [
    "Hiroshima", "Okayama", "Kurashiki", "Matsue", "Izumo",
    "Tottori", "Yamaguchi", "Shimonoseki", "Onomichi", "Fukuyama",
]

_DETAIL_PATH = re.compile(r"/en/places/\d+/?$")
_PAGE_PATH = re.compile(r"/page/(\d+)/")
_NAV_TEXT = [
    re.compile(r"^next$", re.IGNORECASE),
    re.compile(r"^previous$", re.IGNORECASE),
    re.compile(r"^page \d+$", re.IGNORECASE),
    re.compile(r"^\d+$"),
    re.compile("^最後$"),
    re.compile(r"^read more$", re.IGNORECASE),
    re.compile(r"^view all$", re.IGNORECASE),
    re.compile(r"^see all$", re.IGNORECASE),
]
_SENTENCE_BREAK = re.compile(r"(?:\.\s+|\n|  +)")
_LEADING_WORD = re.compile(r"^(.+?)(?:\s+(?:The|In|A|An|This|On|With|For|At)\s)", re.IGNORECASE)
_ELLIPSIS = "[…]"

_CATEGORY_RULES = [
    ("culture", ["temple", "shrine", "castle", "museum", "heritage"]),
    ("nature", ["park", "mountain", "garden", "island", "beach", "nature", "gorge", "valley"]),
    ("food", ["restaurant", "food", "cuisine", "market"]),
    ("shopping", ["shop", "shopping", "store"]),
]


def extract_total_pages(soup: BeautifulSoup) -> int:
    pages = []
    for a in soup.select('a[href*="/page/"]'):
        match = _PAGE_PATH.search(a.get("href") or "")
        pages.append(int(match.group(1)) if match else 0)
    if pages:
        return max(pages)

    last_link = soup.select_one('a:-soup-contains("最後"), a:-soup-contains("Last")')
    if last_link is not None:
        match = _PAGE_PATH.search(last_link.get("href") or "")
        if match:
            return int(match.group(1))

    return 1


def split_name_and_description(link: Tag, full_text: str) -> tuple[str, str]:
    """リンク内のテキストから名称と説明を切り分ける.

    画像の alt があればそれを名称とし、なければ文の区切りや
    冠詞の直前で分割する。どれも使えない場合は先頭 50 文字を名称にする。
    """
    img = link.find("img")
    alt = clean_text(img.get("alt")) if img else ""
    if alt:
        return alt, full_text.replace(alt, "", 1).strip()

    sentences = _SENTENCE_BREAK.split(full_text)
    if len(sentences) >= 2:
        name = sentences[0].strip()
        description = " ".join(sentences[1:]).replace(_ELLIPSIS, "", 1).strip()
    else:
        match = _LEADING_WORD.match(full_text)
        if match:
            name = match.group(1).strip()
            description = full_text[len(name):].replace(_ELLIPSIS, "", 1).strip()
        elif len(full_text) > 50:
            name = full_text[:50].strip()
            description = full_text[50:].replace(_ELLIPSIS, "", 1).strip()
        else:
            name = full_text
            description = ""

    name = name.split(_ELLIPSIS, 1)[0].rstrip()
    return name, description


class ChugokuScraper(SiteScraper):
    def __init__(self) -> None:
        super().__init__(ScraperConfig(
            name="chugoku_tourism",
            base_url="https://www.into-you.jp/en/",
            region="Chugoku",
            rate_limit=REGIONAL_RATE_LIMIT,
        ))

    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        for slug in PREFECTURES:
            self._scrape_prefecture(fetcher, slug, collector)
            fetcher.delay()

        self.logger.info(
            "%d 件取得しました (%s)", collector.stats.successful_scrapes, self.name
        )
        return collector.locations

    def _scrape_prefecture(self, fetcher: Fetcher, slug: str, collector: LocationCollector) -> None:
        prefecture = PREFECTURES[slug]
        self.logger.info("県ページ取得中: %s", prefecture)

        try:
            soup = fetcher.fetch_html(f"{self.config.base_url}places/?area=search&pref={slug}")
        except requests.RequestException as e:
            self.logger.error("府県ページ取得失敗: %s: %s", slug, e)
            return

        total_pages = extract_total_pages(soup)
        self.logger.info("ページ数: %d (%s)", total_pages, prefecture)

        self._scrape_page(soup, prefecture, 1, collector)

        for page in range(2, min(total_pages, MAX_PAGES) + 1):
            fetcher.delay()
            page_url = f"{self.config.base_url}places/page/{page}/?area=search&pref={slug}"
            try:
                page_soup = fetcher.fetch_html(page_url)
            except requests.RequestException as e:
                self.logger.error("ページ取得失敗: %d ページ目 (%s): %s", page, prefecture, e)
                collector.record_failure()
                continue
            self._scrape_page(page_soup, prefecture, page, collector)

    def _scrape_page(
        self, soup: BeautifulSoup, prefecture: str, page_number: int, collector: LocationCollector
    ) -> None:
        self.logger.info("%d ページ目を取得中...", page_number)

        links = [a for a in soup.select('a[href*="/en/places/"]') if _DETAIL_PATH.search(a.get("href") or "")]
        if not links:
            self.logger.warning("%d ページ目に観光地がありません (%s)", page_number, prefecture)
            return

        self.logger.info("観光地 %d 件 (%d ページ目)", len(links), page_number)

        # 同じページ内の重複リンク（画像とテキストの 2 本など）
        processed_urls: set[str] = set()

        for index, link in enumerate(links):
            try:
                href = link.get("href") or ""
                detail_url = href if href.startswith("http") else f"{SITE_ROOT}{href.removeprefix('.')}"
                if detail_url in processed_urls:
                    continue
                processed_urls.add(detail_url)

                full_text = clean_text(link.get_text(" "))
                if not full_text or any(p.search(full_text) for p in _NAV_TEXT):
                    continue

                name, description = split_name_and_description(link, full_text)
                if len(name) < 2:
                    continue
                if description:
                    description = truncate_description(description)

                context_text = f"{name} {description}".lower()
                city = next((c for c in CHUGOKU_CITIES if c.lower() in context_text), "")

                collector.add_location(LocationDraft(
                    name=name,
                    category=infer_category(context_text, _CATEGORY_RULES),
                    region=self.config.region,
                    prefecture=prefecture,
                    city=city or None,
                    source_url=detail_url,
                    description=description or None,
                ))
                collector.record_success()
            except Exception as e:
                self.logger.error(
                    "パース失敗: %d 件目 (%d ページ目, %s): %s", index, page_number, prefecture, e
                )
                collector.record_failure()


if __name__ == "__main__":
    from koku_pipeline.runner import main

    main(ChugokuScraper)
