"""日本政府観光局（JNTO）サイトのスクレイパー.

対象: https://www.japan.travel/en/
spot/<id>/ を 1 から順に巡回する全国版スクレイパー。

重複は 2 段階で除外する:
1. 実行中に取得済みの URL（同一実行内）
2. DB 登録済みの観光地（PipelineContext にクライアントがある場合のみ）
"""

from __future__ import annotations

import re

import requests
from bs4 import BeautifulSoup

from koku_pipeline import db
from koku_pipeline.collection import LocationCollector
from koku_pipeline.config import (
    JNTO_MAX_CONSECUTIVE_MISSES,
    JNTO_MAX_SPOT_ID,
    JNTO_TEST_MAX_SPOT_ID,
    REGIONAL_RATE_LIMIT,
    REGIONS,
    is_test_mode,
)
from koku_pipeline.dedup import enable_db_dedup, is_known
from koku_pipeline.errors import ConfigError
from koku_pipeline.fetcher import Fetcher, is_not_found
from koku_pipeline.models import LocationDraft, PipelineContext, ScrapedLocation, ScraperConfig
from koku_pipeline.sites.base import SiteScraper, first_text
from koku_pipeline.text_utils import clean_text, normalize_category, normalize_name

DEFAULT_REGION = "Kanto"

# 都道府県 → 地方（先頭から部分一致で照合する）
PREFECTURE_REGIONS = {
    "Fukuoka": "Kyushu",
    "Shiga": "Kansai",
    "Hyogo": "Kansai",
    "Ehime": "Shikoku",
    "Kagoshima": "Kyushu",
    "Hokkaido": "Hokkaido",
    "Aomori": "Tohoku",
    "Iwate": "Tohoku",
    "Miyagi": "Tohoku",
    "Akita": "Tohoku",
    "Yamagata": "Tohoku",
    "Fukushima": "Tohoku",
    "Tokyo": "Kanto",
    "Kanagawa": "Kanto",
    "Chiba": "Kanto",
    "Saitama": "Kanto",
    "Ibaraki": "Kanto",
    "Tochigi": "Kanto",
    "Gunma": "Kanto",
    "Niigata": "Chubu",
    "Toyama": "Chubu",
    "Ishikawa": "Chubu",
    "Fukui": "Chubu",
    "Yamanashi": "Chubu",
    "Nagano": "Chubu",
    "Gifu": "Chubu",
    "Shizuoka": "Chubu",
    "Aichi": "Chubu",
    "Mie": "Kansai",
    "Kyoto": "Kansai",
    "Osaka": "Kansai",
    "Nara": "Kansai",
    "Wakayama": "Kansai",
    "Tottori": "Chugoku",
    "Shimane": "Chugoku",
    "Okayama": "Chugoku",
    "Hiroshima": "Chugoku",
    "Yamaguchi": "Chugoku",
    "Tokushima": "Shikoku",
    "Kagawa": "Shikoku",
    "Kochi": "Shikoku",
    "Saga": "Kyushu",
    "Nagasaki": "Kyushu",
    "Kumamoto": "Kyushu",
    "Oita": "Kyushu",
    "Miyazaki": "Kyushu",
    "Okinawa": "Okinawa",
}

_BREADCRUMB_LINKS = "nav[aria-label='breadcrumb'] a, .breadcrumb a"
_DESTINATION_SLUG = re.compile(r"/destinations/([^/]+)")
_THREE_PART_LOCATION = re.compile(r"([^,]+),\s*([^,]+)-gun,\s*([^-]+)-ken")
_TWO_PART_LOCATION = re.compile(r"([^,]+),\s*([^-]+)-ken")
_REGION_NAME = re.compile(rf"^({'|'.join(REGIONS)})$", re.IGNORECASE)

_CULTURE_NAME_WORDS = ("temple", "shrine", "festival")
_CULTURE_PAGE_WORDS = (
    "temple", "shrine", "kabuki", "festival", "matsuri", "cultural", "heritage",
    "historic", "kagura", "theatre", "theater", "shinto",
)
_NATURE_NAME_WORDS = ("park", "peninsula")
_NATURE_PAGE_WORDS = (
    "park", "nature", "mountain", "beach", "outdoor", "hiking", "natural beauty",
    "peninsula", "wild",
)
_FOOD_PAGE_WORDS = ("restaurant", "dining", "cuisine")
_SHOPPING_PAGE_WORDS = ("shopping", "market")


def slug_to_region(slug: str) -> str:
    for region in REGIONS:
        if region.lower() == slug:
            return region
    return slug[:1].upper() + slug[1:]


def breadcrumbs(soup: BeautifulSoup) -> list[str]:
    return [a.get_text().strip() for a in soup.select(_BREADCRUMB_LINKS)]


def extract_name(soup: BeautifulSoup) -> str:
    """見出しから観光地名を取り出す.

    JNTO の h1 は "Name 日本語名" 形式なので先頭の語だけを使う。
    先頭の語が 8 文字未満なら 2 語目まで含める（"Keichiku Kagura" など）。
    """
    h1_text = first_text(soup, "h1")
    if h1_text:
        words = h1_text.split()
        if len(words[0]) < 8 and len(words) > 1:
            return " ".join(words[:2])
        return words[0]

    og_title = soup.select_one('meta[property="og:title"]')
    if og_title is not None and og_title.get("content"):
        return og_title["content"]
    return first_text(soup, "title")


def extract_description(soup: BeautifulSoup) -> str:
    for selector in ('meta[property="og:description"]', 'meta[name="description"]'):
        meta = soup.select_one(selector)
        if meta is not None and meta.get("content"):
            return meta["content"]

    paragraph = first_text(soup, "main p, .content p, article p")
    if len(paragraph) > 50:
        return paragraph
    return ""


def extract_category(soup: BeautifulSoup, name: str, description: str) -> str:
    """詳細ページから標準カテゴリを決める.

    優先順: travel-directory リンク → キーワード欄 → 名称・本文 → パンくず
    """
    directory_link = soup.select_one('a[href*="travel-directory/"]')
    directory_text = directory_link.get_text().strip() if directory_link else ""
    if directory_text:
        return normalize_category(directory_text)

    keywords_text = " ".join(
        el.get_text(" ") for el in soup.select(".keywords, [class*='keyword'], [id*='keyword'], [data-keywords]")
    ).lower()
    if "festival" in keywords_text or "event" in keywords_text:
        return "culture"
    if "nature" in keywords_text or "outdoor" in keywords_text:
        return "nature"

    main_text = " ".join(el.get_text(" ") for el in soup.select("main, article"))
    page_text = f"{description} {main_text}".lower()
    name_lower = name.lower()

    if any(w in name_lower for w in _CULTURE_NAME_WORDS) or any(w in page_text for w in _CULTURE_PAGE_WORDS):
        return "culture"
    if any(w in name_lower for w in _NATURE_NAME_WORDS) or any(w in page_text for w in _NATURE_PAGE_WORDS):
        return "nature"
    if any(w in page_text for w in _FOOD_PAGE_WORDS):
        return "food"
    if any(w in page_text for w in _SHOPPING_PAGE_WORDS):
        return "shopping"

    crumbs = " ".join(breadcrumbs(soup)).lower()
    if any(w in crumbs for w in ("nature", "outdoor", "park")):
        return "nature"
    if any(w in crumbs for w in ("culture", "temple", "shrine", "festival", "event")):
        return "culture"
    if any(w in crumbs for w in ("food", "restaurant", "eat")):
        return "food"
    return "attraction"


def extract_prefecture_city(soup: BeautifulSoup) -> tuple[str, str]:
    """所在地の段落（"City, X-gun, Pref-ken" / "City, Pref-ken"）から (都道府県, 市区町村) を得る."""
    location_text = first_text(soup, 'p:-soup-contains(",")')
    if not location_text:
        return "", ""

    match = _THREE_PART_LOCATION.search(location_text)
    if match:
        return f"{match.group(3).strip()} Prefecture", match.group(1).strip()

    match = _TWO_PART_LOCATION.search(location_text)
    if match:
        return f"{match.group(2).strip()} Prefecture", match.group(1).strip()

    return "", ""


def infer_region_from_page(soup: BeautifulSoup, url: str) -> str:
    """URL・パンくず・地域表示・所在地の順に地方を推定する（不明なら Kanto）."""
    match = _DESTINATION_SLUG.search(url)
    if match:
        return slug_to_region(match.group(1))

    for crumb in breadcrumbs(soup):
        if crumb in REGIONS:
            return crumb

    region_text = first_text(soup, ".region, .area, [class*='region']")
    for region in REGIONS:
        if region in region_text:
            return region

    prefecture_text = first_text(soup, 'p:-soup-contains("Prefecture"), p:-soup-contains("-ken")')
    if prefecture_text:
        for prefecture, region in PREFECTURE_REGIONS.items():
            if prefecture in prefecture_text:
                return region

    return DEFAULT_REGION


class JntoScraper(SiteScraper):
    """spot/<id>/ を連番で巡回する JNTO スクレイパー.

    404（または見出しの無いページ）が 50 回続いたら打ち切る。
    """

    def __init__(self, context: PipelineContext | None = None, max_spot_id: int | None = None) -> None:
        super().__init__(ScraperConfig(
            name="jnto",
            base_url="https://www.japan.travel/en/",
            region="All",
            rate_limit=REGIONAL_RATE_LIMIT,
        ))
        self.context = context or PipelineContext()
        self.max_spot_id = max_spot_id
        self.seen_urls: set[str] = set()
        # 正規化名 -> URL。同名の別ページは除外しない（重複判定は DB 側の name+region で行う）
        self.seen_names: dict[str, set[str]] = {}
        self.skipped_duplicates = 0

    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        enable_db_dedup(self.context)

        self.logger.info("JNTO の spot ID 連番巡回を開始します")
        self._scrape_sequential_spot_ids(fetcher, collector)

        self.logger.info(
            "%d 件取得しました (%s)", collector.stats.successful_scrapes, self.name
        )
        if self.skipped_duplicates:
            self.logger.info("JNTO 内の重複 %d 件をスキップ", self.skipped_duplicates)
        return collector.locations

    def _resolve_max_spot_id(self) -> int:
        if self.max_spot_id is not None:
            return self.max_spot_id
        return JNTO_TEST_MAX_SPOT_ID if is_test_mode() else JNTO_MAX_SPOT_ID

    def _scrape_sequential_spot_ids(self, fetcher: Fetcher, collector: LocationCollector) -> None:
        max_spot_id = self._resolve_max_spot_id()
        progress_interval = 5 if max_spot_id <= JNTO_TEST_MAX_SPOT_ID else 100
        self.logger.info("spot ID 1〜%d を巡回中...", max_spot_id)

        misses = 0
        for spot_id in range(1, max_spot_id + 1):
            spot_url = f"{self.config.base_url}spot/{spot_id}/"
            if spot_url in self.seen_urls:
                self.skipped_duplicates += 1
                continue

            try:
                soup = fetcher.fetch_html(spot_url)
            except requests.RequestException as e:
                if not is_not_found(e):
                    self.logger.error("取得失敗: spot/%d/: %s", spot_id, e)
                    collector.record_failure()
                    continue
                soup = None

            h1_text = first_text(soup, "h1") if soup is not None else ""
            if not h1_text or "not found" in h1_text.lower():
                misses += 1
                if misses >= JNTO_MAX_CONSECUTIVE_MISSES:
                    self.logger.info(
                        "spot %d で終了 (404 が %d 回連続)", spot_id, JNTO_MAX_CONSECUTIVE_MISSES
                    )
                    break
                continue

            misses = 0

            if spot_id % progress_interval == 0:
                self.logger.info("進捗: %d/%d", spot_id, max_spot_id)

            try:
                self._scrape_detail_page(soup, spot_url, infer_region_from_page(soup, spot_url), collector)
            except Exception as e:
                self.logger.error("観光地ページのパース失敗: %s: %s", spot_url, e)
                collector.record_failure()

            fetcher.delay()

    def _mark_seen(self, url: str, name: str) -> None:
        self.seen_urls.add(url)
        self.seen_names.setdefault(normalize_name(name), set()).add(url)

    def _scrape_detail_page(
        self, soup: BeautifulSoup, url: str, region: str, collector: LocationCollector
    ) -> None:
        name = clean_text(extract_name(soup))
        if not name:
            self.logger.warning("名称が見つかりません: %s", url)
            return

        if url in self.seen_urls:
            self.skipped_duplicates += 1
            return

        description = clean_text(extract_description(soup))
        category = extract_category(soup, name, description)
        prefecture, city = extract_prefecture_city(soup)

        # パンくずは "地方 > 都道府県 > 市区町村"
        crumbs = breadcrumbs(soup)
        final_region = next((c for c in crumbs if c in REGIONS), region)
        if len(crumbs) >= 2:
            last = crumbs[-1]
            if not city and last and not _REGION_NAME.match(last):
                city = last
            if len(crumbs) >= 3 and not prefecture:
                prefecture = f"{crumbs[-2]} Prefecture"

        draft = LocationDraft(
            name=name,
            category=category,
            region=final_region,
            prefecture=prefecture or None,
            city=city or None,
            source_url=url,
            description=description or None,
        )

        result = is_known(self.context, draft)
        if result.is_duplicate:
            self.logger.info("重複のためスキップ: %s (%s)", name, result.reason)
            self.skipped_duplicates += 1
            return

        self._mark_seen(url, name)
        collector.add_location(draft)
        collector.record_success()


def build_from_env() -> JntoScraper:
    """環境変数に Supabase の設定があれば DB 重複チェック付きで作成する."""
    try:
        client = db.get_client()
    except ConfigError:
        client = None
    return JntoScraper(PipelineContext(client=client))


if __name__ == "__main__":
    from koku_pipeline.runner import main

    main(build_from_env)
