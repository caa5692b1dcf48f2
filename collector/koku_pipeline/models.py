"""データモデル定義."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class LocationDraft:
    """スクレイパーが抽出した直後の観光地（出典・取得日時の付与前）."""

    name: str
    category: str  # culture, attraction, nature, food, shopping, hotel
    region: str  # Hokkaido, Tohoku, Chubu など
    source_url: str
    prefecture: str | None = None
    city: str | None = None
    description: str | None = None


@dataclass
class ScrapedLocation:
    """全スクレイパー共通の出力レコード."""

    name: str
    category: str
    region: str
    source: str  # 例: "hokkaido_dmo"
    source_url: str
    scraped_at: str  # ISO 8601
    note: str  # "TEST DATA - DELETE BEFORE LAUNCH"
    prefecture: str | None = None
    city: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON 出力用の dict（キーは camelCase、未設定の任意項目は省略）."""
        data: dict[str, Any] = {
            "name": self.name,
            "category": self.category,
            "region": self.region,
        }
        if self.prefecture:
            data["prefecture"] = self.prefecture
        if self.city:
            data["city"] = self.city
        data["source"] = self.source
        data["sourceUrl"] = self.source_url
        if self.description:
            data["description"] = self.description
        data["scrapedAt"] = self.scraped_at
        data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScrapedLocation:
        return cls(
            name=data["name"],
            category=data["category"],
            region=data.get("region", ""),
            source=data.get("source", ""),
            source_url=data.get("sourceUrl", ""),
            scraped_at=data.get("scrapedAt", ""),
            note=data.get("note", ""),
            prefecture=data.get("prefecture"),
            city=data.get("city"),
            description=data.get("description"),
        )


@dataclass
class ScraperConfig:
    """スクレイパーごとの接続設定."""

    name: str
    base_url: str
    region: str
    rate_limit: float = 1.5  # リクエスト間隔（秒）
    user_agent: str | None = None


@dataclass
class ScraperStats:
    """1 回の実行で集計する統計値."""

    total_locations: int = 0
    successful_scrapes: int = 0
    failed_scrapes: int = 0
    category_counts: dict[str, int] = field(default_factory=dict)
    prefecture_counts: dict[str, int] = field(default_factory=dict)
    city_counts: dict[str, int] = field(default_factory=dict)
    duration: int = 0  # ミリ秒

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalLocations": self.total_locations,
            "successfulScrapes": self.successful_scrapes,
            "failedScrapes": self.failed_scrapes,
            "categoryCounts": self.category_counts,
            "prefectureCounts": self.prefecture_counts,
            "cityCounts": self.city_counts,
            "duration": self.duration,
        }


@dataclass
class ScraperResult:
    """オーケストレーターが保持するスクレイパー単位の結果."""

    name: str
    region: str
    stats: ScraperStats
    locations: list[ScrapedLocation]
    error: str | None = None


@dataclass
class ScraperSummary:
    name: str
    region: str
    location_count: int
    duration: int
    success: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "region": self.region,
            "locationCount": self.location_count,
            "duration": self.duration,
            "success": self.success,
        }


@dataclass
class CombinedStats:
    """全スクレイパーを合算した統計値."""

    total_locations: int = 0
    total_scrapers: int = 0
    successful_scrapers: int = 0
    failed_scrapers: int = 0
    total_duration: int = 0  # ミリ秒
    category_counts: dict[str, int] = field(default_factory=dict)
    region_counts: dict[str, int] = field(default_factory=dict)
    prefecture_counts: dict[str, int] = field(default_factory=dict)
    scraper_results: list[ScraperSummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalLocations": self.total_locations,
            "totalScrapers": self.total_scrapers,
            "successfulScrapers": self.successful_scrapers,
            "failedScrapers": self.failed_scrapers,
            "totalDuration": self.total_duration,
            "categoryCounts": self.category_counts,
            "regionCounts": self.region_counts,
            "prefectureCounts": self.prefecture_counts,
            "scraperResults": [s.to_dict() for s in self.scraper_results],
        }


@dataclass
class ExistingLocationCache:
    """DB 登録済み観光地の重複判定用スナップショット."""

    place_ids: set[str] = field(default_factory=set)
    source_urls: set[str] = field(default_factory=set)
    name_regions: dict[str, set[str]] = field(default_factory=dict)  # 正規化名 -> 地方


@dataclass
class DuplicateCheckResult:
    is_duplicate: bool
    reason: str | None = None


@dataclass
class PipelineContext:
    """DB 重複チェックの有無と接続先をまとめて受け渡すコンテキスト."""

    client: Any = None  # supabase.Client
    existing_cache: ExistingLocationCache = field(default_factory=ExistingLocationCache)
    dedup_enabled: bool = False


@dataclass
class SeedResult:
    """シード投入の結果."""

    inserted: int = 0
    failed: int = 0
    duplicates: int = 0  # 事前チェックで除外した件数
    skipped_on_insert: int = 0  # ID 重複・一意制約違反で除外した件数

    @property
    def total_duplicates(self) -> int:
        return self.duplicates + self.skipped_on_insert


@dataclass
class PrefectureVariant:
    original: str
    count: int


@dataclass
class PrefectureGroup:
    """正規化後の都道府県名と、それにまとめられる表記ゆれ."""

    normalized: str
    variants: list[PrefectureVariant] = field(default_factory=list)
    total_count: int = 0

    @property
    def needs_update(self) -> bool:
        return any(v.original != self.normalized for v in self.variants)
