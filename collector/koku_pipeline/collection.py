"""スクレイピング結果の蓄積と統計集計."""

from __future__ import annotations

from datetime import datetime, timezone

from koku_pipeline.config import TEST_DATA_NOTE
from koku_pipeline.models import LocationDraft, ScrapedLocation, ScraperConfig, ScraperStats
from koku_pipeline.text_utils import is_valid_category, normalize_category


class LocationCollector:
    """1 回のスクレイピング実行で得た観光地と統計を保持する."""

    def __init__(self, config: ScraperConfig) -> None:
        self.config = config
        self.locations: list[ScrapedLocation] = []
        self.stats = ScraperStats()

    def add_location(self, draft: LocationDraft) -> ScrapedLocation:
        """出典・取得日時・注記を付与して追加し、件数を更新する."""
        category = draft.category
        if not is_valid_category(category):
            category = normalize_category(category)

        location = ScrapedLocation(
            name=draft.name,
            category=category,
            region=draft.region,
            source=self.config.name,
            source_url=draft.source_url,
            scraped_at=datetime.now(timezone.utc).isoformat(),
            note=TEST_DATA_NOTE,
            prefecture=draft.prefecture or None,
            city=draft.city or None,
            description=draft.description or None,
        )
        self.locations.append(location)

        stats = self.stats
        stats.total_locations += 1
        stats.category_counts[location.category] = stats.category_counts.get(location.category, 0) + 1
        if location.prefecture:
            stats.prefecture_counts[location.prefecture] = (
                stats.prefecture_counts.get(location.prefecture, 0) + 1
            )
        if location.city:
            stats.city_counts[location.city] = stats.city_counts.get(location.city, 0) + 1

        return location

    def record_success(self) -> None:
        self.stats.successful_scrapes += 1

    def record_failure(self) -> None:
        self.stats.failed_scrapes += 1

    def has_name(self, name: str) -> bool:
        return any(loc.name == name for loc in self.locations)

    def source_urls(self) -> set[str]:
        return {loc.source_url for loc in self.locations}
