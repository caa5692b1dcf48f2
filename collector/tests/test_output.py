"""output モジュールのテスト."""

import json

from koku_pipeline.models import CombinedStats, ScrapedLocation, ScraperResult, ScraperStats
from koku_pipeline.output import load_locations, write_combined_artifacts


def _location(name, region):
    return ScrapedLocation(
        name=name,
        category="culture",
        region=region,
        source="test_site",
        source_url=f"https://example.com/{name}",
        scraped_at="2026-10-01T00:00:00+00:00",
        note="TEST DATA - DELETE BEFORE LAUNCH",
        prefecture="Okinawa",
    )


class TestWriteCombinedArtifacts:
    """write_combined_artifacts のテスト."""

    def test_json_and_ts(self, tmp_path):
        locations = [_location("Shurijo Castle", "Okinawa")]
        results = [ScraperResult(name="okinawa_tourism", region="Okinawa", stats=ScraperStats(), locations=locations)]
        combined = CombinedStats(total_locations=1, total_scrapers=1, successful_scrapers=1, total_duration=1500)

        json_path, ts_path = write_combined_artifacts(results, locations, combined, tmp_path)

        data = json.loads(json_path.read_text(encoding="utf-8"))
        assert json_path.name == "all-scraped-locations.json"
        assert data["metadata"]["totalLocations"] == 1
        assert data["stats"]["successfulScrapers"] == 1
        assert data["locations"][0]["name"] == "Shurijo Castle"
        assert "city" not in data["locations"][0]

        ts = ts_path.read_text(encoding="utf-8")
        assert "export const ALL_SCRAPED_LOCATIONS" in ts
        assert 'export const OKINAWA_LOCATIONS = ALL_SCRAPED_LOCATIONS.filter(loc => loc.region === "Okinawa");' in ts
        assert "Duration: 1.50s" in ts

    def test_load_locations(self, tmp_path):
        locations = [_location("Shurijo Castle", "Okinawa")]
        json_path, _ = write_combined_artifacts([], locations, CombinedStats(), tmp_path)

        loaded = load_locations(json_path)

        assert loaded == locations
