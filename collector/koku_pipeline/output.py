"""スクレイピング結果のファイル出力（JSON / TypeScript）."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from koku_pipeline.models import CombinedStats, ScrapedLocation, ScraperConfig, ScraperResult, ScraperStats

logger = logging.getLogger(__name__)

COMBINED_BASENAME = "all-scraped-locations"

_TS_INTERFACE = """export interface ScrapedLocation {
  name: string;
  category: string;
  region: string;
  prefecture?: string;
  city?: string;
  source: string;
  sourceUrl: string;
  description?: string;
  scrapedAt: string;
  note: string;
}"""


def _dump(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def _constant_name(value: str) -> str:
    return re.sub(r"[^A-Z0-9]+", "_", value.upper()).strip("_")


def save_json(path: Path, payload: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_dump(payload), encoding="utf-8")
    return path


def write_scraper_artifacts(
    config: ScraperConfig,
    locations: list[ScrapedLocation],
    stats: ScraperStats,
    out_dir: Path,
) -> tuple[Path, Path]:
    """スクレイパー単位の結果を <name>-scraped.json / .ts に書き出す.

    Returns:
        (json_path, ts_path)
    """
    scraped_at = datetime.now(timezone.utc).isoformat()
    records = [loc.to_dict() for loc in locations]

    json_path = save_json(
        out_dir / f"{config.name}-scraped.json",
        {
            "metadata": {
                "scraper": config.name,
                "region": config.region,
                "baseUrl": config.base_url,
                "scrapedAt": scraped_at,
                "totalLocations": len(locations),
            },
            "locations": records,
            "stats": stats.to_dict(),
        },
    )
    logger.info("[%s] %d 件を保存: %s", config.name, len(locations), json_path)

    const = _constant_name(config.name)
    ts_content = f"""/**
 * Scraped locations from {config.name}
 * Region: {config.region}
 * Source: {config.base_url}
 * Scraped: {scraped_at}
 * Total: {len(locations)} locations
 *
 * TEST DATA ONLY - DELETE BEFORE LAUNCH
 */

{_TS_INTERFACE}

export const {const}_LOCATIONS: ScrapedLocation[] = {_dump(records)};

export const {const}_STATS = {_dump(stats.to_dict())};
"""
    ts_path = out_dir / f"{config.name}-scraped.ts"
    ts_path.write_text(ts_content, encoding="utf-8")
    logger.info("[%s] TypeScript ファイルを保存: %s", config.name, ts_path)

    return json_path, ts_path


def write_combined_artifacts(
    results: list[ScraperResult],
    locations: list[ScrapedLocation],
    combined: CombinedStats,
    out_dir: Path,
) -> tuple[Path, Path]:
    """全スクレイパーの結果を all-scraped-locations.json / .ts に書き出す."""
    scraped_at = datetime.now(timezone.utc).isoformat()
    records = [loc.to_dict() for loc in locations]

    json_path = save_json(
        out_dir / f"{COMBINED_BASENAME}.json",
        {
            "metadata": {
                "scrapedAt": scraped_at,
                "totalScrapers": combined.total_scrapers,
                "successfulScrapers": combined.successful_scrapers,
                "failedScrapers": combined.failed_scrapers,
                "totalLocations": combined.total_locations,
                "totalDuration": combined.total_duration,
            },
            "stats": combined.to_dict(),
            "locations": records,
        },
    )

    region_exports = "\n".join(
        f"export const {_constant_name(r.region)}_LOCATIONS = "
        f'ALL_SCRAPED_LOCATIONS.filter(loc => loc.region === "{r.region}");'
        for r in results
    )
    ts_content = f"""/**
 * Combined scraped locations from all Japan DMO websites
 *
 * Total Locations: {combined.total_locations}
 * Successful Scrapers: {combined.successful_scrapers}/{combined.total_scrapers}
 * Scraped: {scraped_at}
 * Duration: {combined.total_duration / 1000:.2f}s
 *
 * TEST DATA ONLY - DELETE BEFORE LAUNCH
 */

{_TS_INTERFACE}

export const ALL_SCRAPED_LOCATIONS: ScrapedLocation[] = {_dump(records)};

export const SCRAPING_STATS = {_dump(combined.to_dict())};

// Export by region
{region_exports}
"""
    ts_path = out_dir / f"{COMBINED_BASENAME}.ts"
    ts_path.write_text(ts_content, encoding="utf-8")

    return json_path, ts_path


def load_locations(path: Path) -> list[ScrapedLocation]:
    """スクレイピング結果 JSON から locations を読み込む.

    Raises:
        OSError: ファイルを開けない
        ValueError: JSON として解析できない
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    return [ScrapedLocation.from_dict(item) for item in data.get("locations") or []]
