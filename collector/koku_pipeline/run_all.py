"""全地域スクレイパーの一括実行 — エントリーポイント.

処理フロー:
  1. 8 地域（--jnto 指定時は JNTO も）のスクレイパーを順番に実行
  2. 各スクレイパーの結果を tmp/<name>-scraped.{json,ts} に保存
  3. 全結果を tmp/all-scraped-locations.{json,ts} にまとめる
  4. 地域別・カテゴリ別・都道府県別のサマリを出力

1 つでも失敗したスクレイパーがあれば終了コード 1 で終わる。
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Callable

from koku_pipeline import config
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.log import setup_logging
from koku_pipeline.models import CombinedStats, ScrapedLocation, ScraperResult, ScraperStats, ScraperSummary
from koku_pipeline.output import write_combined_artifacts
from koku_pipeline.runner import build_fetcher, run_scraper
from koku_pipeline.sites.base import SiteScraper
from koku_pipeline.sites.central_japan import CentralJapanScraper
from koku_pipeline.sites.chugoku import ChugokuScraper
from koku_pipeline.sites.hokkaido import HokkaidoScraper
from koku_pipeline.sites.jnto import build_from_env
from koku_pipeline.sites.kansai import KansaiScraper
from koku_pipeline.sites.kyushu import KyushuScraper
from koku_pipeline.sites.okinawa import OkinawaScraper
from koku_pipeline.sites.shikoku import ShikokuScraper
from koku_pipeline.sites.tohoku import TohokuScraper

logger = logging.getLogger(__name__)

# 実行順
SCRAPERS: list[Callable[[], SiteScraper]] = [
    HokkaidoScraper,
    TohokuScraper,
    CentralJapanScraper,
    KansaiScraper,
    ChugokuScraper,
    ShikokuScraper,
    KyushuScraper,
    OkinawaScraper,
]


def build_sites(include_jnto: bool = False) -> list[SiteScraper]:
    sites = [factory() for factory in SCRAPERS]
    if include_jnto:
        sites.append(build_from_env())
    return sites


def collect_locations(results: list[ScraperResult]) -> list[ScrapedLocation]:
    locations: list[ScrapedLocation] = []
    for result in results:
        locations.extend(result.locations)
    return locations


def combine_results(results: list[ScraperResult], total_duration: int) -> CombinedStats:
    """スクレイパー単位の結果を合算する.

    Args:
        results: 実行順の ScraperResult
        total_duration: 全体の所要時間（ミリ秒）
    """
    combined = CombinedStats(
        total_scrapers=len(results),
        successful_scrapers=sum(1 for r in results if r.error is None),
        failed_scrapers=sum(1 for r in results if r.error is not None),
        total_duration=total_duration,
    )

    for location in collect_locations(results):
        combined.total_locations += 1
        combined.category_counts[location.category] = combined.category_counts.get(location.category, 0) + 1
        combined.region_counts[location.region] = combined.region_counts.get(location.region, 0) + 1
        if location.prefecture:
            combined.prefecture_counts[location.prefecture] = (
                combined.prefecture_counts.get(location.prefecture, 0) + 1
            )

    combined.scraper_results = [
        ScraperSummary(
            name=r.name,
            region=r.region,
            location_count=len(r.locations),
            duration=r.stats.duration,
            success=r.error is None,
        )
        for r in results
    ]
    return combined


def run_all_scrapers(
    sites: list[SiteScraper],
    fetcher_factory: Callable[[SiteScraper], Fetcher] = build_fetcher,
    out_dir: Path | None = None,
) -> tuple[list[ScraperResult], CombinedStats]:
    """スクレイパーを 1 つずつ順番に実行する.

    失敗したスクレイパーは error 付きの空の結果として記録し、次へ進む。
    """
    start_time = time.time()
    results: list[ScraperResult] = []

    for site in sites:
        logger.info("-" * 60)
        logger.info("%s スクレイパー実行中...", site.name)
        logger.info("-" * 60)
        try:
            result = run_scraper(site, fetcher_factory(site), out_dir)
        except Exception as e:
            logger.error("%s スクレイパー失敗: %s", site.name, e)
            result = ScraperResult(
                name=site.name,
                region=site.config.region,
                stats=ScraperStats(),
                locations=[],
                error=str(e),
            )
        else:
            logger.info("%s 完了: %d 件", site.name, len(result.locations))
        results.append(result)

    combined = combine_results(results, int((time.time() - start_time) * 1000))
    return results, combined


def log_combined_summary(combined: CombinedStats) -> None:
    logger.info("=" * 60)
    logger.info("全スクレイパー完了")
    logger.info("=" * 60)
    logger.info("観光地合計: %d 件", combined.total_locations)
    logger.info("成功したスクレイパー: %d/%d", combined.successful_scrapers, combined.total_scrapers)
    logger.info("失敗したスクレイパー: %d", combined.failed_scrapers)
    logger.info("合計所要時間: %.2f 秒", combined.total_duration / 1000)

    logger.info("地方別の結果:")
    for summary in combined.scraper_results:
        status = "OK  " if summary.success else "FAIL"
        logger.info(
            "  %s %-20s %4d 件  (%.1f 秒)",
            status, summary.name, summary.location_count, summary.duration / 1000,
        )

    logger.info("カテゴリ分布:")
    for category, count in sorted(combined.category_counts.items(), key=lambda kv: kv[1], reverse=True):
        percentage = count / combined.total_locations * 100 if combined.total_locations else 0.0
        logger.info("  %-15s %4d (%.1f%%)", category, count, percentage)

    if combined.prefecture_counts:
        logger.info("都道府県 上位 10:")
        top = sorted(combined.prefecture_counts.items(), key=lambda kv: kv[1], reverse=True)[:10]
        for prefecture, count in top:
            logger.info("  %-20s %4d 件", prefecture, count)

    logger.info("=" * 60)
    logger.info("注意: %s", config.TEST_DATA_NOTE)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="全地域の観光サイトをスクレイピングする")
    parser.add_argument("--jnto", action="store_true", help="JNTO スクレイパーも実行する")
    args = parser.parse_args(argv)

    setup_logging("run_all")
    logger.info("=== 観光地データ収集 開始 ===")

    sites = build_sites(include_jnto=args.jnto)
    logger.info("対象スクレイパー: %d 件", len(sites))

    results, combined = run_all_scrapers(sites)

    json_path, ts_path = write_combined_artifacts(
        results, collect_locations(results), combined, config.OUTPUT_DIR
    )
    log_combined_summary(combined)
    logger.info("出力: %s, %s", json_path, ts_path)
    logger.info("=== 観光地データ収集 完了 ===")

    if combined.failed_scrapers > 0:
        logger.error("%d 件のスクレイパーが失敗しました。ログを確認してください。", combined.failed_scrapers)
        sys.exit(1)


if __name__ == "__main__":
    main()
