"""単一スクレイパーの実行と結果保存."""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import Callable

from koku_pipeline import config
from koku_pipeline.collection import LocationCollector
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.log import setup_logging
from koku_pipeline.models import ScraperResult, ScraperStats
from koku_pipeline.output import write_scraper_artifacts
from koku_pipeline.sites.base import SiteScraper

logger = logging.getLogger(__name__)


def build_fetcher(site: SiteScraper) -> Fetcher:
    return Fetcher(
        user_agent=site.config.user_agent,
        rate_limit=site.config.rate_limit,
        log_prefix=f"[{site.name}] ",
    )


def run_scraper(
    site: SiteScraper,
    fetcher: Fetcher | None = None,
    out_dir: Path | None = None,
) -> ScraperResult:
    """スクレイパーを実行し、結果を JSON / TS に保存する.

    scrape() から送出された例外はログに残して再送出する。
    """
    cfg = site.config
    fetcher = fetcher or build_fetcher(site)
    collector = LocationCollector(cfg)
    start_time = time.time()

    logger.info("[%s] スクレイパー開始", cfg.name)
    logger.info("[%s] 対象: %s", cfg.name, cfg.base_url)
    logger.info("[%s] 地方: %s", cfg.name, cfg.region)
    logger.info("[%s] リクエスト間隔: %.1f 秒", cfg.name, cfg.rate_limit)

    try:
        site.scrape(fetcher, collector)
    except Exception:
        logger.exception("[%s] スクレイパーが異常終了しました", cfg.name)
        raise

    stats = collector.stats
    stats.duration = int((time.time() - start_time) * 1000)

    write_scraper_artifacts(cfg, collector.locations, stats, out_dir or config.OUTPUT_DIR)
    log_summary(cfg.name, stats)

    return ScraperResult(
        name=cfg.name,
        region=cfg.region,
        stats=stats,
        locations=collector.locations,
    )


def log_summary(name: str, stats: ScraperStats) -> None:
    """カテゴリ別・都道府県別の件数を多い順にログ出力する."""
    logger.info("=" * 60)
    logger.info("%s スクレイパー完了", name)
    logger.info("=" * 60)
    logger.info("観光地: %d 件", stats.total_locations)
    logger.info("所要時間: %.2f 秒", stats.duration / 1000)
    logger.info("カテゴリ別:")
    for category, count in sorted(stats.category_counts.items(), key=lambda kv: kv[1], reverse=True):
        logger.info("  %s: %d", category, count)

    if stats.prefecture_counts:
        logger.info("都道府県別:")
        for prefecture, count in sorted(
            stats.prefecture_counts.items(), key=lambda kv: kv[1], reverse=True
        ):
            logger.info("  %s: %d", prefecture, count)
    logger.info("=" * 60)


def main(site_factory: Callable[[], SiteScraper]) -> None:
    """サイトモジュールを単独実行する（python -m koku_pipeline.sites.<site>）."""
    site = site_factory()
    setup_logging(site.name)
    try:
        run_scraper(site)
    except Exception as e:
        logger.error("異常終了: %s", e)
        sys.exit(1)
