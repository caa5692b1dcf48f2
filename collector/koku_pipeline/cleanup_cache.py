"""存在しない観光地を指す place_details キャッシュを削除する — エントリーポイント."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable

from koku_pipeline import config, db
from koku_pipeline.errors import PipelineError
from koku_pipeline.log import setup_logging

logger = logging.getLogger(__name__)

DELETE_CHUNK_SIZE = 100


def find_orphaned_location_ids(location_ids: Iterable[str], cached_ids: Iterable[str]) -> list[str]:
    """キャッシュにあって locations に無い location_id を返す（ソート済み）."""
    return sorted(set(cached_ids) - set(location_ids))


def cleanup_place_details(client, dry_run: bool = False) -> int:
    """孤立したキャッシュ行を削除し、対象の location_id 数を返す."""
    location_ids = [row["id"] for row in db.fetch_all(client, config.LOCATIONS_TABLE, "id")]
    cached_ids = [
        row["location_id"]
        for row in db.fetch_all(client, config.PLACE_DETAILS_TABLE, "location_id")
        if row.get("location_id")
    ]
    logger.info("locations: %d 件 / place_details: %d 件", len(location_ids), len(cached_ids))

    orphans = find_orphaned_location_ids(location_ids, cached_ids)
    logger.info("孤立したキャッシュ: %d 件", len(orphans))
    if not orphans or dry_run:
        for location_id in orphans[:10]:
            logger.info("  - %s", location_id)
        return len(orphans)

    deleted = 0
    for start in range(0, len(orphans), DELETE_CHUNK_SIZE):
        chunk = orphans[start : start + DELETE_CHUNK_SIZE]
        deleted += db.delete_where_in(client, config.PLACE_DETAILS_TABLE, "location_id", chunk)
    logger.info("%d 行を削除しました", deleted)
    return len(orphans)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="孤立した place_details キャッシュを削除する")
    parser.add_argument("--dry-run", action="store_true", help="削除対象の確認のみ")
    args = parser.parse_args(argv)

    setup_logging("cleanup_cache")
    logger.info("=== place_details キャッシュ整理 開始 ===")

    try:
        cleanup_place_details(db.get_client(), dry_run=args.dry_run)
    except PipelineError as e:
        logger.error("%s", e)
        sys.exit(1)
    except Exception:
        logger.exception("キャッシュ整理に失敗しました")
        sys.exit(1)

    logger.info("=== place_details キャッシュ整理 完了 ===")


if __name__ == "__main__":
    main()
