"""JNTO スクレイピング結果の Supabase 投入 — エントリーポイント.

処理フロー:
  1. locations テーブルから重複判定用キャッシュを作成
  2. tmp/jnto-scraped.json を読み込み、登録済みの観光地を除外
  3. 生成 ID の重複を除いた上で 100 件ずつ一括挿入
     一意制約違反（23505）になったバッチは 1 件ずつ挿入し直す
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from postgrest.exceptions import APIError

from koku_pipeline import config, db
from koku_pipeline.dedup import check_duplicate, load_existing_locations, remember
from koku_pipeline.errors import PipelineError, SeedInputError
from koku_pipeline.log import setup_logging
from koku_pipeline.models import ExistingLocationCache, ScrapedLocation, SeedResult
from koku_pipeline.output import load_locations
from koku_pipeline.text_utils import generate_location_id

logger = logging.getLogger(__name__)

DEFAULT_INPUT = config.OUTPUT_DIR / "jnto-scraped.json"
SHORT_DESCRIPTION_LENGTH = 200
PROGRESS_INTERVAL = 50

# 後続のエンリッチ処理で埋めるカラム
_ENRICHMENT_COLUMNS = (
    "enrichment_confidence",
    "min_budget",
    "estimated_duration",
    "operating_hours",
    "recommended_visit",
    "preferred_transit_modes",
    "coordinates",
    "rating",
    "review_count",
    "place_id",
)


def transform_for_db(location: ScrapedLocation) -> dict[str, Any]:
    """ScrapedLocation を locations テーブルの行に変換する."""
    row: dict[str, Any] = {
        "id": generate_location_id(location.name, location.region),
        "name": location.name,
        "region": location.region,
        "city": location.city or location.prefecture or location.region,
        "category": location.category,
        "image": config.PLACEHOLDER_IMAGE,
        "prefecture": location.prefecture or None,
        "description": location.description or None,
        "seed_source": location.source,
        "seed_source_url": location.source_url,
        "scraped_at": location.scraped_at,
        "note": location.note,
        "timezone": "Asia/Tokyo",
        "short_description": (
            location.description[:SHORT_DESCRIPTION_LENGTH] if location.description else None
        ),
    }
    for column in _ENRICHMENT_COLUMNS:
        row[column] = None
    return row


def filter_new_locations(
    locations: list[ScrapedLocation],
    cache: ExistingLocationCache,
) -> tuple[list[ScrapedLocation], int]:
    """登録済みの観光地を除外する.

    Returns:
        (未登録の観光地, 除外件数)
    """
    fresh: list[ScrapedLocation] = []
    duplicates = 0
    for location in locations:
        check = check_duplicate(location, cache)
        if check.is_duplicate:
            duplicates += 1
            logger.debug("重複のためスキップ: %s (%s)", location.name, check.reason)
            continue
        fresh.append(location)
    return fresh, duplicates


def dedupe_ids(rows: list[dict[str, Any]]) -> tuple[list[dict[str, Any]], int]:
    """同じ id の行は最初の 1 件だけ残す.

    Returns:
        (一意な行, 除外件数)
    """
    seen: set[str] = set()
    unique: list[dict[str, Any]] = []
    for row in rows:
        if row["id"] in seen:
            continue
        seen.add(row["id"])
        unique.append(row)
    return unique, len(rows) - len(unique)


def _insert_one_by_one(
    client,
    batch: list[dict[str, Any]],
    result: SeedResult,
    cache: ExistingLocationCache | None,
    total: int,
) -> None:
    for row in batch:
        try:
            db.insert_rows(client, config.LOCATIONS_TABLE, [row])
        except APIError as e:
            if e.code == config.UNIQUE_VIOLATION:
                result.skipped_on_insert += 1
            else:
                result.failed += 1
                logger.error("挿入失敗: %s: %s", row["name"], e.message)
            continue

        result.inserted += 1
        if cache is not None:
            remember(cache, row)
        if result.inserted % PROGRESS_INTERVAL == 0:
            logger.info("挿入済み: %d/%d 件", result.inserted, total)


def insert_in_batches(
    client,
    rows: list[dict[str, Any]],
    batch_size: int = config.SEED_BATCH_SIZE,
    cache: ExistingLocationCache | None = None,
) -> SeedResult:
    """行を batch_size 件ずつ挿入する.

    一意制約違反のバッチは 1 件ずつ挿入し直し、衝突した行だけを
    skipped_on_insert に数える。それ以外のエラーはバッチ全件を failed とする。

    Args:
        client: Supabase クライアント
        rows: dedupe_ids() 済みの行
        batch_size: 1 回の INSERT の件数
        cache: 指定時は挿入できた行を追加する
    """
    result = SeedResult()
    total = len(rows)

    for start in range(0, total, batch_size):
        batch = rows[start : start + batch_size]
        try:
            db.insert_rows(client, config.LOCATIONS_TABLE, batch)
        except APIError as e:
            if e.code == config.UNIQUE_VIOLATION:
                logger.warning("バッチ %d で重複が発生したため 1 件ずつ挿入します", start)
                _insert_one_by_one(client, batch, result, cache, total)
            else:
                logger.error("バッチ挿入失敗: 開始位置 %d", start)
                logger.error("エラーメッセージ: %s", e.message)
                logger.error("エラーコード: %s", e.code)
                result.failed += len(batch)
            continue

        result.inserted += len(batch)
        if cache is not None:
            for row in batch:
                remember(cache, row)
        logger.info("挿入済み: %d/%d 件", result.inserted, total)

    return result


def read_scraped_file(path: Path) -> list[ScrapedLocation]:
    """スクレイピング結果 JSON を読み込む.

    Raises:
        SeedInputError: ファイルが無い、または JSON として読めない
    """
    logger.info("スクレイピング結果を読み込み中: %s", path)
    try:
        return load_locations(path)
    except (OSError, json.JSONDecodeError, KeyError) as e:
        raise SeedInputError(f"スクレイピング結果を読み込めません: {path} ({e})") from e


def seed_locations(client, path: Path) -> SeedResult:
    """スクレイピング結果ファイルを重複チェックしながら locations に投入する."""
    cache = load_existing_locations(client)

    locations = read_scraped_file(path)
    logger.info("スクレイピング済みの観光地: %d 件", len(locations))
    if not locations:
        logger.warning("スクレイピング結果に観光地がありません。挿入する対象はありません。")
        return SeedResult()

    fresh, duplicates = filter_new_locations(locations, cache)
    logger.info("重複 %d 件を除外", duplicates)

    rows, id_duplicates = dedupe_ids([transform_for_db(loc) for loc in fresh])
    if id_duplicates:
        logger.info("データ内で重複する ID %d 件を除外", id_duplicates)

    if not rows:
        logger.info("新規の観光地はありません。すべて登録済みです。")
        return SeedResult(duplicates=duplicates, skipped_on_insert=id_duplicates)

    logger.info("新規の観光地 %d 件を挿入します", len(rows))
    result = insert_in_batches(client, rows, cache=cache)
    result.duplicates = duplicates
    result.skipped_on_insert += id_duplicates
    return result


def log_seed_summary(result: SeedResult) -> None:
    logger.info("%d 件を挿入しました", result.inserted)
    if result.failed:
        logger.warning("%d 件の挿入に失敗しました", result.failed)
    if result.duplicates:
        logger.info("重複 %d 件をスキップ (事前チェック)", result.duplicates)
    if result.skipped_on_insert:
        logger.info("重複 %d 件をスキップ (挿入時)", result.skipped_on_insert)
    logger.info(
        "集計: 挿入 %d 件, 失敗 %d 件, 重複スキップ %d 件",
        result.inserted,
        result.failed,
        result.total_duplicates,
    )
    logger.info("注意: %s", config.TEST_DATA_NOTE)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="JNTO スクレイピング結果を locations テーブルに投入する")
    parser.add_argument("--file", type=Path, default=DEFAULT_INPUT, help="スクレイピング結果 JSON")
    args = parser.parse_args(argv)

    setup_logging("seed")
    logger.info("=== JNTO 観光地投入 開始 ===")

    try:
        client = db.get_client()
        result = seed_locations(client, args.file)
    except PipelineError as e:
        logger.error("投入を中止しました: %s", e)
        if isinstance(e, SeedInputError):
            logger.error("先にスクレイパーを実行してください: python -m koku_pipeline.sites.jnto")
        sys.exit(1)
    except Exception:
        logger.exception("JNTO 観光地の投入に失敗しました")
        sys.exit(1)

    log_seed_summary(result)
    logger.info("=== JNTO 観光地投入 完了 ===")


if __name__ == "__main__":
    main()
