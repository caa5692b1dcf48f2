"""エンリッチ済みデータの表示名で locations.name を更新する — エントリーポイント.

tmp/enriched-locations.json の googleDisplayName を優先し、
空または日本語表記の場合はスクレイピング時の名称を使う。
名称を変えた観光地は place_details のキャッシュを削除して再取得させる。
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from koku_pipeline import config, db
from koku_pipeline.errors import PipelineError, SeedInputError
from koku_pipeline.log import setup_logging
from koku_pipeline.text_utils import contains_japanese, generate_location_id

logger = logging.getLogger(__name__)

DEFAULT_INPUT = config.OUTPUT_DIR / "enriched-locations.json"


def choose_display_name(entry: dict[str, Any]) -> str:
    """googleDisplayName が英字表記ならそれを、そうでなければスクレイピング時の名称を返す."""
    display = (entry.get("googleDisplayName") or "").strip()
    if not display or contains_japanese(display):
        return entry["name"]
    return display


def load_enriched(path: Path) -> list[dict[str, Any]]:
    """エンリッチ済み JSON の locations を読み込む.

    Raises:
        SeedInputError: ファイルが無い、または JSON として読めない
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SeedInputError(f"エンリッチ済みデータを読み込めません: {path} ({e})") from e
    return data.get("locations") or []


def update_location_names(client, entries: list[dict[str, Any]], dry_run: bool = False) -> int:
    """名称が変わる観光地を更新し、更新件数を返す.

    dry_run のときは更新対象をログに出すだけで DB は変更しない。
    """
    updated = 0
    for entry in entries:
        new_name = choose_display_name(entry)
        if new_name == entry["name"]:
            continue

        location_id = generate_location_id(entry["name"], entry["region"])
        if dry_run:
            logger.info("[DRY RUN] %s: %s → %s", location_id, entry["name"], new_name)
            updated += 1
            continue

        try:
            count = db.update_where(client, config.LOCATIONS_TABLE, {"name": new_name}, "id", location_id)
        except Exception as e:
            logger.error("更新失敗: %s: %s", location_id, e)
            continue
        if count == 0:
            logger.warning("該当する観光地がありません: %s (%s)", location_id, entry["name"])
            continue

        # 名称が変わったので詳細キャッシュは作り直させる
        db.delete_where(client, config.PLACE_DETAILS_TABLE, "location_id", location_id)
        updated += 1
        logger.info("Updated %s: %s → %s", location_id, entry["name"], new_name)

    return updated


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="エンリッチ済みの表示名で観光地名を更新する")
    parser.add_argument("--file", type=Path, default=DEFAULT_INPUT, help="エンリッチ済み JSON")
    parser.add_argument("--dry-run", action="store_true", help="更新内容の確認のみ")
    args = parser.parse_args(argv)

    setup_logging("update_names")
    logger.info("=== 観光地名の更新 開始 ===")

    try:
        entries = load_enriched(args.file)
        logger.info("%d 件のエンリッチ済みデータを読み込みました", len(entries))
        client = None if args.dry_run else db.get_client()
        updated = update_location_names(client, entries, dry_run=args.dry_run)
    except PipelineError as e:
        logger.error("%s", e)
        sys.exit(1)
    except Exception:
        logger.exception("観光地名の更新に失敗しました")
        sys.exit(1)

    logger.info("=== 観光地名の更新 完了: %d 件 ===", updated)


if __name__ == "__main__":
    main()
