"""locations.prefecture の表記ゆれを正規化する — エントリーポイント.

"Aichi" と "Aichi-ken"、"Kyoto" と "Kyoto-fu" のように
データソースごとに異なる表記を接尾辞なしの名称に揃える。

  python -m koku_pipeline.normalize_prefectures            # 変更内容の確認のみ（既定）
  python -m koku_pipeline.normalize_prefectures --execute  # 実際に更新する
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter

from koku_pipeline import config, db
from koku_pipeline.errors import PipelineError
from koku_pipeline.log import setup_logging
from koku_pipeline.models import PrefectureGroup, PrefectureVariant
from koku_pipeline.text_utils import normalize_prefecture

logger = logging.getLogger(__name__)


def fetch_prefecture_counts(client) -> dict[str, int]:
    """prefecture の値ごとの件数を返す（NULL・空文字は除く）."""
    rows = db.fetch_all(client, config.LOCATIONS_TABLE, "prefecture")
    return dict(Counter(row["prefecture"] for row in rows if row.get("prefecture")))


def group_prefectures(counts: dict[str, int]) -> list[PrefectureGroup]:
    """正規化後の名称でまとめる.

    各グループの variants は正規化済みの表記を先頭に、残りを件数の多い順に並べる。
    グループは正規化後の名称順。
    """
    groups: dict[str, PrefectureGroup] = {}
    for prefecture, count in counts.items():
        normalized = normalize_prefecture(prefecture)
        group = groups.setdefault(normalized, PrefectureGroup(normalized=normalized))
        group.variants.append(PrefectureVariant(original=prefecture, count=count))
        group.total_count += count

    for group in groups.values():
        group.variants.sort(key=lambda v: (v.original != group.normalized, -v.count))

    return sorted(groups.values(), key=lambda g: g.normalized.lower())


def update_prefecture(client, old: str, new: str) -> int:
    """prefecture = old の行を new に書き換え、更新件数を返す."""
    return db.update_where(client, config.LOCATIONS_TABLE, {"prefecture": new}, "prefecture", old)


def log_groups(groups: list[PrefectureGroup]) -> int:
    """更新対象のグループを出力し、更新される行数を返す."""
    to_update = 0
    for group in groups:
        logger.info('"%s" (%d 件)', group.normalized, group.total_count)
        for variant in group.variants:
            if variant.original == group.normalized:
                logger.info('  - "%s": %d 件 (正規形)', variant.original, variant.count)
            else:
                logger.info('  - "%s": %d 件 → 更新対象', variant.original, variant.count)
                to_update += variant.count
    return to_update


def apply_updates(client, groups: list[PrefectureGroup]) -> tuple[int, list[str]]:
    """表記ゆれを正規形に更新する.

    Returns:
        (更新件数, エラーメッセージのリスト)
    """
    updated = 0
    errors: list[str] = []
    for group in groups:
        for variant in group.variants:
            if variant.original == group.normalized:
                continue
            logger.info('Updating "%s" → "%s"...', variant.original, group.normalized)
            try:
                count = update_prefecture(client, variant.original, group.normalized)
            except Exception as e:
                errors.append(f'Failed to update "{variant.original}": {e}')
                logger.error("  エラー: %s", e)
                continue
            updated += count
            logger.info("  %d 件更新", count)
    return updated, errors


def run(client, execute: bool) -> int:
    """正規化を実行し、残った表記ゆれグループ数を返す（dry-run 時は対象グループ数）."""
    logger.info("都道府県名を全件取得中...")
    counts = fetch_prefecture_counts(client)
    logger.info("都道府県名の種類: %d", len(counts))

    targets = [g for g in group_prefectures(counts) if g.needs_update]
    if not targets:
        logger.info("表記ゆれはありません。すべて正規化済みです。")
        return 0

    to_update = log_groups(targets)
    logger.info("対象グループ: %d / 更新予定: %d 件", len(targets), to_update)

    if not execute:
        logger.info("DRY RUN のため変更していません。--execute で更新します。")
        return len(targets)

    updated, errors = apply_updates(client, targets)
    logger.info("更新件数合計: %d", updated)
    for err in errors:
        logger.error("  - %s", err)

    logger.info("更新結果を確認中...")
    remaining = [g for g in group_prefectures(fetch_prefecture_counts(client)) if g.needs_update]
    if remaining:
        logger.warning("%d グループに未正規化の表記が残っています", len(remaining))
    else:
        logger.info("すべての都道府県名が正規化されました")
    return len(remaining)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="都道府県名の表記ゆれを正規化する")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="変更内容の確認のみ（既定）")
    mode.add_argument("--execute", action="store_true", help="実際に更新する")
    args = parser.parse_args(argv)

    setup_logging("normalize_prefectures")
    logger.info("=== 都道府県名の正規化 開始 (%s) ===", "EXECUTE" if args.execute else "DRY RUN")

    try:
        run(db.get_client(), execute=args.execute)
    except PipelineError as e:
        logger.error("%s", e)
        sys.exit(1)
    except Exception:
        logger.exception("都道府県名の正規化に失敗しました")
        sys.exit(1)

    logger.info("=== 都道府県名の正規化 完了 ===")


if __name__ == "__main__":
    main()
