"""DB 登録済み観光地との重複判定.

判定は place_id → seed_source_url → 正規化名＋地方 の順に行い、
最初に一致した理由を返す。
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

from koku_pipeline import db
from koku_pipeline.config import LOCATIONS_TABLE
from koku_pipeline.models import DuplicateCheckResult, ExistingLocationCache, PipelineContext
from koku_pipeline.text_utils import normalize_name

logger = logging.getLogger(__name__)

CACHE_COLUMNS = "place_id, seed_source_url, name, region"


class LocationLike(Protocol):
    name: str
    region: str
    source_url: str


def remember(cache: ExistingLocationCache, row: dict[str, Any]) -> None:
    """DB の行（または投入直後の行）をキャッシュに加える."""
    if row.get("place_id"):
        cache.place_ids.add(row["place_id"])
    if row.get("seed_source_url"):
        cache.source_urls.add(row["seed_source_url"])
    if row.get("name") and row.get("region"):
        cache.name_regions.setdefault(normalize_name(row["name"]), set()).add(row["region"])


def build_cache(rows: Iterable[dict[str, Any]]) -> ExistingLocationCache:
    cache = ExistingLocationCache()
    for row in rows:
        remember(cache, row)
    return cache


def load_existing_locations(client) -> ExistingLocationCache:
    """locations テーブル全件から重複判定用キャッシュを作る."""
    logger.info("重複チェック用に登録済みの観光地を読み込み中...")
    rows = db.fetch_all(client, LOCATIONS_TABLE, CACHE_COLUMNS)
    cache = build_cache(rows)
    logger.info(
        "登録済みの観光地: %d 件 (place_id %d 件, URL %d 件)",
        len(rows),
        len(cache.place_ids),
        len(cache.source_urls),
    )
    return cache


def check_duplicate(
    location: LocationLike,
    cache: ExistingLocationCache,
    place_id: str | None = None,
) -> DuplicateCheckResult:
    """観光地が DB 登録済みかどうかを判定する.

    Args:
        location: name / region / source_url を持つ観光地
        cache: load_existing_locations() で作ったキャッシュ
        place_id: Google Place ID（分かっている場合）

    Returns:
        重複なら理由付きの DuplicateCheckResult
    """
    if place_id and place_id in cache.place_ids:
        return DuplicateCheckResult(True, "place_id exists")

    if location.source_url and location.source_url in cache.source_urls:
        return DuplicateCheckResult(True, "source_url exists")

    regions = cache.name_regions.get(normalize_name(location.name))
    if regions and location.region in regions:
        return DuplicateCheckResult(True, "name+region exists")

    return DuplicateCheckResult(False)


def enable_db_dedup(context: PipelineContext) -> None:
    """コンテキストのクライアントで既存データを読み込み、DB 重複チェックを有効にする.

    クライアントが無い場合や読み込みに失敗した場合は警告を出して無効のままにする。
    """
    if context.client is None:
        logger.warning("Supabase クライアントが未設定のため、DB 重複チェックを無効にします")
        context.dedup_enabled = False
        return

    try:
        context.existing_cache = load_existing_locations(context.client)
    except Exception as e:
        logger.warning("登録済みの観光地を読み込めないため、DB 重複チェックを無効にします: %s", e)
        context.dedup_enabled = False
        return

    context.dedup_enabled = True


def is_known(context: PipelineContext, location: LocationLike, place_id: str | None = None) -> DuplicateCheckResult:
    """コンテキストで DB 重複チェックが有効なときだけ check_duplicate する."""
    if not context.dedup_enabled:
        return DuplicateCheckResult(False)
    return check_duplicate(location, context.existing_cache, place_id)
