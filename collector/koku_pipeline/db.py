"""Supabase データベース操作モジュール.

locations / place_details テーブル（public スキーマ）を扱う。
各関数は呼び出し側から supabase Client を受け取る。
"""

from __future__ import annotations

import logging
from typing import Any

from supabase import Client, create_client

from koku_pipeline.config import PAGE_SIZE, require_supabase_env

logger = logging.getLogger(__name__)


def get_client() -> Client:
    """サービスロールキーで Supabase クライアントを作成する.

    Raises:
        ConfigError: 接続用の環境変数が未設定
    """
    url, key = require_supabase_env()
    return create_client(url, key)


def _table(client: Client, name: str):
    return client.table(name)


def fetch_all(client: Client, table: str, columns: str, page_size: int = PAGE_SIZE) -> list[dict[str, Any]]:
    """テーブル全件を page_size 件ずつページングして取得する.

    Args:
        client: Supabase クライアント
        table: テーブル名
        columns: select するカラム（"id, name" 形式）
        page_size: 1 リクエストあたりの取得件数

    Returns:
        取得した行のリスト
    """
    rows: list[dict[str, Any]] = []
    offset = 0
    while True:
        resp = (
            _table(client, table)
            .select(columns)
            .range(offset, offset + page_size - 1)
            .execute()
        )
        page = resp.data or []
        rows.extend(page)
        if len(page) < page_size:
            break
        offset += page_size
    return rows


def insert_rows(client: Client, table: str, rows: list[dict[str, Any]]) -> None:
    """行を一括挿入する.

    Raises:
        postgrest.exceptions.APIError: 一意制約違反（code 23505）など
    """
    if not rows:
        return
    _table(client, table).insert(rows).execute()
    logger.info("%s に %d 件挿入", table, len(rows))


def update_where(client: Client, table: str, values: dict[str, Any], column: str, value: Any) -> int:
    """column = value の行を更新し、更新件数を返す."""
    resp = _table(client, table).update(values).eq(column, value).execute()
    return len(resp.data or [])


def delete_where_in(client: Client, table: str, column: str, values: list[Any]) -> int:
    """column が values のいずれかに一致する行を削除し、削除件数を返す."""
    if not values:
        return 0
    resp = _table(client, table).delete().in_(column, values).execute()
    return len(resp.data or [])


def delete_where(client: Client, table: str, column: str, value: Any) -> int:
    resp = _table(client, table).delete().eq(column, value).execute()
    return len(resp.data or [])
