"""HTML 取得モジュール.

全スクレイパー共通の HTTP 取得とリクエスト間隔の制御を担う。
リトライは行わず、失敗した取得の扱いは呼び出し側が決める。
"""

from __future__ import annotations

import logging
import time

import requests
from bs4 import BeautifulSoup

from koku_pipeline.config import DEFAULT_RATE_LIMIT, REQUEST_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


class Fetcher:
    """固定ヘッダー・タイムアウトで HTML を取得し、BeautifulSoup で返す."""

    def __init__(
        self,
        user_agent: str | None = None,
        rate_limit: float = DEFAULT_RATE_LIMIT,
        session: requests.Session | None = None,
        log_prefix: str = "",
    ) -> None:
        self.user_agent = user_agent or USER_AGENT
        self.rate_limit = rate_limit
        self.session = session or requests.Session()
        self.log_prefix = log_prefix

    def fetch_html(self, url: str, headers: dict[str, str] | None = None) -> BeautifulSoup:
        """URL の HTML を取得してパースする.

        Args:
            url: 取得先 URL
            headers: 追加・上書きするリクエストヘッダー

        Returns:
            パース済みの BeautifulSoup

        Raises:
            requests.RequestException: 通信失敗・4xx/5xx（404 を含む）
        """
        request_headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
        if headers:
            request_headers.update(headers)

        logger.info("%s取得中: %s", self.log_prefix, url)
        try:
            resp = self.session.get(url, headers=request_headers, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error("%s取得失敗: url=%s, error=%s", self.log_prefix, url, e)
            raise

        return BeautifulSoup(resp.text, "html.parser")

    def delay(self, seconds: float | None = None) -> None:
        """リクエスト間隔を待機する（既定はスクレイパーごとの rate_limit）."""
        time.sleep(self.rate_limit if seconds is None else seconds)


def is_not_found(error: Exception) -> bool:
    """404 応答による失敗かどうか.

    例外メッセージには URL が含まれるため、ステータスコードだけで判定する。
    """
    response = getattr(error, "response", None)
    return response is not None and response.status_code == 404
