"""サイト別スクレイパーの共通インターフェース."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable

from bs4 import BeautifulSoup, Tag

from koku_pipeline.collection import LocationCollector
from koku_pipeline.fetcher import Fetcher
from koku_pipeline.models import ScrapedLocation, ScraperConfig
from koku_pipeline.text_utils import clean_text

_SKIPPED_LINK_MARKERS = (
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "/zh-",
    "/ja/",
    "/ko/",
)
_SKIPPED_NAME_MARKERS = ("繁體中文", "简体中文", "한국어")


class SiteScraper(ABC):
    """1 つの観光サイトから観光地を抽出する戦略オブジェクト.

    HTTP 取得（Fetcher）と結果の蓄積（LocationCollector）は
    呼び出し側から注入される。
    """

    config: ScraperConfig

    def __init__(self, config: ScraperConfig) -> None:
        self.config = config
        self.logger = logging.getLogger(f"{type(self).__module__}")

    @property
    def name(self) -> str:
        return self.config.name

    @abstractmethod
    def scrape(self, fetcher: Fetcher, collector: LocationCollector) -> list[ScrapedLocation]:
        """サイトを巡回して collector に観光地を追加し、その一覧を返す.

        個々の項目・ページの失敗は内部で記録して続行する。
        ここから送出された例外は実行全体を中断する。
        """


def absolute_url(href: str, prefix: str) -> str:
    """相対リンクを prefix 付きの絶対 URL にする（http で始まればそのまま）."""
    if href.startswith("http"):
        return href
    return f"{prefix}{href}"


def is_skipped_link(url: str) -> bool:
    """SNS・他言語ページへのリンクかどうか."""
    return any(marker in url for marker in _SKIPPED_LINK_MARKERS)


def is_skipped_name(name: str) -> bool:
    """SNS 名・言語切替ラベル・短すぎる文字列かどうか."""
    lowered = name.lower()
    if any(sns in lowered for sns in ("facebook", "twitter", "instagram")):
        return True
    if any(marker in name for marker in _SKIPPED_NAME_MARKERS):
        return True
    return len(name) < 3


def own_text(element: Tag) -> str:
    """子要素を除いた直下のテキストだけを返す."""
    return clean_text("".join(element.find_all(string=True, recursive=False)))


def first_text(root: BeautifulSoup | Tag, selector: str) -> str:
    found = root.select_one(selector)
    return clean_text(found.get_text(" ")) if found else ""


def joined_text(elements: Iterable[Tag]) -> str:
    return clean_text(" ".join(el.get_text(" ") for el in elements))


def closest(element: Tag, names: tuple[str, ...] = (), classes: tuple[str, ...] = ()) -> Tag | None:
    """要素自身から祖先方向にたどり、タグ名またはクラス名が一致する最初の要素を返す."""
    node: Tag | None = element
    while node is not None and isinstance(node, Tag):
        if node.name in names:
            return node
        node_classes = node.get("class") or []
        if any(cls in node_classes for cls in classes):
            return node
        node = node.parent
    return None
