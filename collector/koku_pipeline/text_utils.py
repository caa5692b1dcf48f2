"""文字列処理ユーティリティ.

カテゴリ正規化・テキスト整形・名称正規化・ID 生成など、
スクレイパーとシードスクリプトの双方で使う純粋関数をまとめる。
"""

from __future__ import annotations

import hashlib
import re
from typing import Iterable, Sequence
from urllib.parse import urlparse

from koku_pipeline.config import CATEGORIES, DEFAULT_CATEGORY, DESCRIPTION_MAX_LENGTH

# 表記ゆれのあるカテゴリ語 → 標準カテゴリ（挿入順に照合、最初の一致を採用）
CATEGORY_KEYWORDS: dict[str, str] = {
    # culture
    "temple": "culture",
    "shrine": "culture",
    "museum": "culture",
    "gallery": "culture",
    "art": "culture",
    "heritage": "culture",
    "historic": "culture",
    "historical": "culture",
    "castle": "culture",
    "palace": "culture",
    "traditional": "culture",
    "cultural": "culture",
    # attraction
    "attraction": "attraction",
    "theme park": "attraction",
    "amusement": "attraction",
    "zoo": "attraction",
    "aquarium": "attraction",
    "entertainment": "attraction",
    "sightseeing": "attraction",
    "landmark": "attraction",
    "tower": "attraction",
    # nature
    "nature": "nature",
    "park": "nature",
    "garden": "nature",
    "mountain": "nature",
    "beach": "nature",
    "lake": "nature",
    "river": "nature",
    "waterfall": "nature",
    "hot spring": "nature",
    "onsen": "nature",
    "hiking": "nature",
    "outdoor": "nature",
    "natural": "nature",
    # food
    "restaurant": "food",
    "food": "food",
    "dining": "food",
    "cafe": "food",
    "bar": "food",
    "cuisine": "food",
    "eat": "food",
    "drink": "food",
    # shopping
    "shopping": "shopping",
    "shop": "shopping",
    "market": "shopping",
    "mall": "shopping",
    "store": "shopping",
    # hotel
    "hotel": "hotel",
    "accommodation": "hotel",
    "resort": "hotel",
    "lodging": "hotel",
    "stay": "hotel",
    "inn": "hotel",
    "ryokan": "hotel",
}

# ひらがな・カタカナ・漢字・全角記号
_JAPANESE_PATTERN = re.compile(
    r"[\u3000-\u303f\u3040-\u309f\u30a0-\u30ff\u4e00-\u9faf\uff00-\uffef]"
)
_PREFECTURE_SUFFIX = re.compile(r"(?:-ken|-fu|-to|\s+Prefecture)$", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s-]")
_SLUG_SEPARATOR = re.compile(r"[^a-z0-9]+")

CategoryRules = Sequence[tuple[str, Iterable[str]]]


def normalize_category(source_category: str) -> str:
    """ソース側のカテゴリ表記を標準カテゴリに変換する.

    完全一致 → 部分一致の順に CATEGORY_KEYWORDS を照合し、
    どれにも当たらなければ "attraction" を返す。
    """
    normalized = (source_category or "").lower().strip()

    if normalized in CATEGORY_KEYWORDS:
        return CATEGORY_KEYWORDS[normalized]

    for keyword, category in CATEGORY_KEYWORDS.items():
        if keyword in normalized:
            return category

    return DEFAULT_CATEGORY


def infer_category(text: str, rules: CategoryRules, default: str = DEFAULT_CATEGORY) -> str:
    """キーワード規則の先頭から照合し、最初に含まれたカテゴリを返す.

    Args:
        text: 判定対象（名称＋説明など）
        rules: [(category, [keyword, ...]), ...]
        default: どれにも一致しない場合のカテゴリ
    """
    lowered = (text or "").lower()
    for category, keywords in rules:
        if any(keyword in lowered for keyword in keywords):
            return category
    return default


def is_valid_category(category: str) -> bool:
    return category in CATEGORIES


def clean_text(text: str | None) -> str:
    """連続する空白を 1 つにまとめて前後の空白を除去する."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def extract_domain(url: str) -> str:
    """URL からホスト名を取り出す。解析できなければ入力をそのまま返す."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return url
    return hostname or url


def truncate_description(text: str, limit: int = DESCRIPTION_MAX_LENGTH) -> str:
    """説明文を limit 文字以内に収める（超過時は末尾を "..." にする）."""
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def normalize_name(name: str) -> str:
    """重複判定用に名称を正規化する（小文字化・空白整理・記号除去）."""
    collapsed = _WHITESPACE.sub(" ", (name or "").lower()).strip()
    return _NON_WORD.sub("", collapsed)


def contains_japanese(text: str | None) -> bool:
    return bool(text) and _JAPANESE_PATTERN.search(text) is not None


def generate_location_id(name: str, region: str) -> str:
    """名称と地方から決定的な location ID を生成する.

    形式: "<slug>-<md5 先頭 8 桁>"。同名・同地方の別施設は同じ ID になる。
    """
    source = f"{name}-{region}"
    slug = _SLUG_SEPARATOR.sub("-", source.lower())
    digest = hashlib.md5(source.encode("utf-8")).hexdigest()[:8]
    return f"{slug}-{digest}"


def normalize_prefecture(name: str) -> str:
    """都道府県名から行政区分の接尾辞を取り除く.

    "-ken" / "-fu" / "-to" / " Prefecture" を除去する。
    "Hokkaido" は "-do" が名称の一部なのでそのまま返す。
    接尾辞が重なっている場合（"Kyoto-fu Prefecture" など）も
    除去しきるまで繰り返すので、2 回適用しても結果は変わらない。
    """
    if not name:
        return name

    result = name.strip()
    while result.lower() != "hokkaido":
        stripped = _PREFECTURE_SUFFIX.sub("", result).strip()
        if stripped == result:
            break
        result = stripped
    return result
