"""text_utils モジュールのユニットテスト."""

import re

from koku_pipeline.config import CATEGORIES
from koku_pipeline.text_utils import (
    clean_text,
    contains_japanese,
    extract_domain,
    generate_location_id,
    infer_category,
    normalize_category,
    normalize_name,
    normalize_prefecture,
    truncate_description,
)


class TestNormalizeCategory:
    """normalize_category のテスト."""

    def test_exact_match(self):
        assert normalize_category("Temple") == "culture"
        assert normalize_category("onsen") == "nature"
        assert normalize_category("ryokan") == "hotel"

    def test_substring_match(self):
        """部分一致でも標準カテゴリになること."""
        assert normalize_category("Shrines & Temples") == "culture"
        assert normalize_category("Theme Parks") == "attraction"
        assert normalize_category("Local Restaurants") == "food"

    def test_unknown_defaults_to_attraction(self):
        assert normalize_category("Something else") == "attraction"
        assert normalize_category("") == "attraction"

    def test_always_in_vocabulary(self):
        """どんな入力でも固定の 6 カテゴリのいずれかになること."""
        for label in ["Museum", "hiking trail", "???", "Shopping Street", "Bar", "x"]:
            assert normalize_category(label) in CATEGORIES


class TestInferCategory:
    """infer_category のテスト."""

    RULES = [
        ("culture", ["temple", "shrine"]),
        ("nature", ["park", "lake"]),
    ]

    def test_first_rule_wins(self):
        assert infer_category("Shrine in the park", self.RULES) == "culture"

    def test_default(self):
        assert infer_category("Tower", self.RULES) == "attraction"
        assert infer_category("Tower", self.RULES, default="shopping") == "shopping"


class TestTextHelpers:
    """テキスト整形系のテスト."""

    def test_clean_text(self):
        assert clean_text("  Sapporo \n\t Clock   Tower ") == "Sapporo Clock Tower"
        assert clean_text(None) == ""

    def test_extract_domain(self):
        assert extract_domain("https://www.japan.travel/en/spot/1/") == "www.japan.travel"

    def test_truncate_description(self):
        text = "a" * 600
        truncated = truncate_description(text)
        assert len(truncated) == 500
        assert truncated.endswith("...")
        assert truncate_description("short") == "short"

    def test_normalize_name(self):
        assert normalize_name("  Kinkaku-ji   (Golden Pavilion) ") == "kinkaku-ji golden pavilion"

    def test_contains_japanese(self):
        assert contains_japanese("金閣寺")
        assert contains_japanese("Kinkakuji きんかくじ")
        assert not contains_japanese("Kinkakuji Temple")
        assert not contains_japanese(None)


class TestGenerateLocationId:
    """generate_location_id のテスト."""

    def test_format(self):
        location_id = generate_location_id("Kinkaku-ji", "Kansai")
        assert re.fullmatch(r"kinkaku-ji-kansai-[0-9a-f]{8}", location_id)

    def test_deterministic(self):
        assert generate_location_id("Sapporo Clock Tower", "Hokkaido") == generate_location_id(
            "Sapporo Clock Tower", "Hokkaido"
        )

    def test_distinct_inputs(self):
        assert generate_location_id("Kinkaku-ji", "Kansai") != generate_location_id("Ginkaku-ji", "Kansai")
        assert generate_location_id("Castle", "Kansai") != generate_location_id("Castle", "Chubu")


class TestNormalizePrefecture:
    """normalize_prefecture のテスト."""

    def test_strip_suffixes(self):
        assert normalize_prefecture("Aichi-ken") == "Aichi"
        assert normalize_prefecture("Osaka-fu") == "Osaka"
        assert normalize_prefecture("Tokyo-to") == "Tokyo"
        assert normalize_prefecture("Nara Prefecture") == "Nara"
        assert normalize_prefecture("Gifu-KEN") == "Gifu"

    def test_hokkaido_unchanged(self):
        assert normalize_prefecture("Hokkaido") == "Hokkaido"
        assert normalize_prefecture("hokkaido") == "hokkaido"

    def test_plain_names_unchanged(self):
        assert normalize_prefecture("Kyoto") == "Kyoto"
        assert normalize_prefecture("") == ""

    def test_idempotent(self):
        """2 回適用しても結果が変わらないこと."""
        for name in ["Kyoto-fu Prefecture", "Aichi-ken", "Hokkaido", "Tokyo-to", " Mie  Prefecture "]:
            once = normalize_prefecture(name)
            assert normalize_prefecture(once) == once
