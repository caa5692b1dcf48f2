"""dedup モジュールのユニットテスト."""

from unittest.mock import MagicMock, patch

from koku_pipeline.dedup import (
    build_cache,
    check_duplicate,
    enable_db_dedup,
    is_known,
    remember,
)
from koku_pipeline.models import ExistingLocationCache, LocationDraft, PipelineContext


def _draft(name="Kinkaku-ji", region="Kansai", url="https://example.com/kinkakuji"):
    return LocationDraft(name=name, category="culture", region=region, source_url=url)


EXISTING_ROWS = [
    {"place_id": "ChIJ-kinkakuji", "seed_source_url": "https://example.com/kinkakuji", "name": "Kinkaku-ji", "region": "Kansai"},
    {"place_id": None, "seed_source_url": None, "name": "Sapporo  Clock Tower", "region": "Hokkaido"},
]


class TestBuildCache:
    """build_cache / remember のテスト."""

    def test_build(self):
        cache = build_cache(EXISTING_ROWS)

        assert cache.place_ids == {"ChIJ-kinkakuji"}
        assert cache.source_urls == {"https://example.com/kinkakuji"}
        assert cache.name_regions["sapporo clock tower"] == {"Hokkaido"}

    def test_remember_adds_row(self):
        cache = ExistingLocationCache()
        remember(cache, {"id": "x", "name": "Osaka Castle", "region": "Kansai", "seed_source_url": "https://a/b"})

        assert "https://a/b" in cache.source_urls
        assert cache.name_regions["osaka castle"] == {"Kansai"}
        assert not cache.place_ids


class TestCheckDuplicate:
    """check_duplicate のテスト."""

    def test_place_id_takes_precedence(self):
        """place_id が一致すれば URL・名称に関係なく重複になること."""
        cache = build_cache(EXISTING_ROWS)
        location = _draft(name="Totally Different", region="Okinawa", url="https://other/url")

        result = check_duplicate(location, cache, place_id="ChIJ-kinkakuji")

        assert result.is_duplicate
        assert result.reason == "place_id exists"

    def test_source_url(self):
        cache = build_cache(EXISTING_ROWS)
        result = check_duplicate(_draft(name="Golden Pavilion"), cache)

        assert result.is_duplicate
        assert result.reason == "source_url exists"

    def test_name_and_region(self):
        """名称は正規化して比較すること."""
        cache = build_cache(EXISTING_ROWS)
        result = check_duplicate(_draft(name="sapporo clock tower!", region="Hokkaido", url="https://new"), cache)

        assert result.is_duplicate
        assert result.reason == "name+region exists"

    def test_same_name_other_region(self):
        cache = build_cache(EXISTING_ROWS)
        result = check_duplicate(_draft(name="Sapporo Clock Tower", region="Kanto", url="https://new"), cache)

        assert not result.is_duplicate
        assert result.reason is None


class TestEnableDbDedup:
    """enable_db_dedup / is_known のテスト."""

    def test_without_client(self):
        context = PipelineContext()
        enable_db_dedup(context)

        assert context.dedup_enabled is False
        assert not is_known(context, _draft()).is_duplicate

    @patch("koku_pipeline.dedup.db.fetch_all")
    def test_with_client(self, mock_fetch_all):
        mock_fetch_all.return_value = EXISTING_ROWS
        context = PipelineContext(client=MagicMock())

        enable_db_dedup(context)

        assert context.dedup_enabled is True
        assert is_known(context, _draft()).is_duplicate
        mock_fetch_all.assert_called_once_with(
            context.client, "locations", "place_id, seed_source_url, name, region"
        )

    @patch("koku_pipeline.dedup.db.fetch_all")
    def test_load_failure_disables(self, mock_fetch_all):
        """読み込みに失敗したら重複チェックを無効にして続行すること."""
        mock_fetch_all.side_effect = RuntimeError("connection refused")
        context = PipelineContext(client=MagicMock())

        enable_db_dedup(context)

        assert context.dedup_enabled is False
        assert not is_known(context, _draft()).is_duplicate
