"""メンテナンス用スクリプト（都道府県名正規化・名称更新・キャッシュ整理）のテスト."""

import json
from unittest.mock import MagicMock, call, patch

import pytest

from koku_pipeline.cleanup_cache import cleanup_place_details, find_orphaned_location_ids
from koku_pipeline.errors import SeedInputError
from koku_pipeline.normalize_prefectures import group_prefectures, run
from koku_pipeline.text_utils import generate_location_id
from koku_pipeline.update_names import choose_display_name, load_enriched, update_location_names


class TestGroupPrefectures:
    """group_prefectures のテスト."""

    def test_groups_and_ordering(self):
        groups = group_prefectures({"Aichi-ken": 40, "Aichi": 10, "Aichi Prefecture": 55, "Kyoto": 3})

        assert [g.normalized for g in groups] == ["Aichi", "Kyoto"]
        aichi = groups[0]
        assert [v.original for v in aichi.variants] == ["Aichi", "Aichi Prefecture", "Aichi-ken"]
        assert aichi.total_count == 105
        assert aichi.needs_update
        assert not groups[1].needs_update

    def test_single_unnormalized_variant_needs_update(self):
        groups = group_prefectures({"Osaka-fu": 7})

        assert groups[0].normalized == "Osaka"
        assert groups[0].needs_update


class TestNormalizeRun:
    """run のテスト."""

    @patch("koku_pipeline.normalize_prefectures.db")
    def test_dry_run_does_not_update(self, mock_db):
        mock_db.fetch_all.return_value = [{"prefecture": "Aichi-ken"}, {"prefecture": "Aichi"}, {"prefecture": None}]

        remaining = run(MagicMock(), execute=False)

        assert remaining == 1
        mock_db.update_where.assert_not_called()

    @patch("koku_pipeline.normalize_prefectures.db")
    def test_execute_updates_and_verifies(self, mock_db):
        mock_db.fetch_all.side_effect = [
            [{"prefecture": "Aichi-ken"}, {"prefecture": "Tokyo-to"}, {"prefecture": "Hokkaido"}],
            [{"prefecture": "Aichi"}, {"prefecture": "Tokyo"}, {"prefecture": "Hokkaido"}],
        ]
        mock_db.update_where.return_value = 1
        client = MagicMock()

        remaining = run(client, execute=True)

        assert remaining == 0
        mock_db.update_where.assert_has_calls([
            call(client, "locations", {"prefecture": "Aichi"}, "prefecture", "Aichi-ken"),
            call(client, "locations", {"prefecture": "Tokyo"}, "prefecture", "Tokyo-to"),
        ])
        assert mock_db.fetch_all.call_count == 2

    @patch("koku_pipeline.normalize_prefectures.db")
    def test_nothing_to_do(self, mock_db):
        mock_db.fetch_all.return_value = [{"prefecture": "Nara"}]

        assert run(MagicMock(), execute=True) == 0
        mock_db.update_where.assert_not_called()


class TestChooseDisplayName:
    """choose_display_name のテスト."""

    def test_prefers_english_display_name(self):
        assert choose_display_name({"name": "Kinkaku", "googleDisplayName": "Kinkaku-ji Temple"}) == "Kinkaku-ji Temple"

    def test_japanese_display_name_falls_back(self):
        assert choose_display_name({"name": "Kinkaku", "googleDisplayName": "金閣寺"}) == "Kinkaku"

    def test_missing_display_name(self):
        assert choose_display_name({"name": "Kinkaku"}) == "Kinkaku"
        assert choose_display_name({"name": "Kinkaku", "googleDisplayName": "  "}) == "Kinkaku"


class TestUpdateLocationNames:
    """update_location_names のテスト."""

    ENTRIES = [
        {"name": "Kinkaku", "region": "Kansai", "googleDisplayName": "Kinkaku-ji Temple"},
        {"name": "Ginkaku-ji", "region": "Kansai", "googleDisplayName": "銀閣寺"},
    ]

    @patch("koku_pipeline.update_names.db")
    def test_updates_and_clears_cache(self, mock_db):
        mock_db.update_where.return_value = 1
        client = MagicMock()
        location_id = generate_location_id("Kinkaku", "Kansai")

        updated = update_location_names(client, self.ENTRIES)

        assert updated == 1
        mock_db.update_where.assert_called_once_with(
            client, "locations", {"name": "Kinkaku-ji Temple"}, "id", location_id
        )
        mock_db.delete_where.assert_called_once_with(client, "place_details", "location_id", location_id)

    @patch("koku_pipeline.update_names.db")
    def test_dry_run(self, mock_db):
        assert update_location_names(None, self.ENTRIES, dry_run=True) == 1
        mock_db.update_where.assert_not_called()
        mock_db.delete_where.assert_not_called()

    @patch("koku_pipeline.update_names.db")
    def test_missing_row_keeps_cache(self, mock_db):
        """更新対象の行が無ければキャッシュは消さないこと."""
        mock_db.update_where.return_value = 0

        assert update_location_names(MagicMock(), self.ENTRIES) == 0
        mock_db.delete_where.assert_not_called()

    def test_load_enriched(self, tmp_path):
        path = tmp_path / "enriched-locations.json"
        path.write_text(json.dumps({"locations": self.ENTRIES}, ensure_ascii=False), encoding="utf-8")

        assert load_enriched(path) == self.ENTRIES

        with pytest.raises(SeedInputError):
            load_enriched(tmp_path / "missing.json")


class TestCleanupCache:
    """cleanup_cache のテスト."""

    def test_find_orphans(self):
        assert find_orphaned_location_ids(["a", "b"], ["b", "c", "d", "c"]) == ["c", "d"]
        assert find_orphaned_location_ids(["a"], []) == []

    @patch("koku_pipeline.cleanup_cache.db")
    def test_cleanup_deletes_orphans(self, mock_db):
        mock_db.fetch_all.side_effect = [
            [{"id": "a"}, {"id": "b"}],
            [{"location_id": "a"}, {"location_id": "x"}, {"location_id": None}],
        ]
        mock_db.delete_where_in.return_value = 1
        client = MagicMock()

        assert cleanup_place_details(client) == 1
        mock_db.delete_where_in.assert_called_once_with(client, "place_details", "location_id", ["x"])

    @patch("koku_pipeline.cleanup_cache.db")
    def test_cleanup_dry_run(self, mock_db):
        mock_db.fetch_all.side_effect = [[{"id": "a"}], [{"location_id": "x"}]]

        assert cleanup_place_details(MagicMock(), dry_run=True) == 1
        mock_db.delete_where_in.assert_not_called()
