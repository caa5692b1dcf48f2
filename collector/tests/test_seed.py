"""seed モジュールのテスト（インメモリの Supabase フェイクを使用）."""

import json
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from koku_pipeline.config import PLACEHOLDER_IMAGE
from koku_pipeline.dedup import build_cache
from koku_pipeline.errors import SeedInputError
from koku_pipeline.models import ScrapedLocation
from koku_pipeline.seed import (
    dedupe_ids,
    filter_new_locations,
    insert_in_batches,
    seed_locations,
    transform_for_db,
)


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = None
        self.payload = []
        self.bounds = None

    def select(self, columns):
        self.op = "select"
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows if isinstance(rows, list) else [rows]
        return self

    def execute(self):
        rows = self.client.tables.setdefault(self.table, [])
        if self.op == "select":
            start, end = self.bounds or (0, len(rows) - 1)
            return SimpleNamespace(data=[dict(r) for r in rows[start : end + 1]])

        self.client.insert_calls.append(len(self.payload))
        if self.client.fail_code:
            raise APIError({"code": self.client.fail_code, "message": "permission denied"})
        existing = {r["id"] for r in rows}
        ids = [r["id"] for r in self.payload]
        if any(i in existing for i in ids) or len(set(ids)) != len(ids):
            raise APIError({"code": "23505", "message": "duplicate key value violates unique constraint"})
        rows.extend(dict(r) for r in self.payload)
        return SimpleNamespace(data=self.payload)


class FakeSupabase:
    """table().select().range().execute() / table().insert().execute() だけを模したフェイク."""

    def __init__(self, tables=None, fail_code=None):
        self.tables = tables or {}
        self.fail_code = fail_code
        self.insert_calls = []

    def table(self, name):
        return FakeQuery(self, name)


def _location(name="Keichiku Kagura", region="Kyushu", url="https://www.japan.travel/en/spot/1/", **kwargs):
    return ScrapedLocation(
        name=name,
        category=kwargs.get("category", "culture"),
        region=region,
        source="jnto",
        source_url=url,
        scraped_at="2026-10-01T00:00:00+00:00",
        note="TEST DATA - DELETE BEFORE LAUNCH",
        prefecture=kwargs.get("prefecture"),
        city=kwargs.get("city"),
        description=kwargs.get("description"),
    )


def _write_scraped(path, locations):
    path.write_text(
        json.dumps({"metadata": {}, "locations": [loc.to_dict() for loc in locations]}),
        encoding="utf-8",
    )
    return path


class TestTransformForDb:
    """transform_for_db のテスト."""

    def test_full_row(self):
        location = _location(prefecture="Fukuoka Prefecture", city="Miyako", description="d" * 300)
        row = transform_for_db(location)

        assert row["id"].startswith("keichiku-kagura-kyushu-")
        assert row["city"] == "Miyako"
        assert row["image"] == PLACEHOLDER_IMAGE
        assert row["seed_source"] == "jnto"
        assert row["seed_source_url"] == "https://www.japan.travel/en/spot/1/"
        assert row["timezone"] == "Asia/Tokyo"
        assert len(row["short_description"]) == 200
        assert row["place_id"] is None
        assert row["coordinates"] is None

    def test_city_fallback(self):
        """city が無ければ prefecture、それも無ければ region を使うこと."""
        assert transform_for_db(_location(prefecture="Oita"))["city"] == "Oita"
        row = transform_for_db(_location())
        assert row["city"] == "Kyushu"
        assert row["prefecture"] is None
        assert row["description"] is None
        assert row["short_description"] is None


class TestFiltering:
    """filter_new_locations / dedupe_ids のテスト."""

    def test_filter_new_locations(self):
        cache = build_cache([{"seed_source_url": "https://www.japan.travel/en/spot/1/"}])
        fresh, duplicates = filter_new_locations(
            [_location(), _location(name="Yufuin", url="https://www.japan.travel/en/spot/2/")], cache
        )

        assert [loc.name for loc in fresh] == ["Yufuin"]
        assert duplicates == 1

    def test_dedupe_ids_first_wins(self):
        rows = [{"id": "a", "name": "first"}, {"id": "b", "name": "b"}, {"id": "a", "name": "second"}]
        unique, removed = dedupe_ids(rows)

        assert [r["name"] for r in unique] == ["first", "b"]
        assert removed == 1


class TestInsertInBatches:
    """insert_in_batches のテスト."""

    def test_batches(self):
        client = FakeSupabase()
        rows = [{"id": f"loc-{i}", "name": f"Loc {i}", "region": "Kyushu"} for i in range(5)]

        result = insert_in_batches(client, rows, batch_size=2)

        assert result.inserted == 5
        assert client.insert_calls == [2, 2, 1]

    def test_unique_violation_falls_back_to_single_rows(self):
        """一意制約違反のバッチは 1 件ずつ挿入し、衝突した行だけ除外すること."""
        client = FakeSupabase(tables={"locations": [{"id": "loc-1", "name": "Loc 1"}]})
        rows = [{"id": f"loc-{i}", "name": f"Loc {i}", "region": "Kyushu"} for i in range(3)]

        result = insert_in_batches(client, rows)

        assert result.inserted == 2
        assert result.skipped_on_insert == 1
        assert result.failed == 0
        assert client.insert_calls == [3, 1, 1, 1]
        assert [r["id"] for r in client.tables["locations"]] == ["loc-1", "loc-0", "loc-2"]

    def test_other_error_fails_whole_batch(self):
        client = FakeSupabase(fail_code="42501")
        rows = [{"id": f"loc-{i}", "name": f"Loc {i}", "region": "Kyushu"} for i in range(3)]

        result = insert_in_batches(client, rows, batch_size=2)

        assert result.inserted == 0
        assert result.failed == 3


class TestSeedLocations:
    """seed_locations のテスト."""

    def test_seed_same_file_twice(self, tmp_path):
        """2 回目の投入では同じ観光地が重複として数えられること."""
        client = FakeSupabase()
        path = _write_scraped(tmp_path / "jnto-scraped.json", [_location()])

        first = seed_locations(client, path)
        assert (first.inserted, first.total_duplicates) == (1, 0)

        second = seed_locations(client, path)
        assert (second.inserted, second.total_duplicates) == (0, 1)
        assert len(client.tables["locations"]) == 1

    def test_duplicate_ids_within_file(self, tmp_path):
        """同名・同地方の別 URL は ID が同じになり、最初の 1 件だけ投入されること."""
        client = FakeSupabase()
        path = _write_scraped(
            tmp_path / "jnto-scraped.json",
            [_location(), _location(url="https://www.japan.travel/en/spot/99/")],
        )
        locations = [_location(), _location(url="https://www.japan.travel/en/spot/99/")]
        assert transform_for_db(locations[0])["id"] == transform_for_db(locations[1])["id"]

        result = seed_locations(client, path)

        assert result.inserted == 1
        assert result.skipped_on_insert == 1

    def test_empty_file(self, tmp_path):
        client = FakeSupabase()
        path = _write_scraped(tmp_path / "jnto-scraped.json", [])

        result = seed_locations(client, path)

        assert result.inserted == 0
        assert client.insert_calls == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(SeedInputError):
            seed_locations(FakeSupabase(), tmp_path / "missing.json")

    def test_broken_json(self, tmp_path):
        path = tmp_path / "jnto-scraped.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(SeedInputError):
            seed_locations(FakeSupabase(), path)
