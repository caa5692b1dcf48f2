"""db モジュールのモックテスト."""

from unittest.mock import MagicMock, patch

import pytest

from koku_pipeline.errors import ConfigError


def _chain(pages=None, data=None):
    """select/insert/update/delete を連結できるモックを作る."""
    mock_chain = MagicMock()
    for method in ("select", "range", "insert", "update", "delete", "eq", "in_"):
        getattr(mock_chain, method).return_value = mock_chain
    if pages is not None:
        mock_chain.execute.side_effect = [MagicMock(data=page) for page in pages]
    else:
        mock_chain.execute.return_value = MagicMock(data=data or [])
    return mock_chain


class TestFetchAll:
    """fetch_all のテスト."""

    @patch("koku_pipeline.db._table")
    def test_pages_until_short_page(self, mock_table):
        from koku_pipeline.db import fetch_all

        mock_chain = _chain(pages=[[{"id": 1}, {"id": 2}], [{"id": 3}]])
        mock_table.return_value = mock_chain

        rows = fetch_all(MagicMock(), "locations", "id", page_size=2)

        assert rows == [{"id": 1}, {"id": 2}, {"id": 3}]
        mock_chain.select.assert_called_with("id")
        assert [c.args for c in mock_chain.range.call_args_list] == [(0, 1), (2, 3)]

    @patch("koku_pipeline.db._table")
    def test_empty_table(self, mock_table):
        from koku_pipeline.db import fetch_all

        mock_table.return_value = _chain(pages=[[]])

        assert fetch_all(MagicMock(), "locations", "id") == []


class TestInsertRows:
    """insert_rows のテスト."""

    @patch("koku_pipeline.db._table")
    def test_insert_records(self, mock_table):
        from koku_pipeline.db import insert_rows

        mock_chain = _chain()
        mock_table.return_value = mock_chain
        client = MagicMock()

        records = [{"id": "kinkaku-ji-kansai-1234abcd", "name": "Kinkaku-ji", "region": "Kansai"}]
        insert_rows(client, "locations", records)

        mock_table.assert_called_once_with(client, "locations")
        mock_chain.insert.assert_called_once_with(records)

    @patch("koku_pipeline.db._table")
    def test_skip_empty(self, mock_table):
        from koku_pipeline.db import insert_rows

        insert_rows(MagicMock(), "locations", [])
        mock_table.assert_not_called()


class TestUpdateAndDelete:
    """update_where / delete_where / delete_where_in のテスト."""

    @patch("koku_pipeline.db._table")
    def test_update_where_returns_count(self, mock_table):
        from koku_pipeline.db import update_where

        mock_chain = _chain(data=[{"id": "a"}, {"id": "b"}])
        mock_table.return_value = mock_chain

        count = update_where(MagicMock(), "locations", {"prefecture": "Aichi"}, "prefecture", "Aichi-ken")

        assert count == 2
        mock_chain.update.assert_called_once_with({"prefecture": "Aichi"})
        mock_chain.eq.assert_called_once_with("prefecture", "Aichi-ken")

    @patch("koku_pipeline.db._table")
    def test_delete_where_in(self, mock_table):
        from koku_pipeline.db import delete_where_in

        mock_chain = _chain(data=[{"location_id": "x"}])
        mock_table.return_value = mock_chain

        assert delete_where_in(MagicMock(), "place_details", "location_id", ["x"]) == 1
        mock_chain.in_.assert_called_once_with("location_id", ["x"])

    @patch("koku_pipeline.db._table")
    def test_delete_where_in_skip_empty(self, mock_table):
        from koku_pipeline.db import delete_where_in

        assert delete_where_in(MagicMock(), "place_details", "location_id", []) == 0
        mock_table.assert_not_called()

    @patch("koku_pipeline.db._table")
    def test_delete_where(self, mock_table):
        from koku_pipeline.db import delete_where

        mock_chain = _chain(data=[])
        mock_table.return_value = mock_chain

        assert delete_where(MagicMock(), "place_details", "location_id", "x") == 0
        mock_chain.eq.assert_called_once_with("location_id", "x")


class TestGetClient:
    """get_client のテスト."""

    def test_missing_env(self, monkeypatch):
        from koku_pipeline.db import get_client

        monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_URL", "")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "")

        with pytest.raises(ConfigError, match="SUPABASE_SERVICE_ROLE_KEY"):
            get_client()

    @patch("koku_pipeline.db.create_client")
    def test_creates_client(self, mock_create, monkeypatch):
        from koku_pipeline.db import get_client

        monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")

        get_client()

        mock_create.assert_called_once_with("https://example.supabase.co", "service-key")
