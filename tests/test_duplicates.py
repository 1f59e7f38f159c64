"""Tests for the duplicate primary key diagnostics."""

import logging
from unittest.mock import Mock

from sqlfixture.dataset import FixtureDocument, Table, compose, describe, find_duplicates, find_pk_duplicates


class TestFindDuplicates:
    def test_single_key(self):
        table = Table("t", ["id", "name"], [(100, "a"), (222, "b"), (100, "c")])
        assert find_duplicates(table, ["id"]) == {"100"}

    def test_composite_key_joined_in_key_order(self):
        table = Table("m", ["club", "person_id"], [("chess", 1), ("chess", 1), ("go", 1)])
        assert find_duplicates(table, ["person_id", "club"]) == {"1|chess"}

    def test_no_key(self):
        table = Table("t", ["id"], [(1,), (1,)])
        assert find_duplicates(table, []) == set()

    def test_key_column_missing_from_fixture(self):
        table = Table("t", ["name"], [("a",), ("a",)])
        assert find_duplicates(table, ["id"]) == set()

    def test_no_duplicates(self):
        assert find_duplicates(Table("t", ["id"], [(1,), (2,)]), ["id"]) == set()


class TestWithLiveSchema:
    def test_keys_read_from_database(self, connections):
        table = Table("person", ["id", "name"], [("1", "Ann"), ("1", "Bob")])
        assert find_pk_duplicates(table, connections) == {"1"}

    def test_failing_lookup_treated_as_no_keys(self, caplog):
        connections = Mock(primary_keys=Mock(side_effect=RuntimeError("connection lost")))
        table = Table("person", ["id"], [(1,), (1,)])
        with caplog.at_level(logging.WARNING, logger="sqlfixture.dataset.duplicates"):
            assert find_pk_duplicates(table, connections) == set()
        assert "failed to fetch actual PKs" in caplog.text


class TestDescribe:
    def test_none(self):
        assert describe(None) == "None"

    def test_row_counts(self):
        store = compose(FixtureDocument(tables=(Table("a", ["x"], [(1,), (2,)]), Table("b", ["x"]))))
        assert describe(store) == "FixtureStore with tables(row count): a(2) b(0)"

    def test_duplicates_reported(self, connections):
        document = FixtureDocument(tables=(Table("person", ["id", "name"], [("7", "Ann"), ("7", "Bob")]),))
        description = describe(document, connections)
        assert description.startswith("FixtureDocument with tables(row count): person(2)")
        assert "[duplicated primary keys: ['7']]" in description
