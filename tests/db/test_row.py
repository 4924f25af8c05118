"""Tests for row snapshots and engine-compatible cell conversions."""

import pytest

from sqlime.db.row import Row, column_blob, column_double, column_int64, column_text
from sqlime.db.schema import ColumnIndex


@pytest.fixture
def row():
    columns = ColumnIndex(["id", "name", "score", "data", "missing"])
    return Row([7, "Paul", 2.5, b"\x01\x02", None], columns)


class TestColumnConversions:
    def test_text(self):
        assert column_text(None) is None
        assert column_text(12) == "12"
        assert column_text(1.0) == "1.0"
        assert column_text(0.1) == "0.1"
        assert column_text(1e20) == "1.0e+20"
        assert column_text(float("inf")) == "Inf"
        assert column_text(b"hi") == "hi"

    def test_text_of_invalid_utf8_blob_is_replaced(self):
        assert column_text(b"a\xffb") == "a\ufffdb"
        row = Row([b"\xff\xfe"], ColumnIndex(["data"]))
        assert row.string(0) == "\ufffd\ufffd"
        assert row.blob(0) == b"\xff\xfe"

    def test_int64(self):
        assert column_int64(None) == 0
        assert column_int64("42abc") == 42
        assert column_int64("  -3") == -3
        assert column_int64("abc") == 0
        assert column_int64(3.9) == 3
        assert column_int64(-3.9) == -3
        assert column_int64(1e30) == 2**63 - 1
        assert column_int64("99999999999999999999") == 2**63 - 1

    def test_double(self):
        assert column_double(None) == 0.0
        assert column_double(3) == 3.0
        assert column_double("2.5e1x") == 25.0
        assert column_double("x") == 0.0

    def test_blob(self):
        assert column_blob(None) is None
        assert column_blob("é") == "é".encode()
        assert column_blob(5) == b"5"


class TestRowByIndex:
    def test_typed_access(self, row):
        assert row.int64(0) == 7
        assert row.string(1) == "Paul"
        assert row.double(2) == 2.5
        assert row.blob(3) == b"\x01\x02"

    def test_null_cell(self, row):
        assert row.is_null(4)
        assert row.string(4) is None
        assert row.blob(4) is None
        assert row.int64(4) == 0
        assert row.double(4) == 0.0

    def test_cross_type(self, row):
        assert row.string(0) == "7"
        assert row.double(0) == 7.0
        assert row.int64(2) == 2

    def test_out_of_range(self, row):
        with pytest.raises(IndexError):
            row.int64(5)
        with pytest.raises(IndexError):
            row.int64(-1)


class TestRowByName:
    def test_typed_access(self, row):
        assert row.int64_for("id") == 7
        assert row.string_for("name") == "Paul"
        assert row.double_for("score") == 2.5
        assert row.blob_for("data") == b"\x01\x02"

    def test_unknown_name(self, row):
        assert row.int64_for("nope") is None
        assert row.double_for("nope") is None
        assert row.string_for("nope") is None
        assert row.blob_for("nope") is None

    def test_unknown_name_counts_as_null(self, row):
        assert row.is_null_for("nope")
        assert row.is_null_for("missing")
        assert not row.is_null_for("name")


class TestRowMapping:
    def test_getitem(self, row):
        assert row["name"] == "Paul"
        assert row[0] == 7
        with pytest.raises(KeyError):
            row["nope"]

    def test_keys_and_dict(self, row):
        assert row.keys() == ("id", "name", "score", "data", "missing")
        assert row.as_dict()["score"] == 2.5
        assert len(row) == 5
        assert list(row)[1] == "Paul"

    def test_duplicate_names_keep_last(self):
        row = Row([1, 2], ColumnIndex(["x", "x"]))
        assert row["x"] == 2
        assert row.as_dict() == {"x": 2}
        assert row[0] == 1

    def test_equality(self, row):
        columns = ColumnIndex(["id", "name", "score", "data", "missing"])
        assert row == Row([7, "Paul", 2.5, b"\x01\x02", None], columns)
        assert row != Row([8, "Paul", 2.5, b"\x01\x02", None], columns)
