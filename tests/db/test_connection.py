"""Tests for opening, executing on and closing connections."""

from functools import reduce
from itertools import combinations
from operator import or_

import pytest

from sqlime import Connection, ConnectionClosedError, EngineError, OpenFlag, open_database
from sqlime.db.connection import default_open_flags, parse_open_flags

OPTIONAL_FLAGS = (
    OpenFlag.URI,
    OpenFlag.NO_MUTEX,
    OpenFlag.FULL_MUTEX,
    OpenFlag.SHARED_CACHE,
    OpenFlag.PRIVATE_CACHE,
)


def test_open_file_database(tmp_path):
    path = tmp_path / "new.db"
    db = Connection.open(path, OpenFlag.READWRITE | OpenFlag.CREATE)
    try:
        assert not db.is_readonly
        assert db.path == str(path.resolve())
        assert path.exists()
    finally:
        db.close()


def test_open_readonly(tmp_path):
    path = tmp_path / "ro.db"
    Connection.open(path).close()
    db = Connection.open(path, OpenFlag.READONLY)
    try:
        assert db.is_readonly
        with pytest.raises(EngineError) as exc_info:
            db.execute("CREATE TABLE t (x)")
        assert exc_info.value.code == 8  # SQLITE_READONLY
    finally:
        db.close()


def test_open_without_access_mode_is_misuse(tmp_path):
    with pytest.raises(EngineError) as exc_info:
        Connection.open(tmp_path / "new.db", OpenFlag(0))
    assert exc_info.value.code == 21
    assert exc_info.value.message == "bad parameter or other API misuse"
    assert not (tmp_path / "new.db").exists()


def test_open_missing_file_without_create(tmp_path):
    path = tmp_path / "nope.db"
    with pytest.raises(EngineError) as exc_info:
        Connection.open(path, OpenFlag.READWRITE)
    assert exc_info.value.code == 14
    assert exc_info.value.message == "unable to open database file"
    assert not path.exists()


def test_open_missing_directory(tmp_path):
    with pytest.raises(EngineError) as exc_info:
        Connection.open(tmp_path / "missing" / "nope.db", OpenFlag.READWRITE | OpenFlag.CREATE)
    assert exc_info.value.code == 14


def test_open_relative_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with Connection.open("rel.db", OpenFlag.READWRITE | OpenFlag.CREATE) as db:
        assert db.path == str((tmp_path / "rel.db").resolve())
    assert (tmp_path / "rel.db").exists()


@pytest.mark.parametrize(
    "extra",
    [
        reduce(or_, subset, OpenFlag(0))
        for size in range(len(OPTIONAL_FLAGS) + 1)
        for subset in combinations(OPTIONAL_FLAGS, size)
    ],
    ids=lambda flag: flag.name or "none",
)
def test_open_with_optional_flags(extra):
    flags = OpenFlag.READWRITE | OpenFlag.CREATE | OpenFlag.MEMORY | extra
    db = Connection.open(":memory:", flags)
    try:
        assert db.path == ""
        rows = []
        db.execute("SELECT 1 AS one", rows.append)
        assert rows == [{"one": "1"}]
    finally:
        db.close()
    assert db.closed


def test_in_memory_path_is_empty(tmp_path):
    db = Connection.open(tmp_path / "new.db", OpenFlag.READWRITE | OpenFlag.MEMORY)
    try:
        assert db.path == ""
    finally:
        db.close()
    assert not (tmp_path / "new.db").exists()


def test_memory_name_path_is_empty():
    with open_database(":memory:") as db:
        assert db.path == ""
        assert not db.is_readonly


def test_default_flags_create_file(tmp_path, monkeypatch):
    monkeypatch.delenv("SQLIME_OPEN_FLAGS", raising=False)
    path = tmp_path / "default.db"
    with Connection.open(path):
        pass
    assert path.exists()


def test_default_flags_from_env(monkeypatch):
    monkeypatch.setenv("SQLIME_OPEN_FLAGS", "readonly, uri")
    assert default_open_flags() == OpenFlag.READONLY | OpenFlag.URI


def test_parse_open_flags_rejects_unknown_names():
    with pytest.raises(ValueError, match="unknown open flag"):
        parse_open_flags(["readwrite", "turbo"])


def test_parse_open_flags_accepts_dashes():
    assert parse_open_flags(["no-mutex", "READWRITE"]) == OpenFlag.NO_MUTEX | OpenFlag.READWRITE


def test_execute_with_callback(db):
    db.execute("CREATE TABLE contacts(id INT PRIMARY KEY NOT NULL, name CHAR(255));")
    db.execute("INSERT INTO contacts (id, name) VALUES (1, 'Paul');")
    db.execute("INSERT INTO contacts (id, name) VALUES (2, 'John');")

    rows = []
    db.execute("SELECT * FROM contacts;", rows.append)
    assert rows == [
        {"id": "1", "name": "Paul"},
        {"id": "2", "name": "John"},
    ]


def test_execute_runs_every_statement(db):
    db.execute("CREATE TABLE t (x INTEGER); INSERT INTO t VALUES (1); INSERT INTO t VALUES (2);")
    rows = []
    db.execute("SELECT count(*) AS n FROM t", rows.append)
    assert rows == [{"n": "2"}]


def test_execute_callback_sees_rows_of_each_statement(db):
    rows = []
    db.execute("SELECT 1 AS a; SELECT 'x' AS b;", rows.append)
    assert rows == [{"a": "1"}, {"b": "x"}]


def test_execute_null_text(contacts):
    rows = []
    contacts.execute("SELECT name, email FROM contacts ORDER BY id", rows.append, null_text="NULL")
    assert rows == [
        {"name": "Paul", "email": "paul@example.com"},
        {"name": "John", "email": "NULL"},
    ]


def test_execute_renders_numbers_as_text(db):
    rows = []
    db.execute("SELECT 1.5 AS f, 2.0 AS g, -7 AS i", rows.append)
    assert rows == [{"f": "1.5", "g": "2.0", "i": "-7"}]


def test_execute_callback_error_propagates(contacts):
    seen = []

    def on_row(row):
        seen.append(row["name"])
        raise RuntimeError("stop")

    with pytest.raises(RuntimeError, match="stop"):
        contacts.execute("SELECT name FROM contacts ORDER BY id", on_row)
    assert seen == ["Paul"]
    # the connection is still usable afterwards
    rows = []
    contacts.execute("SELECT count(*) AS n FROM contacts", rows.append)
    assert rows == [{"n": "2"}]


def test_execute_syntax_error(db):
    with pytest.raises(EngineError) as exc_info:
        db.execute("SELEC 1")
    assert exc_info.value.code == 1
    assert exc_info.value.message == "SQL logic error"
    assert "syntax error" in exc_info.value.reason


def test_execute_constraint_error(contacts):
    with pytest.raises(EngineError) as exc_info:
        contacts.execute("INSERT INTO contacts (id, name) VALUES (1, 'Ringo')")
    assert exc_info.value.code == 19
    assert exc_info.value.name == "SQLITE_CONSTRAINT"


def test_close_is_idempotent(tmp_path):
    db = Connection.open(tmp_path / "new.db")
    db.close()
    db.close()
    assert db.closed


def test_operations_after_close_are_misuse():
    db = open_database()
    db.close()
    with pytest.raises(ConnectionClosedError):
        db.execute("SELECT 1")
    with pytest.raises(ConnectionClosedError):
        db.prepare("SELECT 1")
    with pytest.raises(ConnectionClosedError):
        _ = db.path


def test_close_finalizes_open_statements(contacts):
    statement = contacts.prepare("SELECT * FROM contacts")
    assert statement.step()
    contacts.close()
    assert statement.closed


def test_context_manager_closes_on_error():
    with pytest.raises(RuntimeError):
        with open_database() as db:
            raise RuntimeError("boom")
    assert db.closed


def test_busy_timeout_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("SQLIME_BUSY_TIMEOUT_MS", "250")
    with Connection.open(tmp_path / "busy.db") as db:
        rows = []
        db.execute("PRAGMA busy_timeout", rows.append)
        assert rows == [{"timeout": "250"}]
