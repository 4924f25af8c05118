"""Shared test fixtures."""

import pytest

from sqlime import Connection, OpenFlag


@pytest.fixture
def db():
    """In-memory database, closed after the test."""
    conn = Connection.open(":memory:", OpenFlag.READWRITE | OpenFlag.CREATE)
    yield conn
    conn.close()


@pytest.fixture
def contacts(db):
    """In-memory database with a ``contacts`` table holding two rows."""
    db.execute(
        """CREATE TABLE contacts (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            age INTEGER,
            email TEXT,
            avatar BLOB
        )"""
    )
    db.execute(
        "INSERT INTO contacts (id, name, age, email, avatar) VALUES "
        "(1, 'Paul', 28, 'paul@example.com', x'0102'), "
        "(2, 'John', NULL, NULL, NULL)"
    )
    return db
