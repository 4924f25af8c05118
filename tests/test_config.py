"""Tests for environment configuration."""

from sqlime.config import get_busy_timeout_ms, get_open_flag_names, get_statement_cache_size


def test_defaults(monkeypatch):
    monkeypatch.delenv("SQLIME_OPEN_FLAGS", raising=False)
    monkeypatch.delenv("SQLIME_BUSY_TIMEOUT_MS", raising=False)
    monkeypatch.delenv("SQLIME_STATEMENT_CACHE_SIZE", raising=False)
    assert get_open_flag_names() == ["readwrite", "create"]
    assert get_busy_timeout_ms() == 0
    assert get_statement_cache_size() == 100


def test_open_flag_names_are_normalized(monkeypatch):
    monkeypatch.setenv("SQLIME_OPEN_FLAGS", " ReadOnly , ,URI")
    assert get_open_flag_names() == ["readonly", "uri"]


def test_negative_numbers_clamp_to_zero(monkeypatch):
    monkeypatch.setenv("SQLIME_BUSY_TIMEOUT_MS", "-5")
    monkeypatch.setenv("SQLIME_STATEMENT_CACHE_SIZE", "-1")
    assert get_busy_timeout_ms() == 0
    assert get_statement_cache_size() == 0
