"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.core.store import MemoryDocumentStore, SqliteDocumentStore, create_store


def test_defaults():
    cfg = Settings()
    assert cfg.store_backend == "memory"
    assert cfg.eid_prefix == "NX"
    assert cfg.owner_role_name == "Owner"
    assert cfg.bootstrap_eid == "NX-8820-A"
    assert cfg.search_min_chars == 2
    assert Path(cfg.bootstrap_fixture).exists()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("NG_STORE_BACKEND", "sqlite")
    monkeypatch.setenv("NG_SQLITE_PATH", "/tmp/ng.db")
    monkeypatch.setenv("NG_EID_MAX_ATTEMPTS", "5")
    cfg = Settings()
    assert cfg.store_backend == "sqlite"
    assert cfg.sqlite_path == "/tmp/ng.db"
    assert cfg.eid_max_attempts == 5


def test_invalid_backend(monkeypatch):
    monkeypatch.setenv("NG_STORE_BACKEND", "postgres")
    with pytest.raises(ValidationError):
        Settings()


def test_create_store_selects_backend(tmp_path):
    assert isinstance(create_store(Settings()), MemoryDocumentStore)
    sqlite = create_store(Settings(store_backend="sqlite", sqlite_path=str(tmp_path / "x.db")))
    assert isinstance(sqlite, SqliteDocumentStore)
