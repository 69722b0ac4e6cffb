"""Tests for the session token cache."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from bub.vault.errors import PersistenceError
from bub.vault.models import SessionToken
from bub.vault.token_store import TokenStore


def _token(value: str, host: str = "vault.stg") -> SessionToken:
    return SessionToken(value=value, owner_host_identity=host)


class TestLoadSave:
    """Round-trips through the cache file."""

    def test_save_then_load(self, config_home: Path):
        store = TokenStore(config_home)
        store.save(_token("abc"))
        loaded = store.load("vault.stg")
        assert loaded is not None
        assert loaded.value == "abc"
        assert loaded.owner_host_identity == "vault.stg"

    def test_unseen_host_is_a_miss(self, config_home: Path):
        store = TokenStore(config_home)
        store.save(_token("abc"))
        assert store.load("vault.prod") is None

    def test_latest_save_wins(self, config_home: Path):
        store = TokenStore(config_home)
        for value in ("first", "second", "third"):
            store.save(_token(value))
        assert store.load("vault.stg").value == "third"
        assert (config_home / "token.vault.stg").read_text() == "third"

    def test_hosts_do_not_share_tokens(self, config_home: Path):
        store = TokenStore(config_home)
        store.save(_token("one", "vault.stg"))
        store.save(_token("two", "vault.prod"))
        assert store.load("vault.stg").value == "one"
        assert store.load("vault.prod").value == "two"

    def test_file_name(self, config_home: Path):
        store = TokenStore(config_home)
        path = store.save(_token("abc"))
        assert path == config_home / "token.vault.stg"

    def test_trailing_newline_trimmed(self, config_home: Path):
        (config_home / "token.vault.stg").write_text("abc\n")
        assert TokenStore(config_home).load("vault.stg").value == "abc"

    def test_crlf_line_ending_trimmed(self, config_home: Path):
        (config_home / "token.vault.stg").write_bytes(b"abc\r\n")
        assert TokenStore(config_home).load("vault.stg").value == "abc"

    def test_blank_file_is_a_miss(self, config_home: Path):
        (config_home / "token.vault.stg").write_text("\n")
        assert TokenStore(config_home).load("vault.stg") is None

    def test_unreadable_cache_is_a_miss(self, config_home: Path):
        (config_home / "token.vault.stg").mkdir()
        assert TokenStore(config_home).load("vault.stg") is None


class TestPermissions:
    """Cache files are owner-only."""

    def test_new_file_is_0600(self, config_home: Path):
        path = TokenStore(config_home).save(_token("abc"))
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_existing_file_is_tightened(self, config_home: Path):
        path = config_home / "token.vault.stg"
        path.write_text("old")
        path.chmod(0o644)
        TokenStore(config_home).save(_token("new"))
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert path.read_text() == "new"

    def test_creates_missing_directory(self, tmp_path: Path):
        home = tmp_path / "nested" / "bub"
        TokenStore(home).save(_token("abc"))
        assert (home / "token.vault.stg").exists()
        assert stat.S_IMODE(home.stat().st_mode) == 0o700


class TestErrors:
    """Invalid input and unwritable caches."""

    def test_empty_token_refused(self, config_home: Path):
        empty = SessionToken.model_construct(value="", owner_host_identity="vault.stg")
        with pytest.raises(ValueError):
            TokenStore(config_home).save(empty)
        assert not (config_home / "token.vault.stg").exists()

    def test_unwritable_directory_raises_persistence_error(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(PersistenceError):
            TokenStore(blocker / "bub").save(_token("abc"))

    @pytest.mark.parametrize("host", ["", "../etc", "a/b", ".."])
    def test_invalid_host_identity(self, config_home: Path, host: str):
        with pytest.raises(ValueError):
            TokenStore(config_home).path_for(host)

    def test_clear(self, config_home: Path):
        store = TokenStore(config_home)
        store.save(_token("abc"))
        assert store.clear("vault.stg") is True
        assert store.load("vault.stg") is None
        assert store.clear("vault.stg") is False
