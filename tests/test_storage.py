"""
Tests for file stores and the session store.
"""

import json
import os

import pytest

from storage.file_store import JSONFileStore, StoreError, YAMLFileStore
from storage.session import SESSION_FILENAME, Session


@pytest.fixture
def session():
    return Session(
        homeserver="https://matrix.example.org",
        access_token="syt_secret",
        user_id="@bot:example.org",
        device_id="ABCDEFGH",
    )


# =============================================================================
# File stores
# =============================================================================

class TestFileStore:

    def test_yaml_roundtrip_keeps_key_order(self, tmp_path):
        store = YAMLFileStore(str(tmp_path / "config.yml"))
        store.write({"b": 1, "a": {"nested": True}})
        assert store.exists()
        assert list(store.read()) == ["b", "a"]
        assert store.read()["a"] == {"nested": True}

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JSONFileStore(str(tmp_path / "nope.json")).read()

    def test_invalid_json_raises_store_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            JSONFileStore(str(path)).read()

    def test_invalid_yaml_raises_store_error(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("key: [unclosed", encoding="utf-8")
        with pytest.raises(StoreError):
            YAMLFileStore(str(path)).read()

    def test_non_mapping_raises_store_error(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(StoreError):
            JSONFileStore(str(path)).read()

    def test_empty_yaml_is_empty_dict(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert YAMLFileStore(str(path)).read() == {}

    def test_failed_encode_keeps_previous_content(self, tmp_path):
        store = JSONFileStore(str(tmp_path / "data.json"))
        store.write({"good": 1})
        with pytest.raises(StoreError):
            store.write({"bad": object()})
        assert store.read() == {"good": 1}
        assert not os.path.exists(store.path + ".tmp")

    def test_write_creates_directory(self, tmp_path):
        store = JSONFileStore(str(tmp_path / "a" / "b" / "data.json"))
        store.write({"x": 1})
        assert store.read() == {"x": 1}


# =============================================================================
# Session store
# =============================================================================

class TestSession:

    def test_save_then_load(self, tmp_path, session):
        path = str(tmp_path / "session")
        session.save(path)
        assert Session.load(path) == session

    def test_file_layout(self, tmp_path, session):
        session.save(str(tmp_path))
        with open(tmp_path / SESSION_FILENAME, encoding="utf-8") as f:
            data = json.load(f)
        assert data == {
            "homeserver": "https://matrix.example.org",
            "access_token": "syt_secret",
            "user_id": "@bot:example.org",
            "device_id": "ABCDEFGH",
        }

    def test_save_replaces_previous(self, tmp_path, session):
        session.save(str(tmp_path))
        newer = Session("https://other.example.org", "syt_new", "@bot:other", "NEWDEVICE")
        newer.save(str(tmp_path))
        assert Session.load(str(tmp_path)) == newer

    def test_load_without_save(self, tmp_path):
        assert Session.load(str(tmp_path / "never")) is None

    def test_load_undecodable(self, tmp_path):
        (tmp_path / SESSION_FILENAME).write_text("garbage", encoding="utf-8")
        assert Session.load(str(tmp_path)) is None

    def test_load_incomplete(self, tmp_path):
        (tmp_path / SESSION_FILENAME).write_text(json.dumps({"homeserver": "x"}), encoding="utf-8")
        assert Session.load(str(tmp_path)) is None

    def test_save_into_a_file_path_fails(self, tmp_path, session):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(OSError):
            session.save(str(blocker))
