"""
Unit tests for the persisted key-value stores.
"""

import os
import tempfile

import pytest
from remoteanswer.state.persisted_store import InMemoryStore, JsonFileStore


def test_file_store_missing_key():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFileStore(tmpdir)

        assert store.get("remoteanswer_purchases") is None


def test_file_store_overwrites_value():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFileStore(tmpdir)

        store.set("remoteanswer_wishlist", '["p1"]')
        store.set("remoteanswer_wishlist", '["p1", "p2"]')

        assert store.get("remoteanswer_wishlist") == '["p1", "p2"]'
        assert os.listdir(tmpdir) == ["remoteanswer_wishlist.json"]


def test_file_store_persists_across_instances():
    with tempfile.TemporaryDirectory() as tmpdir:
        JsonFileStore(tmpdir).set("remoteanswer_reviews", "[]")

        assert JsonFileStore(tmpdir).get("remoteanswer_reviews") == "[]"


def test_file_store_creates_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = os.path.join(tmpdir, "nested", "store")
        JsonFileStore(root)

        assert os.path.isdir(root)


def test_file_store_rejects_path_like_keys():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFileStore(tmpdir)

        with pytest.raises(ValueError):
            store.set("../escape", "[]")


def test_in_memory_store():
    store = InMemoryStore({"a": "1"})

    assert store.get("a") == "1"
    assert store.get("b") is None
    store.set("b", "2")
    assert store.data == {"a": "1", "b": "2"}
