"""Unit tests for the JSON key-value store."""
import asyncio
import json
import os
import shutil
import tempfile

import pytest

from qr_attendance.services.storage_service import (
    JsonKeyValueStore,
    load_json,
    lock_file,
    save_json
)
from qr_attendance.utils.exceptions import FileWriteError, PersistenceError


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp_path = tempfile.mkdtemp()
    yield temp_path

    if os.path.exists(temp_path):
        shutil.rmtree(temp_path)


@pytest.fixture
def store_path(temp_dir):
    return os.path.join(temp_dir, "data", "last_session.json")


class TestLoadJson:
    """Test load_json function."""

    def test_load_valid_json(self, temp_dir):
        file_path = os.path.join(temp_dir, "store.json")
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump({"name": "Ana"}, f)

        assert load_json(file_path) == {"name": "Ana"}

    def test_load_nonexistent_file_raises_error(self):
        with pytest.raises(FileNotFoundError, match="File not found"):
            load_json("/nonexistent/path/file.json")

    def test_load_malformed_json_raises_error(self, temp_dir):
        file_path = os.path.join(temp_dir, "malformed.json")
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write("{invalid json")

        with pytest.raises(json.JSONDecodeError):
            load_json(file_path)


class TestSaveJson:
    """Test save_json function."""

    def test_save_creates_directory(self, temp_dir):
        file_path = os.path.join(temp_dir, "subdir", "store.json")
        save_json(file_path, {"a": "1"})
        assert load_json(file_path) == {"a": "1"}

    def test_save_unserializable_raises_error_and_cleans_up(self, temp_dir):
        file_path = os.path.join(temp_dir, "store.json")
        with pytest.raises(FileWriteError):
            save_json(file_path, {"bad": object()})

        assert [f for f in os.listdir(temp_dir) if f.startswith(".tmp_")] == []


class TestLockFile:
    """Test lock_file context manager."""

    def test_lock_and_release(self, temp_dir):
        file_path = os.path.join(temp_dir, "store.json")

        with lock_file(file_path):
            pass
        with lock_file(file_path):
            pass

    def test_lock_in_missing_directory_raises_error(self):
        with pytest.raises(FileNotFoundError, match="non-existent directory"):
            with lock_file("/nonexistent/file.json"):
                pass


class TestJsonKeyValueStore:
    """Test JsonKeyValueStore."""

    def test_set_creates_file(self, store_path):
        store = JsonKeyValueStore(store_path)
        asyncio.run(store.set("name", "Ana"))

        assert os.path.exists(store_path)
        assert store.get("name") == "Ana"

    def test_set_overwrites_value(self, store_path):
        store = JsonKeyValueStore(store_path)
        asyncio.run(store.set("name", "Ana"))
        asyncio.run(store.set("name", "Eva"))

        assert store.get("name") == "Eva"

    def test_concurrent_sets_keep_every_key(self, store_path):
        """Independent keys written at once all survive."""
        store = JsonKeyValueStore(store_path)

        async def write_all():
            await asyncio.gather(*[store.set(f"k{i}", str(i)) for i in range(8)])

        asyncio.run(write_all())

        assert store.get_all() == {f"k{i}": str(i) for i in range(8)}

    def test_separate_instances_on_fresh_file_keep_every_key(self, store_path):
        """Stores created per page run must not wipe each other's first writes."""
        stores = [JsonKeyValueStore(store_path) for _ in range(8)]

        async def write_all():
            await asyncio.gather(*[s.set(f"k{i}", str(i)) for i, s in enumerate(stores)])

        asyncio.run(write_all())

        assert JsonKeyValueStore(store_path).get_all() == {f"k{i}": str(i) for i in range(8)}

    def test_data_file_created_under_lock(self, temp_dir):
        """The lock can be taken before the data file exists."""
        file_path = os.path.join(temp_dir, "store.json")

        with lock_file(file_path):
            assert not os.path.exists(file_path)
            save_json(file_path, {"name": "Ana"})

        assert load_json(file_path) == {"name": "Ana"}

    def test_non_string_value_raises_error(self, store_path):
        store = JsonKeyValueStore(store_path)
        with pytest.raises(PersistenceError, match="must be a string"):
            asyncio.run(store.set("idNumber", 12345))

    def test_write_failure_raises_persistence_error(self, temp_dir):
        """A path under a regular file cannot be written."""
        blocker = os.path.join(temp_dir, "blocker")
        with open(blocker, "w", encoding="utf-8") as f:
            f.write("x")

        store = JsonKeyValueStore(os.path.join(blocker, "store.json"))
        with pytest.raises(PersistenceError):
            asyncio.run(store.set("name", "Ana"))

    def test_get_missing_file_returns_empty(self, store_path):
        store = JsonKeyValueStore(store_path)
        assert store.get_all() == {}
        assert store.get("name") is None

    def test_get_all_malformed_file_returns_empty(self, temp_dir):
        file_path = os.path.join(temp_dir, "store.json")
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write("{oops")

        assert JsonKeyValueStore(file_path).get_all() == {}
