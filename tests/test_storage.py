import pytest

from storage import JsonFileStore, MemoryStore, StorageError


def test_memory_store():
    store = MemoryStore({"settings": "{}"})
    store.set("projects", "[]")
    assert store.get("projects") == "[]"
    store.clear()
    assert store.get("projects") is None
    assert store.get("settings") is None


def test_json_file_store_round_trip(tmp_path):
    store = JsonFileStore(tmp_path / "data")
    assert store.get("projects") is None
    store.set("projects", '[{"id": "1"}]')
    assert (tmp_path / "data" / "projects.json").exists()
    assert JsonFileStore(tmp_path / "data").get("projects") == '[{"id": "1"}]'
    assert not list((tmp_path / "data").glob("*.tmp"))


def test_json_file_store_clear(tmp_path):
    store = JsonFileStore(tmp_path)
    store.set("projects", "[]")
    store.set("settings", "{}")
    store.clear()
    assert store.get("projects") is None
    assert store.get("settings") is None


def test_json_file_store_clear_leaves_other_files(tmp_path):
    unrelated = tmp_path / "unrelated.json"
    unrelated.write_text('{"keep": true}')
    store = JsonFileStore(tmp_path)
    store.set("projects", "[]")
    store.clear()
    assert store.get("projects") is None
    assert unrelated.read_text() == '{"keep": true}'


def test_json_file_store_clear_missing_directory(tmp_path):
    JsonFileStore(tmp_path / "never-created").clear()


def test_json_file_store_write_failure(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    store = JsonFileStore(blocker)
    with pytest.raises(StorageError):
        store.set("projects", "[]")
