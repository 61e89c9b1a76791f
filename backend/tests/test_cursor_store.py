import json

import pytest

from mintscan.utils.common import Utils
from mintscan.utils.cursor_store import CursorStore
from mintscan.utils.solana_error import PersistenceError


def test_advance_is_monotonic():
    cursor = CursorStore()
    cursor.initialize(100)

    assert cursor.advance(101)
    assert not cursor.advance(101)
    assert not cursor.advance(50)
    assert cursor.last_processed_slot == 101


def test_initialize_rejects_negative_slot():
    with pytest.raises(ValueError):
        CursorStore().initialize(-1)


def test_persist_and_load(cursor_file):
    cursor = CursorStore(cursor_file)
    assert cursor.load() is None
    assert not cursor.is_initialized

    cursor.initialize(500)
    cursor.advance(510)
    cursor.persist()

    data = json.loads(cursor_file.read_text())
    assert data["last_processed_slot"] == 510
    assert "updated_at" in data

    resumed = CursorStore(cursor_file)
    assert resumed.load() == 510
    assert resumed.is_initialized


@pytest.mark.parametrize("content", ["not json", "[]", '{"last_processed_slot": "12"}', '{"last_processed_slot": -3}'])
def test_invalid_cursor_file_is_ignored(cursor_file, content):
    cursor_file.write_text(content)
    cursor = CursorStore(cursor_file)
    assert cursor.load() is None
    assert not cursor.is_initialized


def test_reset_can_move_backwards(cursor_file):
    cursor = CursorStore(cursor_file)
    cursor.initialize(900)
    cursor.persist()
    cursor.reset(100)

    assert cursor.last_processed_slot == 100
    assert json.loads(cursor_file.read_text())["last_processed_slot"] == 900
    cursor.persist()
    assert json.loads(cursor_file.read_text())["last_processed_slot"] == 100


def test_persist_failure_raises(cursor_file, monkeypatch):
    def failing_write(path, data):
        raise OSError("read-only file system")

    monkeypatch.setattr(Utils, "write_json_atomic", failing_write)
    cursor = CursorStore(cursor_file)
    cursor.initialize(1)

    with pytest.raises(PersistenceError):
        cursor.persist()


def test_atomic_write_leaves_no_temp_files(tmp_path):
    target = tmp_path / "nested" / "cursor.json"
    Utils.write_json_atomic(target, {"last_processed_slot": 7})
    Utils.write_json_atomic(target, {"last_processed_slot": 8})

    assert Utils.read_json(target) == {"last_processed_slot": 8}
    assert [p.name for p in target.parent.iterdir()] == ["cursor.json"]
