from __future__ import annotations

import json

import pytest

from kahoot_quiz.quizzer.weakness import (
    WEAKNESS_KEY,
    JsonFileStore,
    MemoryStore,
    StoreError,
    WeaknessTracker,
)


def test_tracker_load_defaults_to_empty(memory_store):
    assert WeaknessTracker(memory_store).load() == set()


def test_tracker_round_trips_as_json_array(memory_store):
    tracker = WeaknessTracker(memory_store)

    tracker.save({"b", "a", "a"})

    assert json.loads(memory_store.get(WEAKNESS_KEY)) == ["a", "b"]
    assert tracker.load() == {"a", "b"}


@pytest.mark.parametrize("payload", ["not json", '{"a": 1}', "42"])
def test_tracker_ignores_corrupt_payload(payload):
    store = MemoryStore({WEAKNESS_KEY: payload})
    assert WeaknessTracker(store).load() == set()


def test_tracker_drops_non_string_entries():
    store = MemoryStore({WEAKNESS_KEY: json.dumps(["ok", 3, None])})
    assert WeaknessTracker(store).load() == {"ok"}


def test_tracker_clear(memory_store):
    tracker = WeaknessTracker(memory_store)
    tracker.save({"x"})
    tracker.clear()
    assert tracker.load() == set()
    assert memory_store.get(WEAKNESS_KEY) == "[]"


def test_json_file_store_persists_between_instances(tmp_path):
    path = tmp_path / "state" / "weaknesses.json"
    JsonFileStore(path).set("k", "v")
    JsonFileStore(path).set("other", "w")

    store = JsonFileStore(path)
    assert store.get("k") == "v"
    assert store.get("other") == "w"
    assert store.get("missing") is None
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "k": "v",
        "other": "w",
    }


def test_json_file_store_missing_file_reads_as_empty(tmp_path):
    assert JsonFileStore(tmp_path / "nope.json").get("k") is None


def test_json_file_store_rejects_corrupt_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("[1, 2", encoding="utf-8")

    with pytest.raises(StoreError):
        JsonFileStore(path).get("k")


def test_json_file_store_rejects_non_object(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(StoreError):
        JsonFileStore(path).set("k", "v")


def test_tracker_over_file_store_keeps_unicode(tmp_path):
    tracker = WeaknessTracker(JsonFileStore(tmp_path / "w.json"))
    tracker.save({"¿Qué color es el cielo?"})
    assert tracker.load() == {"¿Qué color es el cielo?"}
