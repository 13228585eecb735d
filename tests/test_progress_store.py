from datetime import datetime, timedelta, timezone
import json
import logging
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from progress_core import ProgressRecord, reset
from progress_store import (
    JsonFileProgressStore,
    MemoryProgressStore,
    ProgressStore,
    StoreUnavailable,
    record_from_dict,
    record_to_dict,
    storage_key,
)


BASE_START = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


def build_record(**overrides) -> ProgressRecord:
    values = dict(started_at=BASE_START, current_week=3, completed_weeks=frozenset({2, 1}))
    values.update(overrides)
    return ProgressRecord(**values)


class BrokenStore(ProgressStore):
    def _read(self, key):
        raise StoreUnavailable("quota exceeded")

    def _write(self, key, value):
        raise StoreUnavailable("quota exceeded")

    def _delete(self, key):
        raise StoreUnavailable("quota exceeded")


def test_record_to_dict_uses_storage_shape() -> None:
    payload = record_to_dict(build_record())

    assert payload == {
        "startedAt": "2025-01-06T09:00:00+00:00",
        "currentWeek": 3,
        "completedWeeks": [1, 2],
    }


def test_record_from_dict_accepts_browser_timestamps() -> None:
    record = record_from_dict({"startedAt": "2025-01-06T09:00:00.000Z", "currentWeek": 2, "completedWeeks": [1]})

    assert record.started_at == BASE_START
    assert record.current_week == 2
    assert record.completed_weeks == frozenset({1})


def test_record_from_dict_treats_naive_timestamps_as_utc() -> None:
    record = record_from_dict({"startedAt": "2025-01-06T09:00:00", "currentWeek": 1, "completedWeeks": []})

    assert record.started_at == BASE_START


def test_record_from_dict_fills_missing_fields() -> None:
    assert record_from_dict({}) == reset()
    assert record_from_dict({"startedAt": None, "currentWeek": None, "completedWeeks": None}) == reset()


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"startedAt": 12345},
        {"startedAt": "not a date"},
        {"currentWeek": "2"},
        {"completedWeeks": "1,2"},
        {"completedWeeks": [1, "2"]},
    ],
)
def test_record_from_dict_rejects_malformed_data(payload) -> None:
    with pytest.raises(ValueError):
        record_from_dict(payload)


def test_storage_key_prefixes_plan_id() -> None:
    assert storage_key("unbroke-1") == "plan:unbroke-1"


def test_memory_store_returns_default_for_unknown_plan() -> None:
    assert MemoryProgressStore().load("unbroke-1") == reset()


def test_memory_store_round_trip_and_clear() -> None:
    store = MemoryProgressStore()
    record = build_record()

    store.save("unbroke-1", record)
    assert store.load("unbroke-1") == record
    assert "plan:unbroke-1" in store.data

    store.clear("unbroke-1")
    assert store.load("unbroke-1") == reset()


def test_json_store_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "progress.json"
    record = build_record(started_at=BASE_START + timedelta(days=1))

    JsonFileProgressStore(path).save("retraining-1", record)
    JsonFileProgressStore(path).save("unbroke-1", reset())

    reloaded = JsonFileProgressStore(path)
    assert reloaded.load("retraining-1") == record
    assert reloaded.load("unbroke-1") == reset()
    assert set(json.loads(path.read_text(encoding="utf-8"))) == {"plan:retraining-1", "plan:unbroke-1"}


def test_json_store_clear_removes_only_that_plan(tmp_path: Path) -> None:
    store = JsonFileProgressStore(tmp_path / "progress.json")
    store.save("a", build_record())
    store.save("b", build_record(current_week=1))

    store.clear("a")

    assert store.load("a") == reset()
    assert store.load("b").current_week == 1


def test_corrupt_file_falls_back_to_default(tmp_path: Path, caplog) -> None:
    path = tmp_path / "progress.json"
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="progress_store"):
        record = JsonFileProgressStore(path).load("unbroke-1")

    assert record == reset()
    assert "unbroke-1" in caplog.text


def test_malformed_record_falls_back_to_default(tmp_path: Path, caplog) -> None:
    path = tmp_path / "progress.json"
    path.write_text(json.dumps({"plan:unbroke-1": {"currentWeek": "two"}}), encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="progress_store"):
        assert JsonFileProgressStore(path).load("unbroke-1") == reset()

    assert "using defaults" in caplog.text


def test_failed_save_is_logged_and_dropped(caplog) -> None:
    store = BrokenStore()

    with caplog.at_level(logging.WARNING, logger="progress_store"):
        store.save("unbroke-1", build_record())
        store.clear("unbroke-1")

    assert store.load("unbroke-1") == reset()
    assert "session only" in caplog.text


def test_unwritable_path_drops_write(tmp_path: Path, caplog) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonFileProgressStore(blocker / "progress.json")

    with caplog.at_level(logging.WARNING, logger="progress_store"):
        store.save("unbroke-1", build_record())

    assert store.load("unbroke-1") == reset()
    assert "Could not save" in caplog.text
