"""
progress_store
--------------
Best-effort persistence of one ``ProgressRecord`` per plan.

Reads that fail fall back to the default (unstarted) record and writes that
fail are dropped; both are logged. Progress tracking is not a system of
record, so a broken store degrades the session instead of ending it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from progress_core import ProgressRecord, reset


logger = logging.getLogger(__name__)

KEY_PREFIX = "plan:"


class StoreUnavailable(RuntimeError):
    """Raised by store backends when the underlying storage cannot be used."""


def storage_key(plan_id: str) -> str:
    return f"{KEY_PREFIX}{plan_id}"


# -----------------------------
# Serialization
# -----------------------------


def record_to_dict(record: ProgressRecord) -> Dict[str, Any]:
    return {
        "startedAt": record.started_at.isoformat() if record.started_at else None,
        "currentWeek": record.current_week,
        "completedWeeks": record.sorted_weeks(),
    }


def _parse_timestamp(raw: Any) -> Optional[datetime]:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValueError(f"startedAt must be an ISO timestamp, got {raw!r}")
    # fromisoformat before 3.11 does not accept a trailing Z
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def record_from_dict(data: Any) -> ProgressRecord:
    if not isinstance(data, dict):
        raise ValueError("progress record must be a JSON object")
    started_at = _parse_timestamp(data.get("startedAt"))
    current_week = data.get("currentWeek") or 0
    if isinstance(current_week, bool) or not isinstance(current_week, int):
        raise ValueError(f"currentWeek must be an integer, got {current_week!r}")
    raw_weeks = data.get("completedWeeks") or []
    if not isinstance(raw_weeks, list):
        raise ValueError("completedWeeks must be a list")
    weeks = set()
    for week in raw_weeks:
        if isinstance(week, bool) or not isinstance(week, int):
            raise ValueError(f"completed week must be an integer, got {week!r}")
        weeks.add(week)
    return ProgressRecord(started_at=started_at, current_week=current_week, completed_weeks=frozenset(weeks))


# -----------------------------
# Stores
# -----------------------------


class ProgressStore:
    """
    Keyed record store. Backends implement ``_read`` / ``_write`` /
    ``_delete`` on raw JSON-compatible dicts and raise ``StoreUnavailable``
    on failure; this class owns the fallback policy.
    """

    def load(self, plan_id: str) -> ProgressRecord:
        key = storage_key(plan_id)
        try:
            raw = self._read(key)
            if raw is None:
                return reset()
            return record_from_dict(raw)
        except (StoreUnavailable, ValueError) as err:
            logger.warning("Could not load progress for plan %s, using defaults: %s", plan_id, err)
            return reset()

    def save(self, plan_id: str, record: ProgressRecord) -> None:
        try:
            self._write(storage_key(plan_id), record_to_dict(record))
        except StoreUnavailable as err:
            logger.warning("Could not save progress for plan %s, change kept for this session only: %s", plan_id, err)

    def clear(self, plan_id: str) -> None:
        try:
            self._delete(storage_key(plan_id))
        except StoreUnavailable as err:
            logger.warning("Could not clear progress for plan %s: %s", plan_id, err)

    def _read(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def _write(self, key: str, value: Dict[str, Any]) -> None:
        raise NotImplementedError

    def _delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryProgressStore(ProgressStore):
    def __init__(self) -> None:
        self.data: Dict[str, Dict[str, Any]] = {}

    def _read(self, key: str) -> Optional[Dict[str, Any]]:
        value = self.data.get(key)
        return dict(value) if value is not None else None

    def _write(self, key: str, value: Dict[str, Any]) -> None:
        self.data[key] = dict(value)

    def _delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileProgressStore(ProgressStore):
    """All plans in one JSON document: ``{"plan:<id>": {...record...}}``."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as err:
            raise StoreUnavailable(f"{self.path}: {err}") from err
        if not isinstance(data, dict):
            raise StoreUnavailable(f"{self.path}: expected a JSON object")
        return data

    def _write_all(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, indent=2, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as err:
            raise StoreUnavailable(f"{self.path}: {err}") from err

    def _read(self, key: str) -> Optional[Dict[str, Any]]:
        return self._read_all().get(key)

    def _write(self, key: str, value: Dict[str, Any]) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _delete(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)


__all__ = [
    "JsonFileProgressStore",
    "MemoryProgressStore",
    "ProgressStore",
    "StoreUnavailable",
    "record_from_dict",
    "record_to_dict",
    "storage_key",
]
