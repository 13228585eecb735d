from pathlib import Path
import logging
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from settings import TrackerSettings, configure_logging


def test_defaults(monkeypatch) -> None:
    for name in ("STORE_PATH", "REFRESH_SECONDS", "DEFAULT_PLAN_ID"):
        monkeypatch.delenv(f"PLAN_TRACKER_{name}", raising=False)
    settings = TrackerSettings(_env_file=None)

    assert settings.store_path == Path("data/plan_progress.json")
    assert settings.refresh_seconds == 60
    assert settings.default_plan_id == "unbroke-1"


def test_environment_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PLAN_TRACKER_STORE_PATH", str(tmp_path / "p.json"))
    monkeypatch.setenv("PLAN_TRACKER_REFRESH_SECONDS", "5")

    settings = TrackerSettings(_env_file=None)

    assert settings.store_path == tmp_path / "p.json"
    assert settings.refresh_seconds == 5


def test_refresh_interval_must_be_positive(monkeypatch) -> None:
    monkeypatch.setenv("PLAN_TRACKER_REFRESH_SECONDS", "0")

    with pytest.raises(ValueError):
        TrackerSettings(_env_file=None)


def test_configure_logging_accepts_unknown_level(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging(TrackerSettings(_env_file=None, log_level="chatty"))
    configure_logging(TrackerSettings(_env_file=None, log_level="debug"))

    assert calls[0]["level"] == logging.INFO
    assert calls[1]["level"] == logging.DEBUG
