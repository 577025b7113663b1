# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskwindow.config import Settings
from taskwindow.tasks.task_scheduler import TaskScheduler


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ("DATA_DIR", "DB_PATH", "COOLDOWN", "LOG_LEVEL", "LOG_DEBUG"):
        monkeypatch.delenv(f"TASKWINDOW_{name}", raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    s = Settings.from_env(load_dotenv=False)

    assert s.data_dir == Path(".local/taskwindow")
    assert s.db_path == Path(".local/taskwindow/tasks.sqlite3")
    assert s.cooldown == "60s"
    assert s.log_level == "INFO"
    assert s.log_debug is False


def test_env_overrides(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("TASKWINDOW_DATA_DIR", str(tmp_path))
    clean_env.setenv("TASKWINDOW_COOLDOWN", "5min")
    clean_env.setenv("TASKWINDOW_LOG_DEBUG", "yes")

    s = Settings.from_env(load_dotenv=False)

    assert s.db_path == tmp_path / "tasks.sqlite3"
    assert s.log_debug is True

    scheduler = TaskScheduler.from_settings(s)
    assert scheduler.cooldown_ms == 300_000
