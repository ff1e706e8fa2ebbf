from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from webp_images.config import AppConfig, PathsConfig, ScheduleConfig, dump_config, load_config
from webp_images.errors import ConfigurationError


def write_toml(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "absent.toml")
    assert config.extensions == ("jpg", "jpeg", "png")
    assert config.quality.source == 92
    assert config.schedule.recurrence == "daily"


def test_load_sections(tmp_path: Path) -> None:
    path = write_toml(
        tmp_path / "config.toml",
        """
[runtime]
state_dir = "state"
niceness = 0

[paths]
upload_dir = "wp-content/uploads"
roots = ["*/*", "extra"]
extensions = ["JPG", ".png", "svg", "gif"]

[quality]
editor_default = 75
artifact = 70

[schedule]
time = "04:30"
recurrence = "weekly"

[metadata]
index_file = "meta.json"
""",
    )
    config = load_config(path)
    assert config.runtime.state_dir == Path("state")
    assert config.runtime.niceness == 0
    assert config.paths.roots == ("*/*", "extra")
    assert config.extensions == ("jpg", "png", "gif")
    assert config.quality.artifact == 70
    assert config.metadata.index_file == Path("meta.json")
    assert json.loads(dump_config(config))["schedule"] == {"time": "04:30", "recurrence": "weekly"}


def test_svg_is_always_excluded() -> None:
    config = AppConfig(paths=PathsConfig(extensions=("svg", "png")))
    assert config.extensions == ("png",)


@pytest.mark.parametrize("body", ["[quality]\nartifact = 0\n", "[quality]\nsource = 101\n"])
def test_out_of_range_quality_is_rejected(tmp_path: Path, body: str) -> None:
    with pytest.raises(ConfigurationError):
        load_config(write_toml(tmp_path / "config.toml", body))


def test_invalid_schedule_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_config(write_toml(tmp_path / "config.toml", '[schedule]\nrecurrence = "monthly"\n'))


def test_next_run_is_strictly_in_the_future() -> None:
    schedule = ScheduleConfig(time="03:00", recurrence="daily")
    assert schedule.next_run(datetime(2026, 10, 19, 2, 0)) == datetime(2026, 10, 19, 3, 0)
    assert schedule.next_run(datetime(2026, 10, 19, 3, 0)) == datetime(2026, 10, 20, 3, 0)
    hourly = ScheduleConfig(time="03:15", recurrence="hourly")
    assert hourly.next_run(datetime(2026, 10, 19, 9, 20)) == datetime(2026, 10, 19, 10, 15)


def test_resolve_roots_expands_year_month_dirs(tmp_path: Path) -> None:
    uploads = tmp_path / "uploads"
    (uploads / "2024" / "02").mkdir(parents=True)
    (uploads / "2024" / "01").mkdir(parents=True)
    (uploads / "sites" / "2").mkdir(parents=True)
    (uploads / "2024" / "notes.txt").write_text("x")

    paths = PathsConfig(upload_dir=uploads, multisite=True)

    assert paths.resolve_roots() == [
        uploads / "2024" / "01",
        uploads / "2024" / "02",
        uploads / "sites" / "2",
    ]
