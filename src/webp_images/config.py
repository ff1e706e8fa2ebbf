from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, time as dt_time, timedelta
from pathlib import Path
from typing import Iterable, Mapping

from .constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_EXTENSIONS,
    DEFAULT_METHOD,
    DEFAULT_SOURCE_QUALITY,
    EXCLUDED_EXTENSIONS,
)
from .errors import ConfigurationError


RECURRENCES: dict[str, timedelta] = {
    "hourly": timedelta(hours=1),
    "twicedaily": timedelta(hours=12),
    "daily": timedelta(days=1),
    "weekly": timedelta(weeks=1),
}


@dataclass(slots=True)
class RuntimeConfig:
    state_dir: Path = Path(".webp-images")
    log_file: str = "log.jsonl"
    summary_csv: str = "summary.csv"
    niceness: int = 19
    enable_local_api: bool = False


@dataclass(slots=True)
class PathsConfig:
    upload_dir: Path = Path("uploads")
    roots: tuple[str, ...] = ("*/*",)
    multisite: bool = False
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    def resolve_roots(self) -> list[Path]:
        """Expand the root patterns into existing directories, in a stable order."""
        patterns = list(self.roots)
        if self.multisite and (self.upload_dir / "sites").is_dir():
            patterns.append("sites/*")
        found: list[Path] = []
        for pattern in patterns:
            for candidate in sorted(self.upload_dir.glob(pattern)):
                if candidate.is_dir() and candidate not in found:
                    found.append(candidate)
        return found


@dataclass(slots=True)
class QualityConfig:
    editor_default: int | None = None
    artifact: int | None = None
    source: int = DEFAULT_SOURCE_QUALITY
    method: int = DEFAULT_METHOD


@dataclass(slots=True)
class ScheduleConfig:
    time: str = "03:00"
    recurrence: str = "daily"

    def time_of_day(self) -> dt_time:
        try:
            return dt_time.fromisoformat(self.time)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid schedule time: {self.time!r}") from exc

    def interval(self) -> timedelta:
        try:
            return RECURRENCES[self.recurrence]
        except KeyError as exc:
            raise ConfigurationError(f"Unknown recurrence: {self.recurrence!r}") from exc

    def next_run(self, now: datetime | None = None) -> datetime:
        now = now or datetime.now()
        candidate = datetime.combine(now.date(), self.time_of_day(), tzinfo=now.tzinfo)
        step = self.interval()
        while candidate <= now:
            candidate += step
        return candidate


@dataclass(slots=True)
class MetadataConfig:
    index_file: Path | None = None


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    api: APIConfig = field(default_factory=APIConfig)

    @property
    def extensions(self) -> tuple[str, ...]:
        return normalize_extensions(self.paths.extensions)


def normalize_extensions(values: Iterable[str]) -> tuple[str, ...]:
    seen: list[str] = []
    for value in values:
        ext = str(value).strip().lower().lstrip(".")
        if ext and ext not in EXCLUDED_EXTENSIONS and ext not in seen:
            seen.append(ext)
    return tuple(seen)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _quality_value(value: object | None, name: str) -> int | None:
    if value is None:
        return None
    quality = int(value)  # type: ignore[arg-type]
    if not 1 <= quality <= 100:
        raise ConfigurationError(f"quality.{name} must be between 1 and 100, got {quality}")
    return quality


def _tuple_of_strings(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    if not value:
        return tuple(default)
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise ConfigurationError(f"Expected a list of strings, got {value!r}")


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    return RuntimeConfig(
        state_dir=Path(str(data.get("state_dir", ".webp-images"))),
        log_file=str(data.get("log_file", "log.jsonl")),
        summary_csv=str(data.get("summary_csv", "summary.csv")),
        niceness=int(data.get("niceness", 19)),  # type: ignore[arg-type]
        enable_local_api=bool(data.get("enable_local_api", False)),
    )


def _build_paths(data: Mapping[str, object] | None) -> PathsConfig:
    if not data:
        return PathsConfig()
    return PathsConfig(
        upload_dir=Path(str(data.get("upload_dir", "uploads"))),
        roots=_tuple_of_strings(data.get("roots"), ("*/*",)),
        multisite=bool(data.get("multisite", False)),
        extensions=normalize_extensions(_tuple_of_strings(data.get("extensions"), DEFAULT_EXTENSIONS)),
    )


def _build_quality(data: Mapping[str, object] | None) -> QualityConfig:
    if not data:
        return QualityConfig()
    source = _quality_value(data.get("source", DEFAULT_SOURCE_QUALITY), "source")
    return QualityConfig(
        editor_default=_quality_value(data.get("editor_default"), "editor_default"),
        artifact=_quality_value(data.get("artifact"), "artifact"),
        source=source if source is not None else DEFAULT_SOURCE_QUALITY,
        method=int(data.get("method", DEFAULT_METHOD)),  # type: ignore[arg-type]
    )


def _build_schedule(data: Mapping[str, object] | None) -> ScheduleConfig:
    if not data:
        return ScheduleConfig()
    schedule = ScheduleConfig(
        time=str(data.get("time", "03:00")),
        recurrence=str(data.get("recurrence", "daily")),
    )
    schedule.time_of_day()
    schedule.interval()
    return schedule


def _build_metadata(data: Mapping[str, object] | None) -> MetadataConfig:
    if not data or not data.get("index_file"):
        return MetadataConfig()
    return MetadataConfig(index_file=Path(str(data["index_file"])))


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))  # type: ignore[arg-type]


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name)
    return value if isinstance(value, Mapping) else None


def load_config(path: Path | None = None) -> AppConfig:
    path = path or DEFAULT_CONFIG_PATH
    raw = _read_toml(path)
    return AppConfig(
        runtime=_build_runtime(_section(raw, "runtime")),
        paths=_build_paths(_section(raw, "paths")),
        quality=_build_quality(_section(raw, "quality")),
        schedule=_build_schedule(_section(raw, "schedule")),
        metadata=_build_metadata(_section(raw, "metadata")),
        api=_build_api(_section(raw, "api")),
    )


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "state_dir": str(config.runtime.state_dir),
            "log_file": config.runtime.log_file,
            "summary_csv": config.runtime.summary_csv,
            "niceness": config.runtime.niceness,
            "enable_local_api": config.runtime.enable_local_api,
        },
        "paths": {
            "upload_dir": str(config.paths.upload_dir),
            "roots": list(config.paths.roots),
            "multisite": config.paths.multisite,
            "extensions": list(config.extensions),
        },
        "quality": {
            "editor_default": config.quality.editor_default,
            "artifact": config.quality.artifact,
            "source": config.quality.source,
            "method": config.quality.method,
        },
        "schedule": {
            "time": config.schedule.time,
            "recurrence": config.schedule.recurrence,
        },
        "metadata": {
            "index_file": str(config.metadata.index_file) if config.metadata.index_file else None,
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2)


__all__ = [
    "AppConfig",
    "RuntimeConfig",
    "PathsConfig",
    "QualityConfig",
    "ScheduleConfig",
    "MetadataConfig",
    "APIConfig",
    "load_config",
    "dump_config",
    "normalize_extensions",
]
