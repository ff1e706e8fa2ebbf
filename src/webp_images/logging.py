from __future__ import annotations

import csv
import json
import time
from dataclasses import asdict, dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any

from .utils import atomic_write


SUMMARY_HEADER = [
    "batch_id",
    "timestamp",
    "total",
    "converted",
    "skipped",
    "failures",
    "warnings",
]


@dataclass(slots=True)
class RunLogEntry:
    run_id: str
    source: str
    target: str
    status: str
    warnings: list[str]
    reason: str | None
    bytes_in: int
    bytes_out: int
    elapsed_ms: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RunLogger:
    def __init__(self, log_file: Path) -> None:
        self._log_file = log_file

    def append(self, entry: RunLogEntry) -> None:
        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with self._log_file.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")


@dataclass(slots=True)
class BatchSummary:
    timestamp: float = field(default_factory=time.time)
    total: int = 0
    converted: int = 0
    skipped: int = 0
    failures: int = 0
    warnings: dict[str, int] = field(default_factory=dict)

    def as_row(self, batch_id: str) -> list[str]:
        warning_json = json.dumps(self.warnings, sort_keys=True)
        return [
            batch_id,
            time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.timestamp)),
            str(self.total),
            str(self.converted),
            str(self.skipped),
            str(self.failures),
            warning_json,
        ]


def write_summary_csv(path: Path, header: list[str], rows: list[list[str]]) -> None:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    atomic_write(path, buffer.getvalue())


def append_summary_row(path: Path, summary: BatchSummary, batch_id: str) -> None:
    rows: list[list[str]] = []
    header = SUMMARY_HEADER
    if path.exists():
        with path.open("r", encoding="utf-8", newline="") as handle:
            reader = list(csv.reader(handle))
        if reader:
            header, rows = reader[0], reader[1:]
    rows.append(summary.as_row(batch_id))
    write_summary_csv(path, header, rows)


__all__ = [
    "RunLogEntry",
    "RunLogger",
    "BatchSummary",
    "SUMMARY_HEADER",
    "write_summary_csv",
    "append_summary_row",
]
