"""Domain models for the conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .logging import BatchSummary


class ConversionStatus(str, Enum):
    CONVERTED = "converted"
    SKIPPED_FRESH = "skipped_fresh"
    SKIPPED_NO_METADATA = "skipped_no_metadata"
    SKIPPED_UNSUPPORTED_FORMAT = "skipped_unsupported_format"
    FAILED = "failed"

    @property
    def skipped(self) -> bool:
        return self.value.startswith("skipped")


@dataclass(slots=True)
class ConversionResult:
    """Outcome of converting one original and its size variants."""

    source: Path
    target: Path
    status: ConversionStatus
    reason: str | None = None
    warnings: list[str] = field(default_factory=list)
    bytes_in: int = 0
    bytes_out: int = 0
    sizes: dict[str, Path] = field(default_factory=dict)

    @property
    def converted(self) -> bool:
        return self.status is ConversionStatus.CONVERTED


@dataclass(slots=True)
class BatchResult:
    """Aggregate results for one batch run."""

    run_id: str
    results: list[ConversionResult]
    summary: BatchSummary


__all__ = [
    "ConversionStatus",
    "ConversionResult",
    "BatchResult",
]
