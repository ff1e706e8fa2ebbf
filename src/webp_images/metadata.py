"""Size metadata describing the thumbnail variants of an original image."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Protocol

logger = logging.getLogger("webp_images.metadata")


@dataclass(frozen=True, slots=True)
class SizeSpec:
    filename: str
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class AttachmentMetadata:
    sizes: Mapping[str, SizeSpec] = field(default_factory=dict)
    original_image: str | None = None


class MetadataProvider(Protocol):
    def lookup(self, relative_path: str) -> AttachmentMetadata | None:  # pragma: no cover - interface
        ...


def parse_size(data: Mapping[str, object]) -> SizeSpec:
    filename = data.get("filename", data.get("file"))
    if not filename:
        raise ValueError("size record is missing a filename")
    return SizeSpec(
        filename=str(filename),
        width=int(data["width"]),  # type: ignore[arg-type]
        height=int(data["height"]),  # type: ignore[arg-type]
    )


def parse_metadata(data: Mapping[str, object]) -> AttachmentMetadata:
    """Build metadata from the host's record shape.

    Accepts ``file`` or ``filename`` for each size; records that cannot be
    parsed are dropped with a warning rather than failing the whole entry.
    """
    raw_sizes = data.get("sizes") or {}
    sizes: dict[str, SizeSpec] = {}
    if isinstance(raw_sizes, Mapping):
        for name, record in raw_sizes.items():
            if not isinstance(record, Mapping):
                continue
            try:
                sizes[str(name)] = parse_size(record)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Ignoring size %r: %s", name, exc)
    original = data.get("original_image")
    return AttachmentMetadata(sizes=sizes, original_image=str(original) if original else None)


class InMemoryMetadataProvider:
    def __init__(self, records: Mapping[str, AttachmentMetadata | Mapping[str, object]] | None = None) -> None:
        self._records: dict[str, AttachmentMetadata] = {}
        for key, value in (records or {}).items():
            self.set(key, value)

    def set(self, relative_path: str, value: AttachmentMetadata | Mapping[str, object]) -> None:
        if not isinstance(value, AttachmentMetadata):
            value = parse_metadata(value)
        self._records[relative_path] = value

    def lookup(self, relative_path: str) -> AttachmentMetadata | None:
        return self._records.get(relative_path)


class JsonMetadataProvider:
    """Key-value metadata store backed by a JSON object keyed by relative path."""

    def __init__(self, index_file: Path) -> None:
        self._index_file = index_file
        self._records: dict[str, Mapping[str, object]] | None = None

    def _load(self) -> dict[str, Mapping[str, object]]:
        if self._records is None:
            if not self._index_file.exists():
                logger.warning("Metadata index %s not found", self._index_file)
                self._records = {}
            else:
                payload = json.loads(self._index_file.read_text(encoding="utf-8"))
                self._records = payload if isinstance(payload, dict) else {}
        return self._records

    def lookup(self, relative_path: str) -> AttachmentMetadata | None:
        record = self._load().get(relative_path)
        if not isinstance(record, Mapping):
            return None
        return parse_metadata(record)


__all__ = [
    "SizeSpec",
    "AttachmentMetadata",
    "MetadataProvider",
    "InMemoryMetadataProvider",
    "JsonMetadataProvider",
    "parse_metadata",
    "parse_size",
]
