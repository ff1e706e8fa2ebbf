from __future__ import annotations

import json
from pathlib import Path

from webp_images.metadata import (
    AttachmentMetadata,
    InMemoryMetadataProvider,
    JsonMetadataProvider,
    SizeSpec,
    parse_metadata,
)


def test_parse_host_record() -> None:
    metadata = parse_metadata(
        {
            "width": 2560,
            "file": "2024/01/photo-scaled.jpg",
            "original_image": "photo.jpg",
            "sizes": {
                "thumbnail": {"file": "photo-150x150.jpg", "width": 150, "height": 150, "mime-type": "image/jpeg"},
                "broken": {"width": 10},
            },
        }
    )
    assert metadata.original_image == "photo.jpg"
    assert metadata.sizes == {"thumbnail": SizeSpec("photo-150x150.jpg", 150, 150)}


def test_parse_without_sizes() -> None:
    assert parse_metadata({}) == AttachmentMetadata()


def test_in_memory_provider_accepts_records_and_models() -> None:
    provider = InMemoryMetadataProvider({"a.jpg": {"sizes": {}}})
    provider.set("b.jpg", AttachmentMetadata(original_image="b-orig.jpg"))
    assert provider.lookup("a.jpg") == AttachmentMetadata()
    assert provider.lookup("b.jpg").original_image == "b-orig.jpg"
    assert provider.lookup("c.jpg") is None


def test_json_provider(tmp_path: Path) -> None:
    index = tmp_path / "meta.json"
    index.write_text(
        json.dumps({"2024/01/a.jpg": {"sizes": {"thumb": {"filename": "a-10x10.jpg", "width": 10, "height": 10}}}}),
        encoding="utf-8",
    )
    provider = JsonMetadataProvider(index)
    assert provider.lookup("2024/01/a.jpg").sizes["thumb"].width == 10
    assert provider.lookup("2024/01/b.jpg") is None


def test_json_provider_missing_index(tmp_path: Path) -> None:
    assert JsonMetadataProvider(tmp_path / "none.json").lookup("a.jpg") is None
