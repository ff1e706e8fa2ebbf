from __future__ import annotations

import os

import pytest
from conftest import write_noise_png
from PIL import Image, features

from webp_images.artifacts import ArtifactState, artifact_state
from webp_images.core import ConversionEngine
from webp_images.encoder import PillowEncoder
from webp_images.errors import TransientEncodeError
from webp_images.metadata import InMemoryMetadataProvider
from webp_images.models import ConversionStatus

pytestmark = pytest.mark.skipif(not features.check("webp"), reason="Pillow built without WebP")


def test_pillow_engine_converts_png_and_thumbnail(config, uploads) -> None:
    source = write_noise_png(uploads / "noise.png")
    metadata = InMemoryMetadataProvider(
        {"2024/01/noise.png": {"sizes": {"thumbnail": {"file": "noise-50x50.png", "width": 50, "height": 50}}}}
    )
    engine = ConversionEngine(config, metadata=metadata)

    result = engine.convert(source)

    assert result.status is ConversionStatus.CONVERTED
    webp = uploads / "noise.webp"
    assert artifact_state(webp) is ArtifactState.REGULAR
    assert 0 < webp.stat().st_size < source.stat().st_size
    with Image.open(uploads / "noise-50x50.webp") as thumb:
        assert thumb.format == "WEBP"
        assert thumb.size == (50, 50)


def test_palette_image_is_encoded(tmp_path) -> None:
    source = tmp_path / "indexed.png"
    write_noise_png(tmp_path / "rgb.png", 64, 64)
    with Image.open(tmp_path / "rgb.png") as image:
        image.convert("P").save(source)

    encoder = PillowEncoder.open(source)
    encoder.set_quality(50)
    written = encoder.save(tmp_path / "indexed.webp")

    assert written > 0
    with Image.open(tmp_path / "indexed.webp") as output:
        assert output.mode in {"RGB", "RGBA"}


def test_open_rejects_mislabelled_file(tmp_path) -> None:
    bogus = tmp_path / "bogus.png"
    bogus.write_bytes(b"GIF89a not a png")
    with pytest.raises(TransientEncodeError):
        PillowEncoder.open(bogus)


def test_size_link_from_earlier_run_leaves_host_thumbnail_intact(config, uploads) -> None:
    source = write_noise_png(uploads / "photo.png")
    thumbnail = write_noise_png(uploads / "photo-150x150.png", 150, 150)
    original_thumbnail = thumbnail.read_bytes()
    os.symlink("photo-150x150.png", uploads / "photo-150x150.webp")
    metadata = InMemoryMetadataProvider(
        {"2024/01/photo.png": {"sizes": {"thumbnail": {"file": "photo-150x150.png", "width": 150, "height": 150}}}}
    )
    engine = ConversionEngine(config, metadata=metadata)

    result = engine.convert(source)

    assert result.status is ConversionStatus.CONVERTED
    assert thumbnail.read_bytes() == original_thumbnail
    assert artifact_state(uploads / "photo-150x150.webp") is ArtifactState.REGULAR


def test_decompression_bomb_leaves_fallback_link(config, uploads, monkeypatch) -> None:
    source = write_noise_png(uploads / "big.png", 300, 300)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    engine = ConversionEngine(config, metadata=InMemoryMetadataProvider({}))

    result = engine.convert(source)

    assert result.status is ConversionStatus.FAILED
    assert os.readlink(uploads / "big.webp") == "big.png"
