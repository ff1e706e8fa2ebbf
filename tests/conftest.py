from __future__ import annotations

import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import pytest
from PIL import Image

from webp_images.config import AppConfig
from webp_images.errors import TransientEncodeError
from webp_images.metadata import SizeSpec
from webp_images.paths import sized_name


def build_config(tmp_path: Path) -> AppConfig:
    config = AppConfig()
    config.runtime.state_dir = tmp_path / "state"
    config.runtime.niceness = 0
    config.paths.upload_dir = tmp_path / "uploads"
    config.paths.roots = ("*/*",)
    return config


def write_original(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\xff" * size)
    return path


def write_noise_png(path: Path, width: int = 200, height: int = 200) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = random.Random(0).randbytes(width * height * 3)
    Image.frombytes("RGB", (width, height), data).save(path, format="PNG", compress_level=0)
    return path


@dataclass
class FakeEncoderFactory:
    """Stands in for the image engine; writes filler bytes of a chosen size."""

    ratio: float = 0.5
    output_sizes: dict[str, int] = field(default_factory=dict)
    fail_open: set[str] = field(default_factory=set)
    fail_save: set[str] = field(default_factory=set)
    explode: set[str] = field(default_factory=set)
    unsupported: set[str] = field(default_factory=set)
    failing_sizes: set[str] = field(default_factory=set)
    opened: list[Path] = field(default_factory=list)
    saves: list[tuple[Path, int]] = field(default_factory=list)

    def __call__(self, path: Path) -> "FakeEncoder":
        self.opened.append(path)
        if path.name in self.explode:
            raise RuntimeError(f"engine blew up on {path.name}")
        if path.name in self.fail_open:
            raise TransientEncodeError(f"Cannot open {path}")
        return FakeEncoder(path, self)


class FakeEncoder:
    def __init__(self, source: Path, factory: FakeEncoderFactory) -> None:
        self.source = source
        self._factory = factory
        self.quality = 0

    def supports_format(self, fmt: str) -> bool:
        return self.source.name not in self._factory.unsupported

    def set_quality(self, quality: int) -> None:
        self.quality = quality

    def save(self, path: Path) -> int:
        self._factory.saves.append((path, self.quality))
        if self.source.name in self._factory.fail_save:
            path.write_bytes(b"")
            raise TransientEncodeError(f"Cannot save {path}")
        default = max(1, int(self.source.stat().st_size * self._factory.ratio))
        size = self._factory.output_sizes.get(path.name, default)
        path.write_bytes(b"\x01" * size)
        return size

    def derive_sizes(self, specs: Mapping[str, SizeSpec]) -> dict[str, Path | Exception]:
        outputs: dict[str, Path | Exception] = {}
        for name, spec in specs.items():
            if name in self._factory.failing_sizes:
                outputs[name] = TransientEncodeError(f"resize {name} failed")
                continue
            target = sized_name(self.source, spec.width, spec.height)
            self._factory.saves.append((target, self.quality))
            target.write_bytes(b"\x02" * 10)
            outputs[name] = target
        return outputs


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return build_config(tmp_path)


@pytest.fixture
def uploads(config: AppConfig) -> Path:
    month = config.paths.upload_dir / "2024" / "01"
    month.mkdir(parents=True)
    return month


@pytest.fixture
def encoder_factory() -> FakeEncoderFactory:
    return FakeEncoderFactory()
