"""Image engine seam and its Pillow implementation."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping, Protocol

from PIL import Image, ImageOps, UnidentifiedImageError, features

from .constants import DEFAULT_ARTIFACT_QUALITY, DEFAULT_METHOD, DERIVED_FORMAT
from .detection import DetectionError, detect_image_type
from .errors import TransientEncodeError
from .metadata import SizeSpec
from .paths import sized_name


class Encoder(Protocol):
    source: Path

    def supports_format(self, fmt: str) -> bool:  # pragma: no cover - interface
        ...

    def set_quality(self, quality: int) -> None:  # pragma: no cover - interface
        ...

    def save(self, path: Path) -> int:  # pragma: no cover - interface
        ...

    def derive_sizes(self, specs: Mapping[str, SizeSpec]) -> dict[str, Path | Exception]:  # pragma: no cover - interface
        ...


EncoderFactory = Callable[[Path], Encoder]


class PillowEncoder:
    def __init__(self, source: Path, image: Image.Image, *, method: int = DEFAULT_METHOD) -> None:
        self.source = source
        self._image = image
        self._quality = DEFAULT_ARTIFACT_QUALITY
        self._method = method

    @classmethod
    def open(cls, path: Path, *, method: int = DEFAULT_METHOD) -> "PillowEncoder":
        try:
            detect_image_type(path)
        except DetectionError as exc:
            raise TransientEncodeError(str(exc)) from exc
        try:
            with Image.open(path) as handle:
                image = ImageOps.exif_transpose(handle)
                image.load()
        except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as exc:
            raise TransientEncodeError(f"Cannot open {path}: {exc}") from exc
        return cls(path, image, method=method)

    def supports_format(self, fmt: str) -> bool:
        if fmt.lower() != DERIVED_FORMAT:
            return False
        return bool(features.check(DERIVED_FORMAT))

    def set_quality(self, quality: int) -> None:
        self._quality = max(1, min(int(quality), 100))

    def save(self, path: Path) -> int:
        self._write(self._image, path)
        return path.stat().st_size

    def derive_sizes(self, specs: Mapping[str, SizeSpec]) -> dict[str, Path | Exception]:
        """Write one resized output per spec, named after the source stem."""
        outputs: dict[str, Path | Exception] = {}
        for name, spec in specs.items():
            target = sized_name(self.source, spec.width, spec.height)
            try:
                resized = ImageOps.fit(self._image, (spec.width, spec.height), Image.Resampling.LANCZOS)
                self._write(resized, target)
            except (OSError, ValueError, TransientEncodeError) as exc:
                outputs[name] = exc
                continue
            outputs[name] = target
        return outputs

    def _write(self, image: Image.Image, path: Path) -> None:
        prepared = _webp_ready(image)
        try:
            prepared.save(path, format="WEBP", quality=self._quality, method=self._method)
        except (OSError, ValueError, KeyError) as exc:
            raise TransientEncodeError(f"Cannot save {path}: {exc}") from exc


def _webp_ready(image: Image.Image) -> Image.Image:
    if image.mode in {"RGB", "RGBA"}:
        return image
    if image.mode in {"P", "PA", "LA"} or "transparency" in image.info:
        return image.convert("RGBA")
    return image.convert("RGB")


def pillow_factory(method: int = DEFAULT_METHOD) -> EncoderFactory:
    def _open(path: Path) -> Encoder:
        return PillowEncoder.open(path, method=method)

    return _open


__all__ = ["Encoder", "EncoderFactory", "PillowEncoder", "pillow_factory"]
