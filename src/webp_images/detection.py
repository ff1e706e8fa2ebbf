from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import filetype

from .errors import ConversionError


class ImageType(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"
    BMP = "bmp"
    TIFF = "tiff"

    @property
    def mime_type(self) -> str:
        return MIME_MAP[self]


@dataclass(slots=True)
class DetectionResult:
    image_type: ImageType
    mime_type: str
    extension: str


EXTENSION_MAP: dict[str, ImageType] = {
    ".jpg": ImageType.JPEG,
    ".jpeg": ImageType.JPEG,
    ".png": ImageType.PNG,
    ".gif": ImageType.GIF,
    ".webp": ImageType.WEBP,
    ".bmp": ImageType.BMP,
    ".tif": ImageType.TIFF,
    ".tiff": ImageType.TIFF,
}

MIME_MAP: dict[ImageType, str] = {
    ImageType.JPEG: "image/jpeg",
    ImageType.PNG: "image/png",
    ImageType.GIF: "image/gif",
    ImageType.WEBP: "image/webp",
    ImageType.BMP: "image/bmp",
    ImageType.TIFF: "image/tiff",
}


class DetectionError(ConversionError):
    """Raised when format detection fails."""

    code = "UNSUPPORTED_MIME"


def sniff_mime(path: Path) -> str:
    kind = filetype.guess(str(path))
    if kind is None:
        return "application/octet-stream"
    return kind.mime


def detect_image_type(path: Path) -> DetectionResult:
    extension = path.suffix.lower()
    ext_type = EXTENSION_MAP.get(extension)
    if not ext_type:
        raise DetectionError(f"Unsupported file extension: {extension or '<none>'}")
    mime = sniff_mime(path)
    if mime != ext_type.mime_type:
        raise DetectionError(
            f"MIME sniff mismatch: expected {ext_type.mime_type}, detected {mime or 'unknown'}",
        )
    return DetectionResult(image_type=ext_type, mime_type=mime, extension=extension)


__all__ = [
    "ImageType",
    "DetectionResult",
    "DetectionError",
    "EXTENSION_MAP",
    "detect_image_type",
    "sniff_mime",
]
