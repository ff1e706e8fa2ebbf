from __future__ import annotations

import re
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config.toml")
ENV_PREFIX = "WEBP_IMAGES_"

DERIVED_FORMAT = "webp"
DERIVED_EXTENSION = f".{DERIVED_FORMAT}"
DEFAULT_EXTENSIONS: tuple[str, ...] = ("jpg", "jpeg", "png")
EXCLUDED_EXTENSIONS = frozenset({"svg"})

# Matches host-generated thumbnails such as photo-150x150.jpg
SIZED_THUMBNAIL_RE = re.compile(r"-[0-9]+x[0-9]+\.[^.]+$")

# WP_Image_Editor default
DEFAULT_ARTIFACT_QUALITY = 82
DEFAULT_SOURCE_QUALITY = 92
DEFAULT_METHOD = 6

JOURNAL_FILE = "in-flight"

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "DERIVED_FORMAT",
    "DERIVED_EXTENSION",
    "DEFAULT_EXTENSIONS",
    "EXCLUDED_EXTENSIONS",
    "SIZED_THUMBNAIL_RE",
    "DEFAULT_ARTIFACT_QUALITY",
    "DEFAULT_SOURCE_QUALITY",
    "DEFAULT_METHOD",
    "JOURNAL_FILE",
]
