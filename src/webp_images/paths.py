"""Pure path helpers mapping originals to their derived artifacts."""

from __future__ import annotations

import re
from pathlib import Path

from .constants import DERIVED_EXTENSION, SIZED_THUMBNAIL_RE

_EXTENSION_RE = re.compile(r"\.[^./]+$")


def to_derived_path(path: Path | str) -> Path:
    """Replace the final extension of *path* with the derived format's extension.

    Directory and stem are preserved; a name without an extension gets one
    appended. Applying it to an already derived path returns the same path.
    """
    text = str(path)
    if _EXTENSION_RE.search(text):
        return Path(_EXTENSION_RE.sub(DERIVED_EXTENSION, text))
    return Path(text + DERIVED_EXTENSION)


def is_sized_thumbnail(filename: str) -> bool:
    return SIZED_THUMBNAIL_RE.search(filename) is not None


def sibling_path(path: Path, filename: str) -> Path:
    return path.parent / filename


def sized_name(base: Path, width: int, height: int) -> Path:
    return base.parent / f"{base.stem}-{width}x{height}{DERIVED_EXTENSION}"


def relative_to_base(path: Path, base_dir: Path) -> str:
    """Return *path* relative to *base_dir* as a forward-slash key."""
    try:
        return path.relative_to(base_dir).as_posix()
    except ValueError:
        return path.as_posix()


__all__ = [
    "to_derived_path",
    "is_sized_thumbnail",
    "sibling_path",
    "sized_name",
    "relative_to_base",
]
