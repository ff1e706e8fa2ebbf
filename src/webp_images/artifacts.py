"""Physical state of derived artifacts and the fallback link protocol."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path

from .errors import ValidationError

logger = logging.getLogger("webp_images.artifacts")


class ArtifactState(str, Enum):
    ABSENT = "absent"
    REGULAR = "regular"
    FALLBACK_LINK = "fallback_link"


def artifact_state(path: Path) -> ArtifactState:
    if path.is_symlink():
        return ArtifactState.FALLBACK_LINK
    if path.is_file():
        return ArtifactState.REGULAR
    return ArtifactState.ABSENT


def artifact_mtime(path: Path) -> float | None:
    """Modification time of the artifact itself, never of a link's target."""
    try:
        return path.lstat().st_mtime
    except FileNotFoundError:
        return None


def is_fresh(target: Path, source: Path) -> bool:
    if artifact_state(target) is ArtifactState.ABSENT:
        return False
    target_mtime = artifact_mtime(target)
    return target_mtime is not None and target_mtime >= source.stat().st_mtime


def validate_artifact(target: Path, source: Path) -> int:
    """Return the artifact size, or raise if it is missing, empty or not smaller."""
    if artifact_state(target) is not ArtifactState.REGULAR:
        raise ValidationError(f"No artifact was written at {target}")
    size = target.stat().st_size
    if size == 0:
        raise ValidationError(f"Empty artifact at {target}")
    source_size = source.stat().st_size
    if size >= source_size:
        raise ValidationError(f"Artifact {target.name} ({size} B) is not smaller than {source.name} ({source_size} B)")
    return size


def is_valid_artifact(target: Path, source: Path) -> bool:
    try:
        validate_artifact(target, source)
    except (ValidationError, OSError):
        return False
    return True


def remove_artifact(target: Path) -> bool:
    if not os.path.lexists(target):
        return False
    target.unlink(missing_ok=True)
    return True


def install_fallback_link(target: Path, source: Path) -> None:
    """Replace *target* with a relative link to the source's basename."""
    remove_artifact(target)
    os.symlink(source.name, target)
    logger.info("Fallback link %s -> %s", target, source.name)


__all__ = [
    "ArtifactState",
    "artifact_state",
    "artifact_mtime",
    "is_fresh",
    "validate_artifact",
    "is_valid_artifact",
    "remove_artifact",
    "install_fallback_link",
]
