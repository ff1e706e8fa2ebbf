from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Iterator

logger = logging.getLogger("webp_images.utils")


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding=encoding) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def iter_images(
    roots: Iterable[Path],
    extensions: Iterable[str],
    exclude: Callable[[str], bool] | None = None,
) -> Iterator[Path]:
    """Yield files under *roots* whose extension matches, in a stable order.

    Unreadable directories are skipped. Files whose name matches *exclude* are
    dropped, as are symlinks, so fallback links are never picked up as originals.
    """
    wanted = {ext.lower().lstrip(".") for ext in extensions}
    seen: set[Path] = set()
    for root in roots:
        walker = os.walk(root, onerror=lambda exc: logger.debug("Skipping unreadable %s", exc.filename))
        for dirpath, dirnames, filenames in walker:
            dirnames.sort()
            for name in sorted(filenames):
                if name.rsplit(".", 1)[-1].lower() not in wanted or "." not in name:
                    continue
                if exclude is not None and exclude(name):
                    continue
                path = Path(dirpath) / name
                if path.is_symlink() or path in seen:
                    continue
                seen.add(path)
                yield path


def lower_priority(increment: int) -> int | None:
    """Raise the process niceness by *increment*; return the new value if supported."""
    if increment <= 0 or not hasattr(os, "nice"):
        return None
    try:
        return os.nice(increment)
    except OSError as exc:
        logger.debug("Cannot lower priority: %s", exc)
        return None


__all__ = [
    "generate_run_id",
    "atomic_write",
    "iter_images",
    "lower_priority",
]
