"""Last-resort repair of artifacts left behind by a process-killing encode."""

from __future__ import annotations

import atexit
import faulthandler
import logging
from dataclasses import dataclass
from pathlib import Path

from .artifacts import ArtifactState, artifact_state, install_fallback_link, is_valid_artifact
from .constants import JOURNAL_FILE
from .paths import to_derived_path
from .utils import atomic_write

logger = logging.getLogger("webp_images.guard")


@dataclass(slots=True)
class RunContext:
    """Run-scoped state threaded through the batch; one per worker."""

    run_id: str
    in_flight: Path | None = None
    fatal_error: BaseException | None = None


def repair_artifact(source: Path) -> bool:
    """Replace an empty or invalid regular artifact of *source* with a fallback link."""
    target = to_derived_path(source)
    if artifact_state(target) is not ArtifactState.REGULAR:
        return False
    if source.exists() and is_valid_artifact(target, source):
        return False
    install_fallback_link(target, source)
    logger.warning("Repaired artifact %s left by an interrupted conversion", target)
    return True


class CrashGuard:
    """Tracks the in-flight original and repairs it after an abnormal exit.

    The in-flight path is mirrored to a journal file so that a crash which skips
    interpreter shutdown entirely is repaired at the start of the next run.
    """

    def __init__(self, state_dir: Path) -> None:
        self._journal = state_dir / JOURNAL_FILE
        self._context: RunContext | None = None
        self._registered = False

    @property
    def journal(self) -> Path:
        return self._journal

    def install(self, context: RunContext) -> None:
        self._context = context
        if not self._registered:
            atexit.register(self.on_exit)
            self._registered = True
        if not faulthandler.is_enabled():
            faulthandler.enable()

    def uninstall(self) -> None:
        if self._registered:
            atexit.unregister(self.on_exit)
            self._registered = False
        self._context = None

    def mark(self, path: Path) -> None:
        if self._context is not None:
            self._context.in_flight = path
        atomic_write(self._journal, str(path))

    def record_fatal(self, exc: BaseException) -> None:
        if self._context is not None:
            self._context.fatal_error = exc

    def clear(self) -> None:
        self._journal.unlink(missing_ok=True)

    def recover_previous(self) -> bool:
        """Repair the path recorded by a run that never reached a clean finish."""
        if not self._journal.exists():
            return False
        recorded = self._journal.read_text(encoding="utf-8").strip()
        self.clear()
        if not recorded:
            return False
        logger.warning("Previous run stopped while converting %s", recorded)
        return repair_artifact(Path(recorded))

    def on_exit(self) -> bool:
        context = self._context
        if context is None or context.fatal_error is None or context.in_flight is None:
            return False
        repaired = repair_artifact(context.in_flight)
        self.clear()
        return repaired


__all__ = ["RunContext", "CrashGuard", "repair_artifact"]
