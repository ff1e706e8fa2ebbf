from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from .config import AppConfig
from .core import ConversionEngine
from .errors import ConfigurationError
from .guard import CrashGuard, RunContext
from .logging import BatchSummary, append_summary_row
from .models import BatchResult, ConversionResult
from .paths import is_sized_thumbnail
from .utils import generate_run_id, iter_images, lower_priority

logger = logging.getLogger("webp_images.runner")

FileEnumerator = Callable[[Sequence[Path], Sequence[str], Callable[[str], bool]], Iterable[Path]]
InclusionPredicate = Callable[[Path], bool]


class BatchRunner:
    """Convert every candidate original, one at a time, isolating failures per file."""

    def __init__(
        self,
        config: AppConfig,
        engine: ConversionEngine,
        *,
        enumerator: FileEnumerator | None = None,
        include: InclusionPredicate | None = None,
        guard: CrashGuard | None = None,
        niceness: int | None = None,
        exit_repair: bool = True,
    ) -> None:
        self._config = config
        self._engine = engine
        self._enumerate = enumerator or iter_images
        self._include = include
        self._guard = guard or CrashGuard(config.runtime.state_dir)
        self._niceness = config.runtime.niceness if niceness is None else niceness
        # False: a fatal run is repaired in place, not at interpreter exit
        self._exit_repair = exit_repair

    def run(self, roots: Sequence[Path] | None = None) -> BatchResult:
        lower_priority(self._niceness)
        run_id = generate_run_id("batch")
        summary = BatchSummary()
        results: list[ConversionResult] = []

        try:
            candidates = self._candidates(roots)
        except ConfigurationError as exc:
            logger.warning("%s", exc)
            return BatchResult(run_id=run_id, results=results, summary=summary)

        self._guard.recover_previous()
        context = RunContext(run_id=run_id)
        self._guard.install(context)
        try:
            for path in candidates:
                result = self._convert_one(path, context)
                summary.total += 1
                if result is None:
                    summary.failures += 1
                    continue
                results.append(result)
                self._tally(result, summary)
            self._guard.clear()
        finally:
            if context.fatal_error is None:
                self._guard.uninstall()
            elif not self._exit_repair:
                self._guard.on_exit()
                self._guard.uninstall()

        if summary.converted:
            logger.info("%s images converted to WebP", summary.converted)
        if summary.total:
            state_dir = self._config.runtime.state_dir
            append_summary_row(state_dir / self._config.runtime.summary_csv, summary, run_id)
        return BatchResult(run_id=run_id, results=results, summary=summary)

    def _candidates(self, roots: Sequence[Path] | None) -> list[Path]:
        resolved = list(roots) if roots is not None else self._config.paths.resolve_roots()
        if not resolved:
            raise ConfigurationError("No image directory found.")
        found = self._enumerate(resolved, self._config.extensions, is_sized_thumbnail)
        if self._include is None:
            return list(found)
        return [path for path in found if self._include(path)]

    def _convert_one(self, path: Path, context: RunContext) -> ConversionResult | None:
        self._guard.mark(path)
        try:
            return self._engine.convert(path, run_id=context.run_id)
        except Exception:
            logger.exception("Unexpected error while converting %s", path)
            return None
        except BaseException as exc:
            self._guard.record_fatal(exc)
            raise

    def _tally(self, result: ConversionResult, summary: BatchSummary) -> None:
        if result.converted:
            summary.converted += 1
        elif result.status.skipped:
            summary.skipped += 1
        else:
            summary.failures += 1
        for warning in result.warnings:
            key = warning.split(":", 1)[0]
            summary.warnings[key] = summary.warnings.get(key, 0) + 1


__all__ = ["BatchRunner", "FileEnumerator", "InclusionPredicate"]
