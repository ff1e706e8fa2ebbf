from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Mapping

from .artifacts import (
    ArtifactState,
    artifact_state,
    install_fallback_link,
    is_fresh,
    remove_artifact,
    validate_artifact,
)
from .config import AppConfig
from .constants import DERIVED_FORMAT
from .encoder import Encoder, EncoderFactory, pillow_factory
from .errors import ConversionError, TransientEncodeError, ValidationError
from .logging import RunLogEntry, RunLogger
from .metadata import AttachmentMetadata, JsonMetadataProvider, MetadataProvider, SizeSpec
from .models import ConversionResult, ConversionStatus
from .paths import relative_to_base, sibling_path, sized_name, to_derived_path
from .quality import QualityResolver
from .utils import generate_run_id

logger = logging.getLogger("webp_images.core")


def build_metadata_provider(config: AppConfig) -> MetadataProvider | None:
    if config.metadata.index_file is None:
        return None
    return JsonMetadataProvider(config.metadata.index_file)


class ConversionEngine:
    def __init__(
        self,
        config: AppConfig,
        *,
        metadata: MetadataProvider | None = None,
        encoder_factory: EncoderFactory | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._config = config
        self._metadata = metadata if metadata is not None else build_metadata_provider(config)
        self._open_encoder = encoder_factory or pillow_factory(config.quality.method)
        self._quality = QualityResolver(config.quality)
        self._logger = run_logger or RunLogger(config.runtime.state_dir / config.runtime.log_file)

    @property
    def quality(self) -> QualityResolver:
        return self._quality

    def convert(self, path: Path, *, run_id: str | None = None) -> ConversionResult:
        run_id = run_id or generate_run_id()
        start = time.perf_counter()
        result = self._convert_internal(path)
        elapsed = (time.perf_counter() - start) * 1000
        if result.status is ConversionStatus.FAILED:
            logger.warning("Conversion of %s failed: %s", path, result.reason)
        self._logger.append(
            RunLogEntry(
                run_id=run_id,
                source=str(path),
                target=str(result.target),
                status=result.status.value,
                warnings=result.warnings,
                reason=result.reason,
                bytes_in=result.bytes_in,
                bytes_out=result.bytes_out,
                elapsed_ms=elapsed,
            )
        )
        return result

    def on_original_deleted(self, path: Path) -> Path:
        """Drop the derived artifact of a deleted original, whatever its state."""
        target = to_derived_path(path)
        if remove_artifact(target):
            logger.info("Removed %s after %s was deleted", target, path.name)
        return path

    def _convert_internal(self, path: Path) -> ConversionResult:
        target = to_derived_path(path)
        result = ConversionResult(source=path, target=target, status=ConversionStatus.FAILED)
        if is_fresh(target, path):
            result.status = ConversionStatus.SKIPPED_FRESH
            return result
        result.bytes_in = path.stat().st_size

        try:
            encoder = self._open_encoder(path)
        except TransientEncodeError as exc:
            self._fall_back(target, path, exc)
            result.reason = str(exc)
            return result
        if not encoder.supports_format(DERIVED_FORMAT):
            result.status = ConversionStatus.SKIPPED_UNSUPPORTED_FORMAT
            return result

        encoder.set_quality(self._quality.artifact_quality)
        try:
            result.bytes_out = self._save_validated(encoder, path, target)
        except ConversionError as exc:
            result.reason = str(exc)
            return result

        metadata = self._lookup(path)
        if metadata is None:
            result.status = ConversionStatus.SKIPPED_NO_METADATA
            return result

        base = target
        if metadata.original_image:
            base = self._convert_source_image(path, metadata.original_image, result) or target
        if metadata.sizes:
            self._derive_sizes(path, base, metadata.sizes, result)

        result.status = ConversionStatus.CONVERTED
        return result

    def _lookup(self, path: Path) -> AttachmentMetadata | None:
        if self._metadata is None:
            return None
        upload_dir = self._config.paths.upload_dir.resolve()
        return self._metadata.lookup(relative_to_base(path.resolve(), upload_dir))

    def _save_validated(self, encoder: Encoder, source: Path, target: Path) -> int:
        """Encode into *target* and validate it; on any failure leave a fallback link."""
        remove_artifact(target)
        try:
            encoder.save(target)
            return validate_artifact(target, source)
        except (TransientEncodeError, ValidationError) as exc:
            self._fall_back(target, source, exc)
            raise
        except OSError as exc:
            error = TransientEncodeError(f"Cannot save {target}: {exc}")
            self._fall_back(target, source, error)
            raise error from exc

    def _fall_back(self, target: Path, source: Path, exc: Exception) -> None:
        logger.info("Falling back for %s: %s", target.name, exc)
        install_fallback_link(target, source)

    def _convert_source_image(self, path: Path, filename: str, result: ConversionResult) -> Path | None:
        """Re-encode the unscaled original at source quality; return it as the size base."""
        original = sibling_path(path, filename)
        source_target = to_derived_path(original)
        if not original.exists():
            result.warnings.append(f"original image {filename} not found")
            return None
        if artifact_state(source_target) is ArtifactState.REGULAR and is_fresh(source_target, original):
            return source_target
        try:
            encoder = self._open_encoder(original)
        except TransientEncodeError as exc:
            self._fall_back(source_target, original, exc)
            result.warnings.append(f"original image: {exc}")
            return None
        encoder.set_quality(self._quality.source_quality)
        try:
            self._save_validated(encoder, original, source_target)
        except ConversionError as exc:
            result.warnings.append(f"original image: {exc}")
            return None
        return source_target

    def _derive_sizes(
        self,
        path: Path,
        base: Path,
        sizes: Mapping[str, SizeSpec],
        result: ConversionResult,
    ) -> None:
        try:
            encoder = self._open_encoder(base)
        except TransientEncodeError as exc:
            result.warnings.append(f"sizes: {exc}")
            return
        encoder.set_quality(self._quality.artifact_quality)
        # a stale fallback link would be written through to the host thumbnail
        for spec in sizes.values():
            remove_artifact(sized_name(base, spec.width, spec.height))
        outputs = encoder.derive_sizes(sizes)
        for name, spec in sizes.items():
            expected = sized_name(base, spec.width, spec.height)
            thumbnail = sibling_path(path, spec.filename)
            output = outputs.get(name)
            if output is None or isinstance(output, Exception):
                result.warnings.append(f"size {name}: {output or 'not generated'}")
                if thumbnail.exists():
                    self._fall_back(expected, thumbnail, output or ValidationError("not generated"))
                else:
                    remove_artifact(expected)
                continue
            if self._check_size(name, output, thumbnail, result):
                result.sizes[name] = output

    def _check_size(self, name: str, output: Path, thumbnail: Path, result: ConversionResult) -> bool:
        try:
            if thumbnail.exists():
                validate_artifact(output, thumbnail)
            elif artifact_state(output) is not ArtifactState.REGULAR or output.stat().st_size == 0:
                raise ValidationError(f"Empty artifact at {output}")
        except ValidationError as exc:
            result.warnings.append(f"size {name}: {exc}")
            if thumbnail.exists():
                self._fall_back(output, thumbnail, exc)
            else:
                remove_artifact(output)
            return False
        return True


__all__ = ["ConversionEngine", "build_metadata_provider"]
