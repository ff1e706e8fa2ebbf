from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_config, get_engine, get_runner
from api.schemas import BatchSummaryResponse, ConversionResponse, DeleteResponse, PathRequest
from api.utils import run_exclusive
from webp_images.config import AppConfig
from webp_images.core import ConversionEngine
from webp_images.runner import BatchRunner

router = APIRouter(tags=["conversion"])


@router.post("/run", summary="Run one batch over the configured roots")
async def run_batch(runner: BatchRunner = Depends(get_runner)) -> BatchSummaryResponse:
    batch_result = await run_exclusive(runner.run)
    summary = batch_result.summary
    return BatchSummaryResponse(
        run_id=batch_result.run_id,
        total=summary.total,
        converted=summary.converted,
        skipped=summary.skipped,
        failures=summary.failures,
        warnings=summary.warnings,
    )


@router.post("/convert", summary="Convert a single original")
async def convert_image(
    request: PathRequest,
    engine: ConversionEngine = Depends(get_engine),
    config: AppConfig = Depends(get_config),
) -> ConversionResponse:
    path = _resolve_upload_path(request.path, config)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="NOT_FOUND")
    result = await run_exclusive(engine.convert, path)
    return ConversionResponse(
        source=str(result.source),
        target=str(result.target),
        status=result.status.value,
        reason=result.reason,
        warnings=result.warnings,
        sizes={name: str(output) for name, output in result.sizes.items()},
    )


@router.post("/delete", summary="Remove the derived artifact of a deleted original")
async def delete_artifact(
    request: PathRequest,
    engine: ConversionEngine = Depends(get_engine),
    config: AppConfig = Depends(get_config),
) -> DeleteResponse:
    path = _resolve_upload_path(request.path, config)
    original = await run_exclusive(engine.on_original_deleted, path)
    return DeleteResponse(path=str(original))


def _resolve_upload_path(raw: str, config: AppConfig) -> Path:
    upload_dir = config.paths.upload_dir.resolve()
    candidate = Path(raw)
    if not candidate.is_absolute():
        candidate = upload_dir / candidate
    candidate = candidate.resolve()
    if not candidate.is_relative_to(upload_dir):
        raise HTTPException(status_code=400, detail="OUTSIDE_UPLOAD_DIR")
    return candidate


__all__ = ["router"]
