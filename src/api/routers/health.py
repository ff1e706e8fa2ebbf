from __future__ import annotations

from fastapi import APIRouter
from PIL import features

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
def health() -> dict[str, str | bool]:
    return {"status": "ok", "webp_support": bool(features.check("webp"))}


__all__ = ["router"]
