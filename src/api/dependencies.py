"""FastAPI dependency providers for application services."""

from __future__ import annotations

from fastapi import HTTPException, Request

from webp_images.config import AppConfig
from webp_images.core import ConversionEngine
from webp_images.runner import BatchRunner


def get_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise HTTPException(status_code=503, detail="CONFIG_UNAVAILABLE")
    return config


def get_engine(request: Request) -> ConversionEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="ENGINE_UNAVAILABLE")
    return engine


def get_runner(request: Request) -> BatchRunner:
    runner = getattr(request.app.state, "runner", None)
    if runner is None:
        raise HTTPException(status_code=503, detail="RUNNER_UNAVAILABLE")
    return runner


__all__ = ["get_config", "get_engine", "get_runner"]
