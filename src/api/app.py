from __future__ import annotations

from fastapi import FastAPI

from webp_images.config import AppConfig, load_config
from webp_images.core import ConversionEngine
from webp_images.runner import BatchRunner
from webp_images.settings import Settings, get_settings

from .routers import conversion, health


def create_app(config: AppConfig | None = None) -> FastAPI:
    config = config or _prepare_config(get_settings())
    if not config.runtime.enable_local_api:
        raise RuntimeError("Local API is disabled. Enable it via configuration or environment.")

    app = FastAPI(title="WebP Images", version="0.1.0")
    app.state.config = config
    engine = ConversionEngine(config)
    app.state.engine = engine
    # the server process keeps its priority; only the batch CLI runs niced
    app.state.runner = BatchRunner(config, engine, niceness=0, exit_repair=False)

    app.include_router(health.router)
    app.include_router(conversion.router)
    return app


def _prepare_config(settings: Settings) -> AppConfig:
    config = load_config(settings.config_path)
    if settings.enable_local_api is not None:
        config.runtime.enable_local_api = settings.enable_local_api
    return config


__all__ = ["create_app"]
