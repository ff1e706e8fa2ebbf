"""Batch WebP generation for uploaded images and their thumbnails."""

from .config import AppConfig, load_config
from .core import ConversionEngine
from .guard import CrashGuard, RunContext
from .models import BatchResult, ConversionResult, ConversionStatus
from .paths import to_derived_path
from .runner import BatchRunner

__all__ = [
    "AppConfig",
    "load_config",
    "BatchResult",
    "BatchRunner",
    "ConversionEngine",
    "ConversionResult",
    "ConversionStatus",
    "CrashGuard",
    "RunContext",
    "to_derived_path",
]
