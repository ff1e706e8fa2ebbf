"""Execution helpers bridging the synchronous pipeline into async handlers."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")

# The image engine handles one call at a time per process.
_ENGINE_LOCK = threading.Lock()


async def run_exclusive(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Execute *func* in a worker thread, serialized with every other pipeline call."""

    def _locked() -> T:
        with _ENGINE_LOCK:
            return func(*args, **kwargs)

    return await asyncio.to_thread(_locked)


__all__ = ["run_exclusive"]
