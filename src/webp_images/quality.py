from __future__ import annotations

from functools import cached_property

from .config import QualityConfig
from .constants import DEFAULT_ARTIFACT_QUALITY


class QualityResolver:
    """Resolve encode quality from the default and override chain.

    The artifact quality starts at the editor baseline, then the generic encoder
    default override, then the pipeline override. The source quality is used only
    when re-encoding an unscaled original that thumbnails are derived from.
    """

    def __init__(self, config: QualityConfig) -> None:
        self._config = config

    @cached_property
    def artifact_quality(self) -> int:
        quality = DEFAULT_ARTIFACT_QUALITY
        if self._config.editor_default is not None:
            quality = self._config.editor_default
        if self._config.artifact is not None:
            quality = self._config.artifact
        return quality

    @property
    def source_quality(self) -> int:
        return self._config.source

    @property
    def method(self) -> int:
        return self._config.method


__all__ = ["QualityResolver"]
