from __future__ import annotations

from pydantic import BaseModel, Field


class PathRequest(BaseModel):
    path: str


class ConversionResponse(BaseModel):
    source: str
    target: str
    status: str
    reason: str | None = None
    warnings: list[str] = Field(default_factory=list)
    sizes: dict[str, str] = Field(default_factory=dict)


class DeleteResponse(BaseModel):
    path: str


class BatchSummaryResponse(BaseModel):
    run_id: str
    total: int
    converted: int
    skipped: int
    failures: int
    warnings: dict[str, int]


__all__ = ["PathRequest", "ConversionResponse", "DeleteResponse", "BatchSummaryResponse"]
