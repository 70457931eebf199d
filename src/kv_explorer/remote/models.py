"""Pydantic models for the remote KV API wire format."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ApiError(BaseModel):
    code: int | str = 0
    message: str = ""


class ResultInfo(BaseModel):
    """Pagination block of list responses."""

    count: int | None = None
    cursor: str | None = None
    total_count: int | None = None


class ApiEnvelope(BaseModel):
    """Standard response envelope: ``{success, errors, messages, result}``."""

    success: bool = True
    errors: list[ApiError] = Field(default_factory=list)
    messages: list[Any] = Field(default_factory=list)
    result: Any = None
    result_info: ResultInfo | None = None

    def error_summary(self) -> str:
        """``code: message`` pairs joined for display."""
        return ", ".join(f"{e.code}: {e.message}" for e in self.errors)


class ProviderNamespace(BaseModel):
    id: str
    title: str = ""


class ProviderKey(BaseModel):
    name: str
    expiration: int | None = None
    metadata: Any | None = None
