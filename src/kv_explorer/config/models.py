"""Clean Pydantic configuration models - type safe, immutable."""

from __future__ import annotations

from pathlib import Path

import httpx
from pydantic import BaseModel, Field, field_validator

from kv_explorer.config.defaults import (
    DEFAULT_API_BASE,
    DEFAULT_DATA_DIR,
    DEFAULT_HTTP_CONNECT_TIMEOUT,
    DEFAULT_HTTP_REQUEST_TIMEOUT,
    DEFAULT_KV_RELATIVE_PATH,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SETTINGS_DB_FILENAME,
)
from kv_explorer.config.enums import TimeoutType
from kv_explorer.config.env_vars import EnvVar, get_env, get_env_float, get_env_int


class TimeoutConfig(BaseModel):
    """Timeout configuration with proper defaults.

    All values in seconds. Immutable after creation.
    """

    http_request: float = Field(
        default=DEFAULT_HTTP_REQUEST_TIMEOUT,
        gt=0,
        description="HTTP request timeout",
    )
    http_connect: float = Field(
        default=DEFAULT_HTTP_CONNECT_TIMEOUT,
        gt=0,
        description="HTTP connection timeout",
    )

    model_config = {"frozen": True}

    def get(self, timeout_type: TimeoutType) -> float:
        """Get timeout by enum (type-safe)."""
        return getattr(self, timeout_type.value)

    def to_httpx(self) -> httpx.Timeout:
        """Build the ``httpx.Timeout`` used by the remote client."""
        return httpx.Timeout(self.http_request, connect=self.http_connect)


class ExplorerConfig(BaseModel):
    """Complete KV Explorer configuration."""

    api_base: str = Field(
        default=DEFAULT_API_BASE,
        description="Base URL of the remote KV API",
    )
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        gt=0,
        le=MAX_PAGE_SIZE,
        description="Keys requested per listing page",
    )
    kv_relative_path: str = Field(
        default=DEFAULT_KV_RELATIVE_PATH,
        description="Path from a project root to the emulator state directory",
    )
    data_dir: Path = Field(
        default=DEFAULT_DATA_DIR,
        description="Directory holding the settings database",
    )
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)

    model_config = {"frozen": True}

    @field_validator("api_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalise the API base so paths can be appended."""
        return v.rstrip("/")

    @property
    def settings_path(self) -> Path:
        """Full path of the settings database."""
        return self.data_dir.expanduser() / SETTINGS_DB_FILENAME

    @classmethod
    def from_env(cls) -> ExplorerConfig:
        """Build a config from defaults overridden by environment variables."""
        overrides: dict = {}

        api_base = get_env(EnvVar.API_BASE)
        if api_base:
            overrides["api_base"] = api_base

        page_size = get_env_int(EnvVar.PAGE_SIZE)
        if page_size is not None:
            overrides["page_size"] = page_size

        kv_path = get_env(EnvVar.KV_PATH)
        if kv_path:
            overrides["kv_relative_path"] = kv_path

        data_dir = get_env(EnvVar.DATA_DIR)
        if data_dir:
            overrides["data_dir"] = Path(data_dir)

        timeouts = TimeoutConfig(
            http_request=get_env_float(
                EnvVar.HTTP_TIMEOUT, DEFAULT_HTTP_REQUEST_TIMEOUT
            ),
            http_connect=get_env_float(
                EnvVar.HTTP_CONNECT_TIMEOUT, DEFAULT_HTTP_CONNECT_TIMEOUT
            ),
        )

        return cls(timeouts=timeouts, **overrides)
