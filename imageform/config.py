"""Client settings, read from ``IMAGEFORM_*`` environment variables or ``.env``."""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Defaults for :class:`imageform.client.ImagesClient`."""

    api_key: SecretStr = SecretStr("")
    base_url: str = "https://api.openai.com/v1"
    organization: str = ""
    timeout: float = Field(default=60.0, gt=0)
    verify: bool = True
    auto_decompress: bool = True
    # Forms larger than this spill from memory to a temporary file.
    spool_max_size: int = Field(default=8 * 1024 * 1024, ge=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="IMAGEFORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
