"""Application settings loaded from ``KNOWBASE_*`` environment variables.

Environment variables:
- KNOWBASE_NAME: display name of the wiki
- KNOWBASE_ACCESS_CODE: shared access code required to log in
- KNOWBASE_REDIS_URL: URL of the Redis server holding the pages
- KNOWBASE_SECRET_KEY: session cookie signing key (generated when unset)
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Immutable process configuration, built once by :func:`knowbase.main.create_app`."""

    model_config = SettingsConfigDict(env_prefix="KNOWBASE_", frozen=True)

    name: str = "knowbase"
    access_code: str
    redis_url: str
    secret_key: Optional[str] = None

    # Content pipeline
    mount_prefix: str = "/w"
    preview_bytes: int = Field(default=500, ge=0)
    allow_raw_html: bool = False

    # Upload limits
    max_upload_bytes: int = Field(default=50 * 1024 * 1024, ge=1)
    max_entry_bytes: int = Field(default=5 * 1024 * 1024, ge=1)

    log_level: str = "INFO"
