from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ApiContext:
    """Read-only connection values shared by every record of a batch."""

    base_url: str
    api_key: str
    org_id: Optional[str] = None


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables.

    The API key is required (no default) to avoid unsafe assumptions.
    """

    model_config = SettingsConfigDict(env_prefix="TURBODOCX_", case_sensitive=False)

    api_key: str = Field(..., min_length=1, description="TurboDocx API key (sent as a Bearer token)")
    org_id: Optional[str] = Field(None, description="TurboDocx organization UUID")
    base_url: AnyHttpUrl = Field(
        "https://api.turbodocx.com",
        description="TurboDocx API base URL",
    )

    http_timeout_s: float = Field(30.0, ge=1.0, le=300.0, description="HTTP timeout (seconds)")
    log_level: str = Field("INFO", description="Log level for the turbosign logger")
    log_json: bool = Field(False, description="Render log lines as JSON instead of key=value text")

    def api_context(self) -> ApiContext:
        return ApiContext(
            base_url=str(self.base_url).rstrip("/"),
            api_key=self.api_key,
            org_id=self.org_id or None,
        )
