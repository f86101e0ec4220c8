"""Pydantic models for panel configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ruuvi_panel.config.constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RESTART_GRACE,
    DEFAULT_TIMEOUT,
)


class PanelProfile(BaseModel):
    """One gateway the panel can talk to, plus how to keep in sync with it."""

    model_config = ConfigDict(extra="forbid")

    name: str
    url: str = Field(description="Gateway web UI URL, e.g. http://raspberrypi.local:8080")
    token: str | None = Field(
        default=None, description="Bearer token for an authenticating proxy",
    )
    username: str | None = Field(default=None, description="Basic auth username")
    password: str | None = Field(default=None, description="Basic auth password")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, le=600, description="Request timeout in seconds",
    )
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL, gt=0, le=3600,
        description="Seconds between sensor snapshot polls",
    )
    restart_grace: float = Field(
        default=DEFAULT_RESTART_GRACE, ge=0, le=120,
        description="Seconds to wait after a restart before reloading",
    )
    missing_poll_limit: int | None = Field(
        default=None, ge=1,
        description="Drop a device after this many polls without it (None keeps it)",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def auth_configured(self) -> bool:
        if self.token is not None:
            return True
        return self.username is not None and self.password is not None

    def stored_fields(self) -> dict[str, Any]:
        """Fields worth writing to disk: set, and different from the default."""
        fields = self.model_dump(exclude={"name"}, exclude_none=True)
        return {
            key: value for key, value in fields.items()
            if value != type(self).model_fields[key].default
        }


class PanelConfig(BaseModel):
    """Root of the panel's config file."""

    default_profile: str | None = None
    profiles: dict[str, PanelProfile] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _name_profiles(cls, data: Any) -> Any:
        # Profiles are stored as [profiles.<name>] tables without a name key
        if isinstance(data, dict) and isinstance(data.get("profiles"), dict):
            data = dict(data)
            data["profiles"] = {
                name: {"name": name, **prof} if isinstance(prof, dict) else prof
                for name, prof in data["profiles"].items()
            }
        return data
