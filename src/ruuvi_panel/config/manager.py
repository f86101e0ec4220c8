"""Configuration manager — profile storage in TOML and connection resolution."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import ValidationError as PydanticValidationError

from ruuvi_panel.client.errors import ConfigurationError
from ruuvi_panel.config.constants import (
    CONFIG_FILE,
    ENV_API_TOKEN,
    ENV_GATEWAY_PROFILE,
    ENV_GATEWAY_URL,
)
from ruuvi_panel.config.models import PanelConfig, PanelProfile

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib


def _write_private(path: Path, text: str) -> None:
    """Replace *path* atomically with an owner-only file holding *text*."""
    temp = path.with_suffix(".tmp")
    fd = os.open(str(temp), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(text)
    temp.replace(path)


class ConfigManager:
    """Loads, edits and saves panel profiles; resolves the gateway to use."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path or CONFIG_FILE
        self._config: PanelConfig | None = None

    @property
    def config(self) -> PanelConfig:
        if self._config is None:
            self._config = self._load()
        return self._config

    def _load(self) -> PanelConfig:
        if not self.config_path.exists():
            return PanelConfig()
        try:
            with self.config_path.open("rb") as fh:
                return PanelConfig.model_validate(tomllib.load(fh))
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Cannot parse {self.config_path}: {exc}") from exc
        except PydanticValidationError as exc:
            raise ConfigurationError(f"Invalid profile in {self.config_path}: {exc}") from exc

    def _document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {}
        if self.config.default_profile:
            doc["default_profile"] = self.config.default_profile
        profiles = {
            name: profile.stored_fields()
            for name, profile in self.config.profiles.items()
        }
        if profiles:
            doc["profiles"] = profiles
        return doc

    def save(self) -> None:
        # Owner-only: profiles may hold proxy credentials
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        os.chmod(self.config_path.parent, 0o700)
        _write_private(self.config_path, tomli_w.dumps(self._document()))

    def add_profile(self, profile: PanelProfile) -> None:
        """Add or replace *profile*; the first profile becomes the default."""
        self.config.profiles[profile.name] = profile
        self.config.default_profile = self.config.default_profile or profile.name
        self.save()

    def remove_profile(self, name: str) -> bool:
        profiles = self.config.profiles
        if profiles.pop(name, None) is None:
            return False
        if self.config.default_profile == name:
            self.config.default_profile = next(iter(profiles), None)
        self.save()
        return True

    def set_default(self, name: str) -> bool:
        if name not in self.config.profiles:
            return False
        self.config.default_profile = name
        self.save()
        return True

    def get_profile(self, name: str | None = None) -> PanelProfile | None:
        """The named profile, or the default one when *name* is empty."""
        name = name or self.config.default_profile
        return self.config.profiles.get(name) if name else None

    def resolve_gateway(
        self,
        profile_name: str | None = None,
        url: str | None = None,
        token: str | None = None,
    ) -> PanelProfile:
        """Work out which gateway to talk to and how.

        URL and token come from CLI flags, then ``RUUVI_PANEL_URL`` /
        ``RUUVI_PANEL_TOKEN``, then the profile. The profile itself is picked
        by ``--gateway``, then ``RUUVI_PANEL_PROFILE``, then the default.
        Credentials and sync settings (poll interval, restart grace,
        missing-poll limit) always come from the profile when one is found.
        """
        profile = self.get_profile(profile_name or os.environ.get(ENV_GATEWAY_PROFILE))

        resolved_url = url or os.environ.get(ENV_GATEWAY_URL) or (profile and profile.url)
        if not resolved_url:
            raise ConfigurationError(
                "No gateway URL configured. Use 'ruuvi-panel config add' or set "
                f"{ENV_GATEWAY_URL} or pass --url."
            )
        resolved_token = token or os.environ.get(ENV_API_TOKEN) or (profile and profile.token)

        if profile is None:
            return PanelProfile(name="cli", url=resolved_url, token=resolved_token)
        return profile.model_copy(
            update={"url": resolved_url.rstrip("/"), "token": resolved_token or None},
        )
