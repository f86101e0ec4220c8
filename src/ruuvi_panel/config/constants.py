"""Default paths, environment variable names, and constants."""

from __future__ import annotations

import platformdirs

APP_NAME = "ruuvi-panel"
APP_AUTHOR = "ruuvi-panel"

CONFIG_DIR = platformdirs.user_config_path(APP_NAME, APP_AUTHOR)
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Environment variable names
ENV_GATEWAY_URL = "RUUVI_PANEL_URL"
ENV_API_TOKEN = "RUUVI_PANEL_TOKEN"
ENV_GATEWAY_PROFILE = "RUUVI_PANEL_PROFILE"

# Gateway API
API_CONFIG = "/api/config"
API_TAGS = "/api/tags"
API_TAG_ENABLE = "/api/tags/enable"
API_TAG_NAME = "/api/tags/name"
API_MATTER = "/api/matter"
API_RESTART = "/api/restart"

DEFAULT_TIMEOUT = 10.0

# Sync cadence
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_RESTART_GRACE = 2.0

# Snapshot freshness thresholds, seconds
LIVE_THRESHOLD = 60
AGING_THRESHOLD = 3600
