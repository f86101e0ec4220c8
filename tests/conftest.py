"""Shared test fixtures."""

from __future__ import annotations

import time
from pathlib import Path

import pytest
import respx

from ruuvi_panel.client.gateway import GatewayTransport
from ruuvi_panel.config.manager import ConfigManager
from ruuvi_panel.config.models import PanelProfile

GW_URL = "http://gw.local:8080"


def pytest_addoption(parser):
    parser.addoption("--gateway-url", action="store", default=None)
    parser.addoption("--gateway-token", action="store", default=None)


@pytest.fixture
def gw_opts(request):
    url = request.config.getoption("--gateway-url")
    token = request.config.getoption("--gateway-token")
    if not url:
        pytest.skip("Live gateway URL not provided")
    opts = ["--url", url]
    if token:
        opts += ["--token", token]
    return opts


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep the user's real config file and RUUVI_PANEL_* env vars out of tests."""
    path = tmp_path / "home" / "config.toml"
    monkeypatch.setattr("ruuvi_panel.config.manager.CONFIG_FILE", path)
    for var in ("RUUVI_PANEL_URL", "RUUVI_PANEL_TOKEN", "RUUVI_PANEL_PROFILE"):
        monkeypatch.delenv(var, raising=False)
    return path


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Return a temporary config file path."""
    return tmp_path / "config.toml"


@pytest.fixture
def config_manager(tmp_config: Path) -> ConfigManager:
    """Return a ConfigManager pointed at a temp config file."""
    return ConfigManager(config_path=tmp_config)


@pytest.fixture
def sample_profile() -> PanelProfile:
    """Return a sample gateway profile for testing."""
    return PanelProfile(name="test-gw", url=GW_URL)


@pytest.fixture
def transport(sample_profile: PanelProfile) -> GatewayTransport:
    return GatewayTransport(sample_profile)


@pytest.fixture
def gw():
    """respx router scoped to the test gateway."""
    with respx.mock(base_url=GW_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture
def config_doc() -> dict:
    """Sample ``GET /api/config`` response."""
    return {
        "gw_mac": "B8:27:EB:00:00:01",
        "all_advertisements": False,
        "hci_index": 0,
        "use_mock": False,
        "mqtt_publisher": {
            "enabled": True,
            "broker_url": "tcp://mqtt.local:1883",
            "client_id": "ruuvi-bridge",
            "topic_prefix": "ruuvi_measurements",
            "minimum_interval": "1s",
            "retain_messages": True,
        },
        "prometheus": {"Enabled": False, "Port": 9521, "MeasurementMetricPrefix": "ruuvi"},
        "http": {"port": 8080},
        "logging": {"type": "simple", "level": "info"},
        "enabled_tags": ["AA:BB:CC:DD:EE:01"],
        "tag_names": {"AA:BB:CC:DD:EE:01": "Sauna"},
    }


@pytest.fixture
def tags_payload() -> list[dict]:
    """Sample ``GET /api/tags`` response, stamped in milliseconds."""
    now_ms = int(time.time() * 1000)
    return [
        {
            "mac": "AA:BB:CC:DD:EE:01",
            "rssi": -61,
            "data_format": 5,
            "temperature": 78.5,
            "humidity": 12.0,
            "pressure": 100420,
            "battery_voltage": 2.95,
            "last_seen": now_ms - 5_000,
        },
        {
            "mac": "AA:BB:CC:DD:EE:02",
            "rssi": -80,
            "data_format": 5,
            "temperature": 21.25,
            "humidity": 45.5,
            "pressure": 100380,
            "battery_voltage": 3.01,
            "last_seen": now_ms - 7_200_000,
        },
    ]


@pytest.fixture
def loaded_gateway(gw, config_doc: dict, tags_payload: list[dict]):
    """Gateway that serves the sample configuration and tags."""
    gw.get("/api/config").respond(200, json=config_doc)
    gw.get("/api/tags").respond(200, json=tags_payload)
    return gw
