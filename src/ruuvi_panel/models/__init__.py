"""Pydantic data models for the gateway management API."""

from ruuvi_panel.models.common import (
    BridgeStatus,
    RestartResult,
    TagEnableResult,
    TagNameResult,
)
from ruuvi_panel.models.config import (
    SINK_DEFAULTS,
    SINK_IDS,
    SINK_MODELS,
    SINK_TITLES,
    GatewayConfig,
    InfluxDB3PublisherConfig,
    InfluxDBPublisherConfig,
    MatterConfig,
    MQTTPublisherConfig,
    PrometheusConfig,
    SinkConfig,
    normalize_mac,
)
from ruuvi_panel.models.snapshot import DeviceSnapshot, Freshness

__all__ = [
    "BridgeStatus",
    "DeviceSnapshot",
    "Freshness",
    "GatewayConfig",
    "InfluxDB3PublisherConfig",
    "InfluxDBPublisherConfig",
    "MQTTPublisherConfig",
    "MatterConfig",
    "PrometheusConfig",
    "RestartResult",
    "SINK_DEFAULTS",
    "SINK_IDS",
    "SINK_MODELS",
    "SINK_TITLES",
    "SinkConfig",
    "TagEnableResult",
    "TagNameResult",
    "normalize_mac",
]
