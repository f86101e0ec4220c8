"""Gateway configuration document and its sink sections.

The gateway stores one YAML configuration file and serves it as a single
JSON document. The panel edits three parts of it: the sink sections, the
``enabled_tags`` allowlist and the ``tag_names`` map. Everything else is
carried verbatim so a full-document replace never drops gateway-only
sections (listeners, processing, logging) the panel does not model.
"""

from __future__ import annotations

import copy
import re
from datetime import timedelta
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ruuvi_panel.client.errors import ValidationError

SINK_IDS: tuple[str, ...] = (
    "mqtt_publisher",
    "influxdb_publisher",
    "influxdb3_publisher",
    "prometheus",
    "matter",
)

SINK_TITLES: dict[str, str] = {
    "mqtt_publisher": "MQTT Publisher",
    "influxdb_publisher": "InfluxDB v2",
    "influxdb3_publisher": "InfluxDB v3",
    "prometheus": "Prometheus",
    "matter": "Matter Bridge",
}

IDENTITY_FIELDS: tuple[str, ...] = ("gw_mac", "all_advertisements", "hci_index", "use_mock")


def normalize_mac(value: str) -> str:
    """Return the comparison form of a device identifier: ``AA:BB:CC:DD:EE:FF``."""
    return value.strip().replace("-", ":").upper()


# Go time.Duration syntax, as written by the gateway: "1s", "1m30s", "500ms"
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> timedelta:
    """Parse a Go duration string into a timedelta."""
    text = value.strip()
    if text == "0":
        return timedelta(0)
    sign = -1 if text.startswith("-") else 1
    text = text.lstrip("+-")
    if not text:
        raise ValidationError(f"Invalid duration {value!r}")
    pos = 0
    seconds = 0.0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValidationError(f"Invalid duration {value!r} (expected e.g. '1s', '1m30s')")
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    return timedelta(seconds=sign * seconds)


def format_duration(value: timedelta) -> str:
    """Format a timedelta the way the gateway's Go runtime prints durations."""
    total_us = value // timedelta(microseconds=1)
    if total_us == 0:
        return "0s"
    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)
    if total_us < 1_000_000:
        if total_us % 1000 == 0:
            return f"{sign}{total_us // 1000}ms"
        return f"{sign}{total_us}µs"
    hours, rem = divmod(total_us, 3_600_000_000)
    minutes, rem = divmod(rem, 60_000_000)
    secs, micros = divmod(rem, 1_000_000)
    sec_text = str(secs) if not micros else f"{secs}.{micros:06d}".rstrip("0")
    if hours:
        return f"{sign}{hours}h{minutes}m{sec_text}s"
    if minutes:
        return f"{sign}{minutes}m{sec_text}s"
    return f"{sign}{sec_text}s"


class SinkConfig(BaseModel):
    """Fields shared by every sink section."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    enabled: bool | None = None

    @property
    def active(self) -> bool:
        # The gateway runs a present section whose enabled flag is unset
        return self.enabled is None or self.enabled


class PublisherConfig(SinkConfig):
    """A sink that rate-limits its writes per device."""

    minimum_interval: str | None = None

    @field_validator("minimum_interval", mode="before")
    @classmethod
    def normalize_interval(cls, v: Any) -> Any:
        if v is None or isinstance(v, bool):
            return v
        if isinstance(v, (int, float)):
            # Bare numbers are nanoseconds, as the gateway's JSON decoder reads them
            return format_duration(timedelta(microseconds=v / 1000))
        if isinstance(v, str):
            try:
                parse_duration(v)
            except ValidationError as exc:
                raise ValueError(str(exc)) from exc
        return v


class MQTTPublisherConfig(PublisherConfig):
    """Publishes decoded measurements as JSON to an MQTT broker."""

    broker_url: str | None = None
    client_id: str | None = None
    username: str | None = None
    password: str | None = None
    topic_prefix: str | None = None
    homeassistant_discovery_prefix: str | None = None
    retain_messages: bool | None = None


class InfluxDBPublisherConfig(PublisherConfig):
    """InfluxDB v2 line-protocol writer."""

    url: str | None = None
    auth_token: str | None = None
    org: str | None = None
    bucket: str | None = None
    measurement: str | None = None


class InfluxDB3PublisherConfig(PublisherConfig):
    """InfluxDB v3 writer."""

    url: str | None = None
    auth_token: str | None = None
    database: str | None = None
    measurement: str | None = None


class PrometheusConfig(SinkConfig):
    """Metrics endpoint for Prometheus scraping.

    The gateway serialises this section without JSON tags: keys arrive as Go
    field names (``Port``, ``MeasurementMetricPrefix``) and must go back the
    same way, since the gateway cannot match ``measurement_metric_prefix``.
    Snake case is accepted on input for local drafts.
    """

    enabled: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("enabled", "Enabled"),
        serialization_alias="Enabled",
    )
    port: int | None = Field(
        default=None,
        validation_alias=AliasChoices("port", "Port"),
        serialization_alias="Port",
    )
    measurement_metric_prefix: str | None = Field(
        default=None,
        validation_alias=AliasChoices("measurement_metric_prefix", "MeasurementMetricPrefix"),
        serialization_alias="MeasurementMetricPrefix",
    )


class MatterConfig(SinkConfig):
    """Matter smart-home bridge."""

    passcode: int | None = None
    discriminator: int | None = None
    vendor_id: int | None = None
    product_id: int | None = None
    storage_path: str | None = None


SINK_MODELS: dict[str, type[SinkConfig]] = {
    "mqtt_publisher": MQTTPublisherConfig,
    "influxdb_publisher": InfluxDBPublisherConfig,
    "influxdb3_publisher": InfluxDB3PublisherConfig,
    "prometheus": PrometheusConfig,
    "matter": MatterConfig,
}

SINK_DEFAULTS: dict[str, dict[str, Any]] = {
    "mqtt_publisher": {
        "enabled": True,
        "broker_url": "tcp://localhost:1883",
        "client_id": "ruuvi-bridge",
        "username": "",
        "password": "",
        "topic_prefix": "ruuvi_measurements",
        "minimum_interval": "1s",
        "homeassistant_discovery_prefix": "homeassistant",
        "retain_messages": True,
    },
    "influxdb_publisher": {
        "enabled": True,
        "url": "http://localhost:8086",
        "auth_token": "",
        "org": "my-org",
        "bucket": "ruuvi",
        "measurement": "ruuvi_measurements",
        "minimum_interval": "1s",
    },
    "influxdb3_publisher": {
        "enabled": True,
        "url": "http://localhost:8181",
        "auth_token": "",
        "database": "ruuvi",
        "measurement": "ruuvi_measurements",
        "minimum_interval": "1s",
    },
    "prometheus": {
        "enabled": True,
        "port": 9521,
        "measurement_metric_prefix": "ruuvi",
    },
    "matter": {
        "enabled": True,
        "passcode": 20202021,
        "discriminator": 3840,
        "vendor_id": 0xFFF1,
        "product_id": 0x8000,
        "storage_path": "matter-storage",
    },
}


def check_sink_id(sink_id: str) -> str:
    if sink_id not in SINK_IDS:
        raise ValidationError(
            f"Unknown sink '{sink_id}'. Expected one of: {', '.join(SINK_IDS)}"
        )
    return sink_id


def with_defaults(sink_id: str, sink: SinkConfig | dict[str, Any] | None) -> SinkConfig:
    """Return *sink* as a typed section with every absent field defaulted."""
    check_sink_id(sink_id)
    model = SINK_MODELS[sink_id]
    if isinstance(sink, SinkConfig):
        given = sink.model_dump(exclude_none=True)
    else:
        given = dict(sink or {})
    merged = dict(SINK_DEFAULTS[sink_id])
    merged.update({k: v for k, v in given.items() if v is not None})
    try:
        return model.model_validate(merged)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid {sink_id} settings: {exc}") from exc


class GatewayConfig(BaseModel):
    """Root configuration document served by ``/api/config``."""

    model_config = ConfigDict(extra="allow")

    gw_mac: str = "00:00:00:00:00:00"
    all_advertisements: bool = False
    hci_index: int = 0
    use_mock: bool = False

    mqtt_publisher: MQTTPublisherConfig | None = None
    influxdb_publisher: InfluxDBPublisherConfig | None = None
    influxdb3_publisher: InfluxDB3PublisherConfig | None = None
    prometheus: PrometheusConfig | None = None
    matter: MatterConfig | None = None

    enabled_tags: list[str] = Field(default_factory=list)
    tag_names: dict[str, str] = Field(default_factory=dict)

    @field_validator("enabled_tags", mode="before")
    @classmethod
    def _null_tags(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("tag_names", mode="before")
    @classmethod
    def _null_names(cls, v: Any) -> Any:
        return {} if v is None else v

    def sink(self, sink_id: str) -> SinkConfig | None:
        return getattr(self, check_sink_id(sink_id))

    def to_wire(self) -> dict[str, Any]:
        """JSON body for a full-document replace, in the gateway's own key names."""
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)


def _copy_section(section: SinkConfig | None) -> SinkConfig | None:
    return None if section is None else section.model_copy(deep=True)


def _rebuild(
    doc: GatewayConfig,
    sections: dict[str, SinkConfig | None],
    enabled_tags: list[str],
    tag_names: dict[str, str],
) -> GatewayConfig:
    extra = copy.deepcopy(doc.model_extra or {})
    return GatewayConfig(
        gw_mac=doc.gw_mac,
        all_advertisements=doc.all_advertisements,
        hci_index=doc.hci_index,
        use_mock=doc.use_mock,
        mqtt_publisher=sections["mqtt_publisher"],
        influxdb_publisher=sections["influxdb_publisher"],
        influxdb3_publisher=sections["influxdb3_publisher"],
        prometheus=sections["prometheus"],
        matter=sections["matter"],
        enabled_tags=list(enabled_tags),
        tag_names=dict(tag_names),
        **extra,
    )


def merge_sink(doc: GatewayConfig, sink_id: str, sink: SinkConfig) -> GatewayConfig:
    """Copy of *doc* with only the *sink_id* section replaced."""
    check_sink_id(sink_id)
    if not isinstance(sink, SINK_MODELS[sink_id]):
        raise ValidationError(f"Section for '{sink_id}' must be {SINK_MODELS[sink_id].__name__}")
    sections = {key: _copy_section(getattr(doc, key)) for key in SINK_IDS}
    sections[sink_id] = sink.model_copy(deep=True)
    return _rebuild(doc, sections, doc.enabled_tags, doc.tag_names)


def merge_enabled_tags(doc: GatewayConfig, enabled_tags: list[str]) -> GatewayConfig:
    """Copy of *doc* with ``enabled_tags`` replaced wholesale."""
    sections = {key: _copy_section(getattr(doc, key)) for key in SINK_IDS}
    return _rebuild(doc, sections, enabled_tags, doc.tag_names)


def merge_tag_names(doc: GatewayConfig, tag_names: dict[str, str]) -> GatewayConfig:
    """Copy of *doc* with ``tag_names`` replaced wholesale."""
    sections = {key: _copy_section(getattr(doc, key)) for key in SINK_IDS}
    return _rebuild(doc, sections, doc.enabled_tags, tag_names)
