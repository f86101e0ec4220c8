"""Tests for gateway document and snapshot models."""

from __future__ import annotations

from datetime import timedelta

import pytest

from ruuvi_panel.client.errors import ValidationError
from ruuvi_panel.models import (
    BridgeStatus,
    DeviceSnapshot,
    GatewayConfig,
    MQTTPublisherConfig,
    PrometheusConfig,
)
from ruuvi_panel.models.config import (
    SINK_IDS,
    InfluxDBPublisherConfig,
    format_duration,
    merge_enabled_tags,
    merge_sink,
    merge_tag_names,
    normalize_mac,
    parse_duration,
    with_defaults,
)


class TestNormalizeMac:
    def test_upper_cases(self):
        assert normalize_mac("aa:bb:cc:dd:ee:ff") == "AA:BB:CC:DD:EE:FF"

    def test_dashes_and_whitespace(self):
        assert normalize_mac(" aa-bb-cc-dd-ee-ff ") == "AA:BB:CC:DD:EE:FF"


class TestDurations:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1s", timedelta(seconds=1)),
            ("500ms", timedelta(milliseconds=500)),
            ("1m30s", timedelta(seconds=90)),
            ("1h", timedelta(hours=1)),
            ("1.5s", timedelta(seconds=1.5)),
            ("0", timedelta(0)),
        ],
    )
    def test_parse(self, text: str, expected: timedelta):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "1", "abc", "1x", "s"])
    def test_parse_invalid(self, text: str):
        with pytest.raises(ValidationError, match="Invalid duration"):
            parse_duration(text)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (timedelta(0), "0s"),
            (timedelta(milliseconds=500), "500ms"),
            (timedelta(seconds=1), "1s"),
            (timedelta(seconds=90), "1m30s"),
            (timedelta(hours=1), "1h0m0s"),
        ],
    )
    def test_format(self, value: timedelta, expected: str):
        assert format_duration(value) == expected


class TestSinkSections:
    def test_enabled_unset_counts_as_active(self):
        assert MQTTPublisherConfig().active is True
        assert MQTTPublisherConfig(enabled=False).active is False

    def test_prometheus_go_field_names(self):
        section = PrometheusConfig.model_validate(
            {"Enabled": True, "Port": 9100, "MeasurementMetricPrefix": "ruuvi"}
        )
        assert section.enabled is True
        assert section.port == 9100
        assert section.measurement_metric_prefix == "ruuvi"

    def test_prometheus_snake_case(self):
        section = PrometheusConfig.model_validate({"enabled": False, "port": 9100})
        assert section.enabled is False
        assert section.model_dump(exclude_none=True) == {"enabled": False, "port": 9100}

    def test_minimum_interval_from_nanoseconds(self):
        section = MQTTPublisherConfig.model_validate({"minimum_interval": 1_500_000_000})
        assert section.minimum_interval == "1.5s"

    def test_minimum_interval_rejects_garbage(self):
        from pydantic import ValidationError as PydanticValidationError

        with pytest.raises(PydanticValidationError):
            MQTTPublisherConfig.model_validate({"minimum_interval": "soon"})

    def test_unknown_fields_are_kept(self):
        section = MQTTPublisherConfig.model_validate({"broker_url": "tcp://x:1883", "qos": 1})
        assert section.model_dump(exclude_none=True)["qos"] == 1


class TestWithDefaults:
    def test_fills_absent_fields(self):
        section = with_defaults("mqtt_publisher", {"broker_url": "tcp://mqtt:1883"})
        assert isinstance(section, MQTTPublisherConfig)
        assert section.broker_url == "tcp://mqtt:1883"
        assert section.client_id == "ruuvi-bridge"
        assert section.topic_prefix == "ruuvi_measurements"
        assert section.minimum_interval == "1s"
        assert section.retain_messages is True

    def test_none_uses_defaults(self):
        section = with_defaults("influxdb_publisher", None)
        assert isinstance(section, InfluxDBPublisherConfig)
        assert section.url == "http://localhost:8086"
        assert section.org == "my-org"
        assert section.bucket == "ruuvi"

    def test_explicit_false_is_kept(self):
        section = with_defaults("mqtt_publisher", {"enabled": False})
        assert section.enabled is False

    def test_unknown_sink(self):
        with pytest.raises(ValidationError, match="Unknown sink 'kafka'"):
            with_defaults("kafka", {})

    def test_bad_value(self):
        with pytest.raises(ValidationError, match="Invalid prometheus settings"):
            with_defaults("prometheus", {"port": "not-a-port"})

    def test_every_sink_has_defaults(self):
        for sink_id in SINK_IDS:
            assert with_defaults(sink_id, None).enabled is True


class TestGatewayConfig:
    def test_null_collections(self):
        config = GatewayConfig.model_validate({"enabled_tags": None, "tag_names": None})
        assert config.enabled_tags == []
        assert config.tag_names == {}

    def test_sink_lookup(self, config_doc: dict):
        config = GatewayConfig.model_validate(config_doc)
        assert config.sink("mqtt_publisher").broker_url == "tcp://mqtt.local:1883"
        assert config.sink("matter") is None
        with pytest.raises(ValidationError):
            config.sink("kafka")

    def test_wire_form_keeps_go_field_names(self, config_doc: dict):
        wire = GatewayConfig.model_validate(config_doc).to_wire()
        assert wire["prometheus"] == {
            "Enabled": False, "Port": 9521, "MeasurementMetricPrefix": "ruuvi",
        }
        assert wire["mqtt_publisher"]["broker_url"] == "tcp://mqtt.local:1883"

    def test_snake_case_draft_goes_out_with_go_names(self):
        wire = GatewayConfig.model_validate(
            {"prometheus": {"enabled": True, "port": 9100, "measurement_metric_prefix": "home"}},
        ).to_wire()
        assert wire["prometheus"] == {
            "Enabled": True, "Port": 9100, "MeasurementMetricPrefix": "home",
        }


class TestMerges:
    def test_merge_sink_replaces_only_that_section(self, config_doc: dict):
        doc = GatewayConfig.model_validate(config_doc)
        section = with_defaults("matter", {"passcode": 11223344})
        merged = merge_sink(doc, "matter", section)

        assert merged.matter.passcode == 11223344
        assert merged.mqtt_publisher == doc.mqtt_publisher
        assert merged.prometheus == doc.prometheus
        assert merged.enabled_tags == doc.enabled_tags
        assert merged.tag_names == doc.tag_names
        assert merged.model_extra == doc.model_extra
        # Original untouched
        assert doc.matter is None

    def test_merge_sink_type_checked(self, config_doc: dict):
        doc = GatewayConfig.model_validate(config_doc)
        with pytest.raises(ValidationError):
            merge_sink(doc, "matter", MQTTPublisherConfig())

    def test_merge_sink_copies_extras(self, config_doc: dict):
        doc = GatewayConfig.model_validate(config_doc)
        merged = merge_sink(doc, "mqtt_publisher", with_defaults("mqtt_publisher", None))
        merged.model_extra["http"]["port"] = 9999
        assert doc.model_extra["http"]["port"] == 8080

    def test_merge_enabled_tags_wholesale(self, config_doc: dict):
        doc = GatewayConfig.model_validate(config_doc)
        merged = merge_enabled_tags(doc, ["AA:BB:CC:DD:EE:09"])
        assert merged.enabled_tags == ["AA:BB:CC:DD:EE:09"]
        assert merged.tag_names == doc.tag_names

    def test_merge_tag_names_wholesale(self, config_doc: dict):
        doc = GatewayConfig.model_validate(config_doc)
        merged = merge_tag_names(doc, {})
        assert merged.tag_names == {}
        assert merged.enabled_tags == doc.enabled_tags


class TestSnapshot:
    def test_millisecond_timestamps(self):
        snap = DeviceSnapshot(mac="aa:bb:cc:dd:ee:01", last_seen=1_717_243_200_000)
        assert snap.last_seen_seconds == 1_717_243_200.0
        assert snap.key == "AA:BB:CC:DD:EE:01"

    def test_second_timestamps(self):
        snap = DeviceSnapshot(mac="AA:BB:CC:DD:EE:01", last_seen=1_717_243_200)
        assert snap.last_seen_seconds == 1_717_243_200.0

    def test_age_never_negative(self):
        snap = DeviceSnapshot(mac="AA:BB:CC:DD:EE:01", last_seen=1_717_243_300)
        assert snap.age(1_717_243_200) == 0.0

    def test_optional_measurements(self):
        snap = DeviceSnapshot.model_validate({"mac": "AA:BB:CC:DD:EE:01", "rssi": -70})
        assert snap.temperature is None
        assert snap.co2 is None


class TestBridgeStatus:
    def test_formatted_code(self):
        status = BridgeStatus.model_validate(
            {"pairing_code": "34970112332", "qr_code": "MT:Y.K9042C00KA0648G00"}
        )
        assert status.formatted_code == "3497-0112-332"
        assert status.qr_payload == "MT:Y.K9042C00KA0648G00"
