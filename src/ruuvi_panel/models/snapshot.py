"""Sensor snapshot data models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from ruuvi_panel.models.config import normalize_mac

# Timestamps above this are milliseconds (10^11 s is the year 5138)
_MILLIS_CUTOFF = 100_000_000_000


class Freshness(str, Enum):
    """How recent a snapshot is. Never affects whether it is shown."""

    LIVE = "live"
    AGING = "aging"
    STALE = "stale"


class DeviceSnapshot(BaseModel):
    """Latest known reading set for one discovered RuuviTag."""

    mac: str
    rssi: int = 0
    data_format: int = 0
    temperature: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    battery_voltage: float | None = None
    tx_power: int | None = None
    movement_counter: int | None = None
    measurement_sequence_number: int | None = None
    # Extended fields (formats E1 / 6)
    pm1p0: float | None = None
    pm2p5: float | None = None
    pm4p0: float | None = None
    pm10p0: float | None = None
    co2: float | None = None
    voc: float | None = None
    nox: float | None = None
    illuminance: float | None = None
    sound_instant: float | None = None
    sound_average: float | None = None
    sound_peak: float | None = None
    air_quality_index: float | None = None
    last_seen: float = 0

    @property
    def key(self) -> str:
        return normalize_mac(self.mac)

    @property
    def last_seen_seconds(self) -> float:
        """``last_seen`` as seconds since the epoch.

        The gateway stamps tags in milliseconds; older builds and the mock
        data use seconds.
        """
        if self.last_seen > _MILLIS_CUTOFF:
            return self.last_seen / 1000
        return float(self.last_seen)

    def age(self, now: float) -> float:
        return max(0.0, now - self.last_seen_seconds)
