"""Sensor snapshot cache — latest known reading per discovered device."""

from __future__ import annotations

import logging
import time
from datetime import datetime

from ruuvi_panel.client.gateway import GatewayTransport
from ruuvi_panel.config.constants import AGING_THRESHOLD, LIVE_THRESHOLD
from ruuvi_panel.models.config import normalize_mac
from ruuvi_panel.models.snapshot import DeviceSnapshot, Freshness

logger = logging.getLogger(__name__)


def classify_freshness(snapshot: DeviceSnapshot, now: float | None = None) -> Freshness:
    """Classify how recent *snapshot* is. Advisory only; nothing is hidden."""
    age = snapshot.age(time.time() if now is None else now)
    if age < LIVE_THRESHOLD:
        return Freshness.LIVE
    if age < AGING_THRESHOLD:
        return Freshness.AGING
    return Freshness.STALE


def describe_age(snapshot: DeviceSnapshot, now: float | None = None) -> str:
    """Human-readable age, e.g. ``Updated 12s ago``."""
    if not snapshot.last_seen:
        return "Never updated"
    age = int(snapshot.age(time.time() if now is None else now))
    if age < LIVE_THRESHOLD:
        return f"Updated {age}s ago"
    if age < AGING_THRESHOLD:
        return f"Updated {age // 60}m ago"
    seen = datetime.fromtimestamp(snapshot.last_seen_seconds).astimezone()
    return f"Last update: {seen.strftime('%Y-%m-%d %H:%M:%S')}"


class SnapshotCache:
    """Holds the most recent :class:`DeviceSnapshot` per device.

    Each poll response is authoritative for every device it lists: those
    entries are replaced wholesale. A device missing from a response is a
    transient gap and keeps its previous snapshot. With *missing_poll_limit*
    set, a device is dropped once it has been absent from that many
    consecutive polls.
    """

    def __init__(
        self,
        transport: GatewayTransport,
        *,
        missing_poll_limit: int | None = None,
    ) -> None:
        self._transport = transport
        self._missing_poll_limit = missing_poll_limit
        self._snapshots: dict[str, DeviceSnapshot] = {}
        self._misses: dict[str, int] = {}
        self._closed = False
        self.refreshed_at: float | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    async def refresh(self) -> bool:
        """Fetch the current snapshot set and apply it.

        Returns ``False`` when the cache was closed while the request was in
        flight and the result was discarded. Transport errors propagate.
        """
        snapshots = await self._transport.fetch_snapshots()
        if self._closed:
            logger.debug("Discarding snapshot response for a closed cache")
            return False
        self.replace(snapshots)
        return True

    def replace(self, snapshots: list[DeviceSnapshot]) -> None:
        """Apply one poll response."""
        fresh = {s.key: s for s in snapshots}
        retained: dict[str, DeviceSnapshot] = {}
        misses: dict[str, int] = {}
        for key, previous in self._snapshots.items():
            if key in fresh:
                continue
            count = self._misses.get(key, 0) + 1
            if self._missing_poll_limit is not None and count >= self._missing_poll_limit:
                logger.info("Dropping %s after %d polls without it", key, count)
                continue
            retained[key] = previous
            misses[key] = count
        retained.update(fresh)
        self._snapshots = retained
        self._misses = misses
        self.refreshed_at = time.time()

    def get(self, mac: str) -> DeviceSnapshot | None:
        return self._snapshots.get(normalize_mac(mac))

    def missed_polls(self, mac: str) -> int:
        """Consecutive polls *mac* has been absent from (0 when present)."""
        return self._misses.get(normalize_mac(mac), 0)

    def devices(self) -> list[DeviceSnapshot]:
        """All known snapshots, sorted by device identifier."""
        return [self._snapshots[key] for key in sorted(self._snapshots)]

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, mac: object) -> bool:
        return isinstance(mac, str) and normalize_mac(mac) in self._snapshots
