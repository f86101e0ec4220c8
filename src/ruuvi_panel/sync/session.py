"""Per-load panel state.

One :class:`PanelSession` exists per successful load. A restart tears it
down and the next load builds a new one, so nothing carries over across
the restart boundary. A plain reload gets a new session too; the
controller re-raises the restart-required flag in it if it was set.
"""

from __future__ import annotations

from ruuvi_panel.client.gateway import GatewayTransport
from ruuvi_panel.models.config import GatewayConfig
from ruuvi_panel.models.snapshot import DeviceSnapshot
from ruuvi_panel.sync.ledger import TagLedger
from ruuvi_panel.sync.snapshots import SnapshotCache
from ruuvi_panel.sync.store import ConfigStore


class PanelSession:
    """Store, snapshot cache and ledger built from one load."""

    def __init__(
        self,
        transport: GatewayTransport,
        document: GatewayConfig,
        snapshots: list[DeviceSnapshot],
        *,
        missing_poll_limit: int | None = None,
    ) -> None:
        self.store = ConfigStore(transport, document)
        self.cache = SnapshotCache(transport, missing_poll_limit=missing_poll_limit)
        self.cache.replace(snapshots)
        self.ledger = TagLedger(transport, self.store)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def restart_required(self) -> bool:
        return self.store.restart_required

    def close(self) -> None:
        self._closed = True
        self.cache.close()
