"""Client-side synchronization of gateway configuration and tag snapshots."""

from ruuvi_panel.sync.controller import PanelController, PanelState
from ruuvi_panel.sync.edits import SinkEdit, TagEdit
from ruuvi_panel.sync.ledger import TagLedger
from ruuvi_panel.sync.poller import SnapshotPoller
from ruuvi_panel.sync.session import PanelSession
from ruuvi_panel.sync.snapshots import SnapshotCache, classify_freshness, describe_age
from ruuvi_panel.sync.store import ConfigStore

__all__ = [
    "ConfigStore",
    "PanelController",
    "PanelSession",
    "PanelState",
    "SinkEdit",
    "SnapshotCache",
    "SnapshotPoller",
    "TagEdit",
    "TagLedger",
    "classify_freshness",
    "describe_age",
]
