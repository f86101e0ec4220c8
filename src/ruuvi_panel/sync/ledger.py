"""Tag membership and naming ledger.

Enabling and naming a tag go through two dedicated endpoints. Each returns
the complete updated collection (``enabled_tags`` or ``tag_names``) and the
ledger writes that collection back into the store as-is: the gateway, not
the client, merges these two fields.

An empty or missing ``enabled_tags`` list means no tag is enabled.
"""

from __future__ import annotations

import logging

from ruuvi_panel.client.errors import PartialMutationError, TransportError
from ruuvi_panel.client.gateway import GatewayTransport
from ruuvi_panel.models.config import normalize_mac
from ruuvi_panel.sync.store import ConfigStore

logger = logging.getLogger(__name__)


def default_name(mac: str) -> str:
    """Label for a tag that has no configured name, e.g. ``RuuviTag EE:FF``."""
    return f"RuuviTag {normalize_mac(mac)[-5:]}"


class TagLedger:
    """Reads and updates per-tag enablement and display names."""

    def __init__(self, transport: GatewayTransport, store: ConfigStore) -> None:
        self._transport = transport
        self._store = store

    def is_enabled(self, mac: str) -> bool:
        key = normalize_mac(mac)
        return any(normalize_mac(m) == key for m in self._store.enabled_tags)

    def custom_name(self, mac: str) -> str | None:
        key = normalize_mac(mac)
        names = self._store.tag_names
        # Exact match first: the gateway stores upper case, hand-edited files may not
        if names.get(key):
            return names[key]
        for stored, name in names.items():
            if normalize_mac(stored) == key and name:
                return name
        return None

    def display_name(self, mac: str) -> str:
        return self.custom_name(mac) or default_name(mac)

    def enabled_tags(self) -> list[str]:
        return sorted({normalize_mac(m) for m in self._store.enabled_tags})

    async def set_enabled(self, mac: str, enabled: bool) -> list[str]:
        """Add *mac* to or remove it from the allowlist. Idempotent."""
        result = await self._transport.set_tag_enabled(normalize_mac(mac), enabled)
        if not result.success:
            raise TransportError(200, f"Gateway did not update enabled state of {mac}")
        self._store.apply_enabled_tags(result.enabled_tags)
        logger.info("%s %s", "Enabled" if enabled else "Disabled", normalize_mac(mac))
        return list(result.enabled_tags)

    async def set_name(self, mac: str, name: str) -> dict[str, str]:
        """Set the display name of *mac*; an empty name removes it."""
        result = await self._transport.set_tag_name(normalize_mac(mac), name.strip())
        if not result.success:
            raise TransportError(200, f"Gateway did not update name of {mac}")
        self._store.apply_tag_names(result.tag_names)
        logger.info("Named %s %r", normalize_mac(mac), name.strip())
        return dict(result.tag_names)

    async def apply(self, mac: str, *, name: str, enabled: bool) -> None:
        """Save name and enabled state of one tag as two independent calls.

        Raises :class:`PartialMutationError` when exactly one call failed;
        the half that succeeded stays applied. When both fail, the name
        call's error is raised.
        """
        name_error: TransportError | None = None
        enabled_error: TransportError | None = None
        try:
            await self.set_name(mac, name)
        except TransportError as exc:
            name_error = exc
        try:
            await self.set_enabled(mac, enabled)
        except TransportError as exc:
            enabled_error = exc

        if name_error and enabled_error:
            raise name_error
        if name_error:
            raise PartialMutationError("enabled", "name", name_error)
        if enabled_error:
            raise PartialMutationError("name", "enabled", enabled_error)
