"""Configuration store — the client-side copy of the gateway configuration.

The gateway has no field-level patch for sink sections, so a sink edit is
always merged into a copy of the latest known full document and sent back
as a full replace. The stored document only changes after the gateway has
accepted the new one.
"""

from __future__ import annotations

import logging
from typing import Any

from ruuvi_panel.client.gateway import GatewayTransport
from ruuvi_panel.models.config import (
    GatewayConfig,
    SinkConfig,
    check_sink_id,
    merge_enabled_tags,
    merge_sink,
    merge_tag_names,
    with_defaults,
)

logger = logging.getLogger(__name__)


class ConfigStore:
    """Holds the full :class:`GatewayConfig` and the restart-required flag."""

    def __init__(self, transport: GatewayTransport, document: GatewayConfig) -> None:
        self._transport = transport
        self._document = document
        self._restart_required = False

    def get(self) -> GatewayConfig:
        """A copy of the current document; edits to it do not affect the store."""
        return self._document.model_copy(deep=True)

    def sink(self, sink_id: str) -> SinkConfig | None:
        section = self._document.sink(sink_id)
        return None if section is None else section.model_copy(deep=True)

    @property
    def enabled_tags(self) -> list[str]:
        return list(self._document.enabled_tags)

    @property
    def tag_names(self) -> dict[str, str]:
        return dict(self._document.tag_names)

    @property
    def restart_required(self) -> bool:
        return self._restart_required

    def mark_restart_required(self) -> None:
        if not self._restart_required:
            logger.info("Gateway restart required for saved changes to take effect")
        self._restart_required = True

    def dismiss_restart_required(self) -> None:
        self._restart_required = False

    async def replace_sink(
        self, sink_id: str, sink: SinkConfig | dict[str, Any],
    ) -> GatewayConfig:
        """Save one sink section.

        Absent fields are filled with defaults. On a transport failure the
        stored document is left exactly as it was and the error propagates.
        """
        check_sink_id(sink_id)
        section = with_defaults(sink_id, sink)
        candidate = merge_sink(self._document, sink_id, section)
        await self._transport.replace_config(candidate)
        self._document = candidate
        self.mark_restart_required()
        logger.info("Saved %s section", sink_id)
        return self.get()

    def apply_enabled_tags(self, enabled_tags: list[str]) -> None:
        """Write back the server's authoritative allowlist."""
        self._document = merge_enabled_tags(self._document, enabled_tags)
        self.mark_restart_required()

    def apply_tag_names(self, tag_names: dict[str, str]) -> None:
        """Write back the server's authoritative name map."""
        self._document = merge_tag_names(self._document, tag_names)
        self.mark_restart_required()
