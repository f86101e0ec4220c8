"""Reconciliation controller — drives loading, polling, edits and restarts.

State machine::

    loading ──load ok──> ready ──open edit──> editing ──commit ok / cancel──> ready
                           │
                           └──request──> restart_pending ──confirm──> restarting
                                              ^     │                     │
                                              │   cancel ──> ready        │
                                              └──── restart call failed ──┤
                                                                          │
    loading <── session torn down, grace delay, fresh load ───────────────┘

A failed load leaves the controller in ``loading`` with no session: a
half-populated configuration is never exposed for editing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from ruuvi_panel.client.errors import (
    InvalidStateError,
    PanelError,
    TransportError,
)
from ruuvi_panel.client.gateway import GatewayTransport
from ruuvi_panel.config.constants import DEFAULT_POLL_INTERVAL, DEFAULT_RESTART_GRACE
from ruuvi_panel.config.models import PanelProfile
from ruuvi_panel.models.common import BridgeStatus
from ruuvi_panel.models.config import SINK_DEFAULTS, GatewayConfig, check_sink_id, normalize_mac
from ruuvi_panel.sync.edits import Edit, SinkEdit, TagEdit
from ruuvi_panel.sync.poller import SnapshotPoller
from ruuvi_panel.sync.session import PanelSession

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class PanelState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    EDITING = "editing"
    RESTART_PENDING = "restart_pending"
    RESTARTING = "restarting"


class PanelController:
    """Keeps a :class:`PanelSession` consistent with the gateway."""

    def __init__(
        self,
        transport: GatewayTransport,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        restart_grace: float = DEFAULT_RESTART_GRACE,
        missing_poll_limit: int | None = None,
        on_refresh: Callable[[], Awaitable[None] | None] | None = None,
        sleep: Sleep = asyncio.sleep,
        owns_transport: bool = False,
    ) -> None:
        self.transport = transport
        self.poll_interval = poll_interval
        self.restart_grace = restart_grace
        self.missing_poll_limit = missing_poll_limit
        self._on_refresh = on_refresh
        self._sleep = sleep
        self._owns_transport = owns_transport
        self._state = PanelState.LOADING
        self._session: PanelSession | None = None
        self._poller: SnapshotPoller | None = None
        self._polling = False
        self._edit: Edit | None = None
        # Survives a plain reload (and a failed one); only a restart clears it
        self._carry_restart_required = False

    @classmethod
    def from_profile(cls, profile: PanelProfile, **kwargs: Any) -> PanelController:
        """Build a controller with its own transport and the profile's sync settings."""
        kwargs.setdefault("poll_interval", profile.poll_interval)
        kwargs.setdefault("restart_grace", profile.restart_grace)
        kwargs.setdefault("missing_poll_limit", profile.missing_poll_limit)
        return cls(GatewayTransport(profile), owns_transport=True, **kwargs)

    async def __aenter__(self) -> PanelController:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    # -- accessors ---------------------------------------------------------

    @property
    def state(self) -> PanelState:
        return self._state

    @property
    def session(self) -> PanelSession:
        if self._session is None:
            raise InvalidStateError("Gateway state has not been loaded")
        return self._session

    @property
    def config(self) -> GatewayConfig:
        return self.session.store.get()

    @property
    def restart_required(self) -> bool:
        return self._session is not None and self._session.restart_required

    @property
    def edit(self) -> Edit | None:
        return self._edit

    @property
    def polling(self) -> bool:
        return self._poller is not None and self._poller.running

    def _require(self, *states: PanelState) -> None:
        if self._state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidStateError(
                f"Cannot do that while {self._state.value} (needs: {allowed})"
            )

    # -- loading and polling -------------------------------------------------

    async def load(
        self, *, poll: bool = True, clear_restart_required: bool = False,
    ) -> PanelSession:
        """Fetch configuration and snapshots together and start a new session.

        A pending restart-required flag is carried into the new session;
        only the reload that follows a gateway restart passes
        *clear_restart_required*.
        """
        carry = self._carry_restart_required or self.restart_required
        self._carry_restart_required = carry and not clear_restart_required
        await self._teardown()
        self._state = PanelState.LOADING
        results = await asyncio.gather(
            self.transport.fetch_config(),
            self.transport.fetch_snapshots(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                logger.error("Loading gateway state failed: %s", result)
                raise result
        document, snapshots = results
        self._session = PanelSession(
            self.transport,
            document,
            snapshots,
            missing_poll_limit=self.missing_poll_limit,
        )
        if self._carry_restart_required:
            self._session.store.mark_restart_required()
            self._carry_restart_required = False
        self._state = PanelState.READY
        self._polling = poll
        if poll:
            self._start_poller()
        logger.info("Loaded gateway %s with %d tags", document.gw_mac, len(snapshots))
        return self._session

    def _start_poller(self) -> None:
        self._poller = SnapshotPoller(
            self.session.cache, self.poll_interval, on_refresh=self._on_refresh,
        )
        self._poller.start()

    async def refresh_snapshots(self) -> None:
        """One manual snapshot refresh; unlike a poll tick, errors propagate."""
        await self.session.cache.refresh()

    async def _teardown(self) -> None:
        if self._poller is not None:
            await self._poller.stop()
            self._poller = None
        if self._session is not None:
            self._session.close()
            self._session = None
        self._edit = None

    async def shutdown(self) -> None:
        """Stop polling and drop the session."""
        await self._teardown()
        self._state = PanelState.LOADING

    async def aclose(self) -> None:
        await self.shutdown()
        if self._owns_transport:
            await self.transport.close()

    # -- edits ---------------------------------------------------------------

    def open_sink_edit(self, sink_id: str) -> SinkEdit:
        """Start editing a sink from the latest stored section."""
        self._require(PanelState.READY)
        check_sink_id(sink_id)
        current = self.session.store.sink(sink_id)
        if current is None:
            draft = dict(SINK_DEFAULTS[sink_id])
        else:
            draft = current.model_dump(exclude_none=True)
        edit = SinkEdit(sink_id=sink_id, draft=draft)
        self._edit = edit
        self._state = PanelState.EDITING
        return edit

    def open_tag_edit(self, mac: str) -> TagEdit:
        """Start editing one tag's name and enabled state."""
        self._require(PanelState.READY)
        ledger = self.session.ledger
        edit = TagEdit(
            mac=normalize_mac(mac),
            name=ledger.custom_name(mac) or "",
            enabled=ledger.is_enabled(mac),
        )
        self._edit = edit
        self._state = PanelState.EDITING
        return edit

    async def commit_edit(self) -> None:
        """Send the open draft to the gateway.

        On any failure the draft stays open so the operator can retry.
        """
        self._require(PanelState.EDITING)
        edit = self._edit
        if edit is None:
            raise InvalidStateError("No edit is open")
        session = self.session
        if isinstance(edit, SinkEdit):
            await session.store.replace_sink(edit.sink_id, edit.draft)
        else:
            await session.ledger.apply(edit.mac, name=edit.name, enabled=edit.enabled)
        self._edit = None
        self._state = PanelState.READY

    def cancel_edit(self) -> None:
        """Discard the open draft without contacting the gateway."""
        if self._state is not PanelState.EDITING:
            return
        self._edit = None
        self._state = PanelState.READY

    async def save_sink(
        self,
        sink_id: str,
        fields: dict[str, Any] | None = None,
        *,
        enabled: bool | None = None,
    ) -> GatewayConfig:
        """Open, fill and commit a sink edit in one step."""
        edit = self.open_sink_edit(sink_id)
        edit.update(**(fields or {}))
        if enabled is not None:
            edit.set_enabled(enabled)
        try:
            await self.commit_edit()
        except PanelError:
            self.cancel_edit()
            raise
        return self.config

    async def save_tag(self, mac: str, *, name: str, enabled: bool) -> None:
        """Open, fill and commit a compound tag edit in one step."""
        edit = self.open_tag_edit(mac)
        edit.name = name
        edit.enabled = enabled
        try:
            await self.commit_edit()
        except PanelError:
            self.cancel_edit()
            raise

    async def set_tag_enabled(self, mac: str, enabled: bool) -> list[str]:
        self._require(PanelState.READY)
        return await self.session.ledger.set_enabled(mac, enabled)

    async def set_tag_name(self, mac: str, name: str) -> dict[str, str]:
        self._require(PanelState.READY)
        return await self.session.ledger.set_name(mac, name)

    # -- restart -------------------------------------------------------------

    def request_restart(self) -> None:
        """Show the restart affordance; nothing is sent yet."""
        self._require(PanelState.READY)
        self._state = PanelState.RESTART_PENDING

    def cancel_restart(self) -> None:
        """Back out of the restart prompt; the restart-required flag stays."""
        if self._state is PanelState.RESTART_PENDING:
            self._state = PanelState.READY

    def dismiss_restart_required(self) -> None:
        self.session.store.dismiss_restart_required()
        self.cancel_restart()

    async def confirm_restart(self) -> PanelSession:
        """Restart the gateway, wait out the grace period and reload from scratch.

        The reload is not a health check: after the grace delay the gateway
        is assumed to be back. If the reload fails the controller stays in
        ``loading``.
        """
        self._require(PanelState.RESTART_PENDING)
        self._state = PanelState.RESTARTING
        try:
            result = await self.transport.restart()
            if not result.restarting:
                raise TransportError(200, "Gateway declined to restart")
        except TransportError:
            self._state = PanelState.RESTART_PENDING
            raise
        logger.info("Gateway restarting; reloading in %.1fs", self.restart_grace)
        poll = self._polling
        await self._teardown()
        await self._sleep(self.restart_grace)
        await self.transport.reconnect()
        self._state = PanelState.LOADING
        return await self.load(poll=poll, clear_restart_required=True)

    async def restart(self) -> PanelSession:
        if self._state is not PanelState.RESTART_PENDING:
            self.request_restart()
        return await self.confirm_restart()

    # -- bridge --------------------------------------------------------------

    async def bridge_status(self) -> BridgeStatus:
        return await self.transport.fetch_bridge_status()
