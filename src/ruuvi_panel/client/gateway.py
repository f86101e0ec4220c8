"""Gateway HTTP client.

The only component that touches the network. Every call either returns a
fully parsed payload or raises a :class:`TransportError`; there is no retry
and no policy here.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ruuvi_panel.client.auth import resolve_auth
from ruuvi_panel.client.errors import (
    AuthenticationError,
    BridgeUnavailableError,
    GatewayConnectionError,
    NotFoundError,
    TransportError,
)
from ruuvi_panel.config.constants import (
    API_CONFIG,
    API_MATTER,
    API_RESTART,
    API_TAG_ENABLE,
    API_TAG_NAME,
    API_TAGS,
)
from ruuvi_panel.config.models import PanelProfile
from ruuvi_panel.models.common import (
    BridgeStatus,
    RestartResult,
    TagEnableResult,
    TagNameResult,
)
from ruuvi_panel.models.config import GatewayConfig
from ruuvi_panel.models.snapshot import DeviceSnapshot

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_SNAPSHOT_LIST = TypeAdapter(list[DeviceSnapshot])


class GatewayTransport:
    """Asynchronous HTTP client for the gateway management API."""

    def __init__(self, profile: PanelProfile) -> None:
        self.profile = profile
        self.base_url = profile.url
        self._client = self._open()

    def _open(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=resolve_auth(self.profile),
            verify=self.profile.verify_ssl,
            timeout=self.profile.timeout,
            headers={"Accept": "application/json"},
        )

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def close(self) -> None:
        await self._client.aclose()

    async def reconnect(self) -> None:
        """Drop pooled connections and start over, e.g. after a gateway restart."""
        await self._client.aclose()
        self._client = self._open()

    async def __aenter__(self) -> GatewayTransport:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response
        status = response.status_code
        try:
            body = response.json()
            detail = body.get("message") or body.get("error") or response.text
        except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
            detail = response.text.strip()
        if status in (401, 403):
            raise AuthenticationError(
                status, "Authentication failed. Check the profile's token or credentials.",
            )
        if status == 404:
            raise NotFoundError(status, f"Not found: {response.request.url.path}")
        if status == 503 and response.request.url.path.endswith(API_MATTER):
            raise BridgeUnavailableError(status, detail or "Matter bridge not initialized")
        raise TransportError(status, detail)

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, path)
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.ConnectError as exc:
            raise GatewayConnectionError(
                f"Cannot connect to gateway at {self.base_url}: {exc}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise GatewayConnectionError(
                f"Request to {self.base_url} timed out: {exc}"
            ) from exc
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise GatewayConnectionError(
                f"Invalid URL for gateway at {self.base_url}: {exc}"
            ) from exc
        except httpx.TransportError as exc:
            raise GatewayConnectionError(
                f"Connection to {self.base_url} failed: {exc}"
            ) from exc
        logger.debug("%s %s -> %d", method, path, response.status_code)
        return self._handle_response(response)

    def _parse(self, response: httpx.Response, model: type[M]) -> M:
        try:
            return model.model_validate_json(response.content)
        except PydanticValidationError as exc:
            raise TransportError(
                response.status_code, f"Malformed response from {response.request.url.path}: {exc}",
            ) from exc

    async def fetch_config(self) -> GatewayConfig:
        response = await self.request("GET", API_CONFIG)
        return self._parse(response, GatewayConfig)

    async def replace_config(self, config: GatewayConfig) -> None:
        await self.request("POST", API_CONFIG, json=config.to_wire())

    async def fetch_snapshots(self) -> list[DeviceSnapshot]:
        response = await self.request("GET", API_TAGS)
        try:
            return _SNAPSHOT_LIST.validate_json(response.content or b"[]")
        except PydanticValidationError as exc:
            raise TransportError(
                response.status_code, f"Malformed response from {API_TAGS}: {exc}",
            ) from exc

    async def set_tag_enabled(self, mac: str, enabled: bool) -> TagEnableResult:
        response = await self.request(
            "POST", API_TAG_ENABLE, json={"mac": mac, "enabled": enabled},
        )
        return self._parse(response, TagEnableResult)

    async def set_tag_name(self, mac: str, name: str) -> TagNameResult:
        response = await self.request(
            "POST", API_TAG_NAME, json={"mac": mac, "name": name},
        )
        return self._parse(response, TagNameResult)

    async def fetch_bridge_status(self) -> BridgeStatus:
        response = await self.request("GET", API_MATTER)
        return self._parse(response, BridgeStatus)

    async def restart(self) -> RestartResult:
        response = await self.request("POST", API_RESTART)
        return self._parse(response, RestartResult)
