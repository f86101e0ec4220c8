"""Authentication for gateways published behind a reverse proxy.

The gateway's management API itself is unauthenticated; these only matter
when the web UI is exposed through a proxy that checks credentials.
"""

from __future__ import annotations

from collections.abc import Generator

import httpx

from ruuvi_panel.config.models import PanelProfile


class BearerTokenAuth(httpx.Auth):
    """Authenticate with an ``Authorization: Bearer`` header."""

    def __init__(self, token: str) -> None:
        self.token = token

    def auth_flow(
        self, request: httpx.Request,
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self.token}"
        yield request


class BasicAuth(httpx.BasicAuth):
    """HTTP Basic auth wrapper."""


def resolve_auth(profile: PanelProfile) -> httpx.Auth | None:
    """Resolve authentication from a gateway profile."""
    if profile.token:
        return BearerTokenAuth(profile.token)
    if profile.username and profile.password:
        return BasicAuth(profile.username, profile.password)
    return None
