"""Response models for the gateway's mutating endpoints."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field


class TagEnableResult(BaseModel):
    """``POST /api/tags/enable`` response: the full allowlist after the change."""

    success: bool
    enabled_tags: list[str] = Field(default_factory=list)


class TagNameResult(BaseModel):
    """``POST /api/tags/name`` response: the full name map after the change."""

    success: bool
    tag_names: dict[str, str] = Field(default_factory=dict)


class BridgeStatus(BaseModel):
    """Matter bridge pairing information."""

    pairing_code: str
    qr_payload: str = Field(validation_alias=AliasChoices("qr_payload", "qr_code"))

    @property
    def formatted_code(self) -> str:
        """Pairing code grouped in fours, as printed on Matter labels."""
        code = self.pairing_code
        return "-".join(code[i:i + 4] for i in range(0, len(code), 4))


class RestartResult(BaseModel):
    """``POST /api/restart`` response."""

    restarting: bool = False
