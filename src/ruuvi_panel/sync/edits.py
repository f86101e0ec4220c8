"""Edit sessions — client-local drafts held while an edit is open."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SinkEdit(BaseModel):
    """Draft of one sink section."""

    sink_id: str
    draft: dict[str, Any] = Field(default_factory=dict)

    def update(self, **fields: Any) -> None:
        self.draft.update(fields)

    def set_enabled(self, enabled: bool) -> None:
        self.draft["enabled"] = enabled


class TagEdit(BaseModel):
    """Draft of one tag's display name and enabled state."""

    mac: str
    name: str = ""
    enabled: bool = False


Edit = SinkEdit | TagEdit
