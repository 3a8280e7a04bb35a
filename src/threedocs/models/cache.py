from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CachedPage(BaseModel):
    """Extraction result for one documentation page, as persisted on disk."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str  # HTML fragment, embedded verbatim inside a wrapper element
    has_malformed_html: bool = False
