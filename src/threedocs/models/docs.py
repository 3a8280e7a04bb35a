from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_SECTION = "Reference"


class SectionHint(BaseModel):
    """Raw headings found around a navigation link, before section resolution."""

    model_config = ConfigDict(frozen=True)

    # Tag name (upper case, as reported by the DOM) and text of the element
    # immediately preceding the link's enclosing <div>
    preceding_tag: str | None = None
    preceding_text: str | None = None
    # Text of the first <h3> inside the enclosing <div>
    group_subheading: str | None = None


class LinkRecord(BaseModel):
    """One documentation page discovered in the navigation panel."""

    model_config = ConfigDict(frozen=True)

    url: str
    display_text: str  # May contain literal [page:Class member] markup
    path_fragment: str  # Hash part of the href, or the raw href; debug aid only
    section: str = DEFAULT_SECTION

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v:
            raise ValueError("LinkRecord.url must be non-empty")
        return v


class DocRecord(BaseModel):
    """Single page as consumed by the assembler. Sequence order is page order."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    section: str = DEFAULT_SECTION

    @field_validator("section", mode="before")
    @classmethod
    def default_section(cls, v: str | None) -> str:
        return v or DEFAULT_SECTION
