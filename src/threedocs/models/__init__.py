from __future__ import annotations

from threedocs.models.cache import CachedPage
from threedocs.models.docs import DEFAULT_SECTION, DocRecord, LinkRecord, SectionHint

__all__ = [
    # cache
    "CachedPage",
    # docs
    "DEFAULT_SECTION",
    "SectionHint",
    "LinkRecord",
    "DocRecord",
]
