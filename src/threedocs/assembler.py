"""Single-file document assembly.

Turns the ordered page records into one HTML document: a side panel
(header, search box, table of contents grouped by section) and a viewer
holding every page. Pure and deterministic; the only inputs are the records
and the fixed site chrome.

Table-of-contents links and viewer wrappers both derive their anchor from
``anchor_id(title)``, so ``#panel`` links always resolve inside ``#viewer``.
"""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING
from urllib.parse import quote

from threedocs.models.docs import DEFAULT_SECTION

if TYPE_CHECKING:
    from collections.abc import Sequence

    from threedocs.models.docs import DocRecord

DEFAULT_BASE_URL = "https://threejs.org"
DEFAULT_TITLE = "Three.js Documentation"
PRETTIFY_LOADER_URL = "https://cdn.jsdelivr.net/gh/google/code-prettify@master/loader/run_prettify.js"

# Characters encodeURIComponent leaves alone besides alphanumerics
_ANCHOR_SAFE = "-_.!~*'()"

_SCRIPT = """
    <script>
      const panel = document.getElementById('panel');
      const expandButton = document.getElementById('expandButton');
      const panelScrim = document.getElementById('panelScrim');
      const filterInput = document.getElementById('filterInput');
      const clearSearchButton = document.getElementById('clearSearchButton');

      expandButton.onclick = function(event) {
        event.preventDefault();
        panel.classList.toggle('open');
      };

      panelScrim.onclick = function(event) {
        event.preventDefault();
        panel.classList.toggle('open');
      };

      filterInput.onfocus = function() {
        panel.classList.add('searchFocused');
      };

      filterInput.onblur = function() {
        if (filterInput.value === '') {
          panel.classList.remove('searchFocused');
        }
      };

      clearSearchButton.onclick = function() {
        filterInput.value = '';
        filterInput.focus();
      };
    </script>
"""


def anchor_id(title: str) -> str:
    """Return the URL-escaped anchor for a page title."""
    return quote(title, safe=_ANCHOR_SAFE)


def group_by_section(records: Sequence[DocRecord]) -> dict[str, list[DocRecord]]:
    """Group records by section, keeping first-seen order of sections and records."""
    sections: dict[str, list[DocRecord]] = {}
    for record in records:
        sections.setdefault(record.section or DEFAULT_SECTION, []).append(record)
    return sections


def render_head(base_url: str = DEFAULT_BASE_URL, title: str = DEFAULT_TITLE) -> str:
    return f"""
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, user-scalable=no, minimum-scale=1.0, maximum-scale=1.0">
    <title>{escape(title)}</title>
    <link rel="shortcut icon" href="{base_url}/files/favicon_white.ico" media="(prefers-color-scheme: dark)"/>
    <link rel="shortcut icon" href="{base_url}/files/favicon.ico" media="(prefers-color-scheme: light)" />
    <link rel="stylesheet" type="text/css" href="{base_url}/docs/page.css">
    <script src="{PRETTIFY_LOADER_URL}"></script>
"""


def render_header(base_url: str = DEFAULT_BASE_URL) -> str:
    return f"""
    <div id="header">
      <h1><a href="{base_url}">three.js</a></h1>
      <div id="sections">
        <span class="selected">docs</span>
      </div>
      <div id="expandButton"></div>
    </div>
"""


def render_search() -> str:
    return """
    <div id="inputWrapper">
      <input type="text" id="filterInput" placeholder="Search" autocorrect="off" autocapitalize="off" spellcheck="false" />
      <div id="clearSearchButton"></div>
    </div>
"""


def render_table_of_contents(records: Sequence[DocRecord]) -> str:
    parts: list[str] = []
    for section, docs in group_by_section(records).items():
        items = "".join(
            f'\n          <li><a href="#{anchor_id(doc.title)}">{escape(doc.title)}</a></li>'
            for doc in docs
        )
        parts.append(
            f"""
      <h2>{escape(section)}</h2>
      <div class="subsection">
        <ul>{items}
        </ul>
      </div>
"""
        )
    return "".join(parts)


def render_content(records: Sequence[DocRecord]) -> str:
    # Content is already-normalized HTML: embedded verbatim, never escaped.
    return "".join(
        f"""
      <div class="manual" id="{anchor_id(doc.title)}">
        {doc.content}
      </div>
"""
        for doc in records
    )


def render_script() -> str:
    return _SCRIPT


def render_body(records: Sequence[DocRecord], base_url: str = DEFAULT_BASE_URL) -> str:
    return f"""
    <div id="panel">
      {render_header(base_url)}
      <div id="panelScrim"></div>
      <div id="contentWrapper">
        {render_search()}
        <div id="content">
          {render_table_of_contents(records)}
        </div>
      </div>
    </div>
    <div id="viewer">
      {render_content(records)}
    </div>
    {render_script()}
"""


def assemble(
    records: Sequence[DocRecord],
    *,
    base_url: str = DEFAULT_BASE_URL,
    title: str = DEFAULT_TITLE,
) -> str:
    """Build the complete offline document. An empty sequence is valid."""
    origin = base_url.rstrip("/")
    return f"""<!DOCTYPE html>
<html lang="en">
  <head>
    {render_head(origin, title)}
  </head>
  <body>
    {render_body(records, origin)}
  </body>
</html>
"""
