"""HTML normalization for extracted manual content.

Pure functions over BeautifulSoup trees. Code blocks are rewritten for
Google code-prettify, root-relative image and link targets are made
absolute against the site origin, and a few known tag-adjacency defects in
the source markup are flagged.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

DEFAULT_LANGUAGE = "javascript"
INLINE_CODE_CLASS = "inline"

# Tag adjacencies the docs site is known to emit; advisory only.
MALFORMED_PATTERNS: tuple[str, ...] = ("</div></p>", "<p></div>", "<div></p>")

_LANGUAGE_RE = re.compile(r"language-(\w+)")
_RESOURCE_ATTRS = ("src", "href")


def _preserve_whitespace(tag: Tag) -> None:
    """Set ``white-space: pre`` on *tag*, keeping its other inline styles."""
    declarations = [
        d.strip()
        for d in str(tag.get("style", "")).split(";")
        if d.strip() and not d.strip().lower().startswith("white-space")
    ]
    declarations.append("white-space: pre")
    tag["style"] = "; ".join(declarations) + ";"


def code_language(tag: Tag) -> str:
    """Return the ``language-<name>`` token of *tag*, or the default language."""
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    match = _LANGUAGE_RE.search(" ".join(classes))
    return match.group(1) if match else DEFAULT_LANGUAGE


def normalize_code_blocks(root: Tag) -> None:
    """Rewrite code markup in place.

    Every ``<pre>`` gets its inner ``<code>`` (or itself, when it has none)
    classed ``prettyprint lang-<name>``. Standalone ``<code>`` elements are
    classed ``inline``. Both keep literal whitespace.
    """
    for pre in root.find_all("pre"):
        code = pre.find("code") or pre
        code["class"] = ["prettyprint", f"lang-{code_language(code)}"]
        _preserve_whitespace(code)

    for code in root.find_all("code"):
        if code.find_parent("pre") is not None:
            continue
        code["class"] = [INLINE_CODE_CLASS]
        _preserve_whitespace(code)


def absolutize_resources(root: Tag, base_url: str) -> None:
    """Prefix root-relative ``src``/``href`` values on images and links with *base_url*.

    Absolute and protocol-relative (``//host/...``) references are left alone.
    """
    origin = base_url.rstrip("/")
    for tag in root.find_all(["img", "a"]):
        for attr in _RESOURCE_ATTRS:
            value = tag.get(attr)
            if isinstance(value, str) and value.startswith("/") and not value.startswith("//"):
                tag[attr] = f"{origin}{value}"


def detect_malformed_html(html: str) -> bool:
    return any(pattern in html for pattern in MALFORMED_PATTERNS)


def normalize_fragment(html: str, base_url: str) -> str:
    """Parse an HTML fragment, apply all normalizations, and serialize it back."""
    soup = BeautifulSoup(html, "html.parser")
    normalize_code_blocks(soup)
    absolutize_resources(soup, base_url)
    return str(soup)
