"""
Href extraction and section-marker detection for generated HTML.

Both extractors share one signature, ``(html: str) -> List[str]``, so the
crawler can be handed either. The regex version matches the build scripts
that historically validated the site; the parser version tolerates
unquoted attributes and odd whitespace.
"""

from __future__ import annotations

import re
from html import unescape
from html.parser import HTMLParser
from typing import Callable, Dict, List, Optional, Tuple

HrefExtractor = Callable[[str], List[str]]

ANCHOR_HREF_RE = re.compile(r"""<a\s+[^>]*href\s*=\s*["']([^"']+)["']""", re.IGNORECASE)

# Section markers, matched on raw HTML
RELATED_GRID_RE = re.compile(r"related-size-grid|Explore Nearby Size Conversions", re.IGNORECASE)
REGION_BLOCK_RE = re.compile(r"Region Converters|region-converters-block", re.IGNORECASE)
REGION_LINK_RE = re.compile(
    r"eu-to-us-shoe-size|us-to-uk-shoe-size|japan-to-us-shoe-size|cm-to-us-shoe-size",
    re.IGNORECASE,
)
AUTHORITY_BLOCK_RE = re.compile(r"Authority Links|authority-links-block", re.IGNORECASE)
BRAND_LINK_RE = re.compile(r"brand-size-guides|brand-sizing-guide", re.IGNORECASE)
TOOLS_LINK_RE = re.compile(
    r"measurement-tools|measurement-assistant|shoe-sizing-guides|shoe-size-pages",
    re.IGNORECASE,
)


def extract_hrefs(html: str) -> List[str]:
    """Return every quoted ``<a href>`` value in document order, entity-decoded."""
    return [unescape(href) for href in ANCHOR_HREF_RE.findall(html)]


class _AnchorParser(HTMLParser):
    """Collect href attributes of <a> tags (stdlib only, no BeautifulSoup)."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.hrefs: List[str] = []

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        if tag != "a":
            return
        for name, value in attrs:
            if name == "href" and value:
                self.hrefs.append(value.strip())
                break


def parse_hrefs(html: str) -> List[str]:
    """HTMLParser-backed equivalent of :func:`extract_hrefs`."""
    parser = _AnchorParser()
    parser.feed(html)
    parser.close()
    return parser.hrefs


def required_sections(html: str) -> Dict[str, bool]:
    """Which of the three required link sections a page carries."""
    has_region = bool(REGION_BLOCK_RE.search(html) or REGION_LINK_RE.search(html))
    has_authority = bool(
        AUTHORITY_BLOCK_RE.search(html)
        or (BRAND_LINK_RE.search(html) and TOOLS_LINK_RE.search(html))
    )
    return {
        "related_size_grid": bool(RELATED_GRID_RE.search(html)),
        "region_converters": has_region,
        "authority_links": has_authority,
    }
