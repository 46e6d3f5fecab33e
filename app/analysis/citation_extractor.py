"""Citation Extractor.

Extracts cited URLs from LLM responses:
  - Inline hyperlinks: [text](url)
  - Bare URLs: https://example.com

and attributes them to the tracked brands they most likely support.
Extraction is lexical; malformed URLs are passed through unchanged.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urlparse

from app.analysis.types import BrandMention

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# URL / link extraction patterns
# ---------------------------------------------------------------------------

# Markdown-style links: [anchor text](url)
MD_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

# Bare URLs
BARE_URL_PATTERN = re.compile(r"https?://[^\s\)]+")

_TRAILING_PUNCT = ".,;!?"

# How many citations a mentioned brand inherits when none point at it
FALLBACK_CITATIONS = 2

# Second-level labels used under country-code TLDs (example.co.uk)
_SECOND_LEVEL_LABELS = {"co", "com", "net", "org", "gov", "ac", "edu"}


def extract_domain(url: str) -> str:
    """Extract domain from URL, stripping www. prefix."""
    try:
        parsed = urlparse(url)
        domain = parsed.hostname or ""
    except ValueError:
        return ""
    if domain.startswith("www."):
        domain = domain[4:]
    return domain.lower()


def registrable_name(url: str) -> str:
    """Return the registrable label of a URL's host: ``hubspot`` for blog.hubspot.co.uk."""
    labels = [label for label in extract_domain(url).split(".") if label]
    if len(labels) < 2:
        return labels[0] if labels else ""
    if len(labels) >= 3 and labels[-2] in _SECOND_LEVEL_LABELS:
        return labels[-3]
    return labels[-2]


def extract_citations(text: str) -> list[str]:
    """Extract all cited URLs from the response text.

    Markdown link targets come first, in document order, followed by bare
    URLs that were not already captured. Trailing sentence punctuation is
    stripped from bare URLs. Deduplication is exact-string.
    """
    if not text:
        return []

    citations: list[str] = []
    seen: set[str] = set()

    for match in MD_LINK_PATTERN.finditer(text):
        url = match.group(2)
        if url not in seen:
            seen.add(url)
            citations.append(url)

    for match in BARE_URL_PATTERN.finditer(text):
        url = match.group(0).rstrip(_TRAILING_PUNCT)
        if url and url not in seen:
            seen.add(url)
            citations.append(url)

    return citations


def _points_at(url: str, brand: str) -> bool:
    """True when the URL's host/path names the brand, or its domain name is part of the brand."""
    brand_lower = brand.lower()
    try:
        parsed = urlparse(url)
        location = f"{parsed.netloc}{parsed.path}".lower() or url.lower()
    except ValueError:
        location = url.lower()

    if brand_lower in location:
        return True

    # "Google Cloud" vs googlecloud.com
    compact = re.sub(r"[^0-9a-z]", "", brand_lower)
    if compact and compact in location:
        return True

    token = registrable_name(url)
    if not token:
        return False
    if len(token) < 3:
        # t.co, x.com: too short to match as a fragment
        return token == compact
    return token in brand_lower or token in compact


def attribute_citations(mentions: list[BrandMention], citations: list[str]) -> None:
    """Assign ``citation_urls`` on each mention in place.

    A mentioned brand gets every citation whose URL points at it. When none
    does, it falls back to the first two citations that no other tracked brand
    claims. Brands that were not mentioned never get citations.
    """
    direct: dict[int, list[str]] = {}
    claimed: set[str] = set()
    for idx, mention in enumerate(mentions):
        urls = [url for url in citations if _points_at(url, mention.brand)]
        direct[idx] = urls
        claimed.update(urls)

    unclaimed = [url for url in citations if url not in claimed]

    for idx, mention in enumerate(mentions):
        if not mention.mentioned:
            mention.citation_urls = []
        elif direct[idx]:
            mention.citation_urls = direct[idx]
        else:
            mention.citation_urls = unclaimed[:FALLBACK_CITATIONS]

    logger.debug(
        "Attributed %d citations across %d brands",
        len(citations),
        sum(1 for m in mentions if m.citation_urls),
    )
