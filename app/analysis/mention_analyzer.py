"""Brand mention detection.

Literal, case-insensitive, word-boundary matching of tracked brand names.
URLs are masked out before matching so that a citation such as
``https://salesforce.com`` is not counted as a mention of Salesforce; the
anchor text of markdown links is kept.
"""

from __future__ import annotations

import logging
import re

from app.analysis.citation_extractor import BARE_URL_PATTERN, MD_LINK_PATTERN, attribute_citations
from app.analysis.types import BrandMention

logger = logging.getLogger(__name__)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def brand_pattern(brand: str) -> re.Pattern[str]:
    """Compile a case-insensitive pattern for *brand* not flanked by word characters.

    Lookarounds are used instead of ``\\b`` so names that start or end with
    punctuation (``C++``, ``.NET``) still match.
    """
    return re.compile(r"(?<!\w)" + re.escape(brand) + r"(?!\w)", re.IGNORECASE)


def strip_urls(text: str) -> str:
    """Replace markdown links by their anchor text and drop bare URLs."""
    text = MD_LINK_PATTERN.sub(lambda m: m.group(1), text)
    return BARE_URL_PATTERN.sub(" ", text)


def split_sentences(text: str) -> list[str]:
    """Split on ``.``, ``!`` and ``?``, dropping empty fragments."""
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def count_mentions(text: str, brand: str) -> int:
    return len(brand_pattern(brand).findall(text))


def extract_brand_mentions(text: str, brands: list[str], citations: list[str] | None = None) -> list[BrandMention]:
    """Detect every tracked brand in *text*.

    Returns one BrandMention per input brand, in input order. Brands that
    do not occur still get an entry with ``count == 0``. When *citations* is
    given, they are attributed to the mentioned brands.
    """
    prose = strip_urls(text or "")
    sentences = split_sentences(prose)

    mentions: list[BrandMention] = []
    for brand in brands:
        brand_lower = brand.lower()
        mention = BrandMention(brand=brand, count=count_mentions(prose, brand))
        mention.context = [s for s in sentences if brand_lower in s.lower()]
        mentions.append(mention)

    if citations is not None:
        attribute_citations(mentions, citations)

    logger.debug(
        "Detected %d/%d brands in %d sentences",
        sum(1 for m in mentions if m.mentioned),
        len(brands),
        len(sentences),
    )
    return mentions
