"""Per-run scoring.

Computes:
  - Visibility score:
      share of tracked brands mentioned at least once, as a percentage.

  - Citation share:
      a brand's share of all brand mentions in the response, as a percentage.
"""

from __future__ import annotations

from app.analysis.types import AnalysisResult, BrandMention


def visibility_score(mentions: list[BrandMention]) -> float:
    """Percentage of tracked brands with at least one mention. 0.0 when nothing is tracked."""
    if not mentions:
        return 0.0
    mentioned = sum(1 for m in mentions if m.mentioned)
    return mentioned / len(mentions) * 100


def citation_share(mention: BrandMention, total_mentions: int) -> float:
    """Brand's percentage of *total_mentions*. 0.0 when the response mentions no brand."""
    if total_mentions <= 0:
        return 0.0
    return mention.count / total_mentions * 100


def citation_shares(result: AnalysisResult) -> dict[str, float]:
    """Citation share for every tracked brand of a result, keyed by brand name."""
    total = result.total_mentions
    return {m.brand: citation_share(m, total) for m in result.mentions}
