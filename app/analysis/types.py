"""Core types and DTOs for response analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class BrandMention:
    """Detection result for a single tracked brand within one response."""

    brand: str
    count: int = 0  # Word-boundary occurrences in the response
    context: list[str] = field(default_factory=list)  # Sentences containing the brand
    citation_urls: list[str] = field(default_factory=list)

    @property
    def mentioned(self) -> bool:
        return self.count > 0


@dataclass
class AnalysisResult:
    """Outcome of one visibility check.

    ``run_id`` is None when the run could not be recorded; the analysis itself
    is still complete and valid in that case.
    """

    category: str
    brands: list[str]
    mentions: list[BrandMention]
    provider: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    run_id: int | None = None

    @property
    def total_mentions(self) -> int:
        return sum(m.count for m in self.mentions)

    @property
    def recorded(self) -> bool:
        return self.run_id is not None
