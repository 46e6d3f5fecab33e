"""Run Recorder: storage contract used by the visibility service.

Two implementations exist (SQLAlchemy and Supabase REST); one is chosen at
startup by ``app.db.factory.build_recorder``. Every implementation raises
``StorageError`` on failure and nothing else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class BrandRecord:
    id: int
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RunRecord:
    id: int
    category: str
    prompt: str
    raw_response: str
    provider: str
    created_at: datetime | None = None


@dataclass
class MentionRecord:
    id: int
    run_id: int
    brand_id: int
    mentioned: bool
    mention_count: int
    context: list[str] = field(default_factory=list)
    citation_urls: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    brand_name: str = ""


@dataclass
class RunWithMentions:
    run: RunRecord
    mentions: list[MentionRecord] = field(default_factory=list)


class RunRecorder(ABC):
    """Persistence operations for runs, brands and mentions."""

    backend: str = ""

    @abstractmethod
    async def create_run(self, category: str, prompt: str, raw_response: str, provider: str) -> RunRecord:
        """Insert a run. Runs are never updated afterwards."""
        ...

    @abstractmethod
    async def get_or_create_brand(self, name: str) -> BrandRecord:
        """Case-insensitive lookup, inserting on miss.

        If a concurrent caller inserts the same name first, the uniqueness
        conflict is absorbed and the existing row is returned.
        """
        ...

    @abstractmethod
    async def upsert_mention(
        self,
        run_id: int,
        brand_id: int,
        mentioned: bool,
        mention_count: int,
        context: list[str],
        citation_urls: list[str],
    ) -> MentionRecord:
        """Insert or overwrite the mention keyed by (run_id, brand_id)."""
        ...

    @abstractmethod
    async def list_runs_with_mentions(
        self,
        limit: int = 50,
        offset: int = 0,
        brand_filter: str | None = None,
    ) -> list[RunWithMentions]:
        """Runs newest first, each with its mentions ordered by mention_count desc.

        *brand_filter* keeps only runs tracking a brand whose name equals it
        case-insensitively; pagination applies after filtering.
        """
        ...

    @abstractmethod
    async def count_runs(self) -> int: ...

    @abstractmethod
    async def count_brands(self) -> int: ...

    @abstractmethod
    async def get_run(self, run_id: int) -> RunRecord | None: ...

    @abstractmethod
    async def get_brand(self, brand_id: int) -> BrandRecord | None: ...

    @abstractmethod
    async def list_brands(self) -> list[BrandRecord]:
        """All brands ordered by name."""
        ...

    @abstractmethod
    async def list_mentions_for_brand(self, brand_id: int) -> list[MentionRecord]:
        """Mentions of one brand across runs, newest first."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """True when the backend is reachable. Never raises."""
        ...

    async def close(self) -> None:
        """Release connections. Called once at shutdown."""
        return None
