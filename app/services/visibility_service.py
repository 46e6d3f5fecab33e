"""Visibility service: business logic for AI visibility tracking.

Route handlers and the CLI call into this module; it owns the order of
operations for one check:

  prompt → provider query → mention/citation analysis → best-effort recording
"""

import logging
from dataclasses import dataclass

from app.analysis.mention_analyzer import extract_brand_mentions
from app.analysis.types import AnalysisResult, BrandMention
from app.collectors.registry import LlmProvider, ProviderRegistry
from app.core.config import settings
from app.core.exceptions import NotFoundError, ProviderError, ProviderUnavailable, StorageError, ValidationError
from app.core.metrics import STORAGE_FAILURES, VISIBILITY_CHECKS
from app.db.recorder import BrandRecord, MentionRecord, RunRecord, RunRecorder, RunWithMentions
from app.prompt_engine.templates import build_prompt

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 100
DEFAULT_HISTORY_LIMIT = 50


@dataclass
class DashboardMetrics:
    runs_tracked: int
    brands_tracked: int


def normalize_brands(brands: list[str]) -> list[str]:
    """Trim names and drop case-insensitive duplicates, keeping first-seen order."""
    if not brands:
        raise ValidationError("Brands array is required and must not be empty")
    seen: set[str] = set()
    result: list[str] = []
    for brand in brands:
        if not isinstance(brand, str) or not brand.strip():
            raise ValidationError("Brand names must be non-empty strings")
        name = brand.strip()
        if name.lower() not in seen:
            seen.add(name.lower())
            result.append(name)
    return result


def _provider_id(provider: str | LlmProvider) -> str:
    value = provider.value if isinstance(provider, LlmProvider) else str(provider)
    if value not in {p.value for p in LlmProvider}:
        raise ProviderUnavailable(value)
    return value


async def record_run(
    recorder: RunRecorder,
    category: str,
    prompt: str,
    raw_response: str,
    provider: str,
    mentions: list[BrandMention],
) -> int:
    """Persist a run with one mention row per tracked brand. Returns the run id."""
    run = await recorder.create_run(category, prompt, raw_response, provider)
    for mention in mentions:
        brand = await recorder.get_or_create_brand(mention.brand)
        await recorder.upsert_mention(
            run.id,
            brand.id,
            mention.mentioned,
            mention.count,
            mention.context,
            mention.citation_urls,
        )
    return run.id


async def check_visibility(
    registry: ProviderRegistry,
    recorder: RunRecorder | None,
    category: str,
    brands: list[str],
    provider: str | LlmProvider | None = None,
    competitor_mode: bool = False,
    main_brand: str | None = None,
) -> AnalysisResult:
    """Ask *provider* about *category* and measure how *brands* show up in the answer.

    *provider* defaults to ``settings.default_provider``. Raises
    ValidationError, ProviderUnavailable or ProviderError. Storage failures
    are logged, not raised: the returned result then has ``run_id=None``.
    Passing ``recorder=None`` skips recording entirely.
    """
    brands = normalize_brands(brands)
    prompt = build_prompt(category, brands, competitor_mode=competitor_mode, main_brand=main_brand)
    category = category.strip()
    provider_id = _provider_id(provider or settings.default_provider)
    collector = registry.get(provider_id)

    logger.info(
        "Checking visibility (category=%s, brands=%d, provider=%s, competitor_mode=%s)",
        category,
        len(brands),
        provider_id,
        competitor_mode,
        extra={"category": category, "provider": provider_id},
    )

    try:
        response = await collector.query(prompt)
    except ProviderError:
        VISIBILITY_CHECKS.labels(provider=provider_id, status="provider_error").inc()
        raise

    mentions = extract_brand_mentions(response.text, brands, response.citations)
    result = AnalysisResult(category=category, brands=brands, mentions=mentions, provider=provider_id)

    if recorder is not None:
        try:
            result.run_id = await record_run(recorder, category, prompt, response.text, provider_id, mentions)
            logger.info(
                "Visibility check stored (run_id=%d)",
                result.run_id,
                extra={"run_id": result.run_id, "provider": provider_id, "category": category},
            )
        except StorageError as e:
            STORAGE_FAILURES.inc()
            logger.warning(
                "Failed to store visibility check in database: %s",
                e,
                extra={"provider": provider_id, "category": category},
            )

    VISIBILITY_CHECKS.labels(provider=provider_id, status="ok").inc()
    return result


async def get_metrics(recorder: RunRecorder) -> DashboardMetrics:
    """Dashboard counters, read fresh from storage on every call."""
    runs = await recorder.count_runs()
    brands = await recorder.count_brands()
    return DashboardMetrics(runs_tracked=runs, brands_tracked=brands)


async def get_runs_with_mentions(
    recorder: RunRecorder,
    limit: int = DEFAULT_HISTORY_LIMIT,
    offset: int = 0,
    brand_filter: str | None = None,
) -> list[RunWithMentions]:
    """Historical runs, newest first, optionally restricted to runs tracking *brand_filter*."""
    if not isinstance(limit, int) or not 1 <= limit <= MAX_HISTORY_LIMIT:
        raise ValidationError(f"Limit must be a number between 1 and {MAX_HISTORY_LIMIT}")
    if not isinstance(offset, int) or offset < 0:
        raise ValidationError("Offset must be a non-negative number")

    brand_filter = brand_filter.strip() if brand_filter else None
    logger.debug("Fetching prompts with mentions (limit=%d, offset=%d, brand=%s)", limit, offset, brand_filter)
    runs = await recorder.list_runs_with_mentions(limit=limit, offset=offset, brand_filter=brand_filter or None)
    logger.debug("Fetched %d prompts with mentions", len(runs))
    return runs


async def get_run(recorder: RunRecorder, run_id: int) -> RunRecord:
    """One stored run, including the provider's raw response."""
    run = await recorder.get_run(run_id)
    if run is None:
        raise NotFoundError(f"Prompt run {run_id} not found")
    return run


async def get_brand_mentions(recorder: RunRecorder, brand_id: int) -> tuple[BrandRecord, list[MentionRecord]]:
    """A brand and its mention rows across all runs, newest first."""
    brand = await recorder.get_brand(brand_id)
    if brand is None:
        raise NotFoundError(f"Brand {brand_id} not found")
    mentions = await recorder.list_mentions_for_brand(brand_id)
    logger.debug("Fetched %d mentions for brand %s (id=%d)", len(mentions), brand.name, brand_id)
    return brand, mentions
