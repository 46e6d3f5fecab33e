from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from app.analysis.scoring import citation_share, visibility_score
from app.analysis.types import AnalysisResult
from app.db.recorder import BrandRecord, MentionRecord, RunRecord, RunWithMentions
from app.services.visibility_service import DashboardMetrics


class VisibilityCheckRequest(BaseModel):
    # Content rules (non-empty, main brand in competitor mode) are enforced by the
    # service so that they surface as 400s with the same messages as the CLI
    category: str | None = None
    brands: list[str] | None = None
    provider: str | None = None  # None: DEFAULT_PROVIDER setting
    competitor_mode: bool = Field(False, validation_alias=AliasChoices("competitor_mode", "isCompetitorMode"))
    main_brand: str | None = Field(None, validation_alias=AliasChoices("main_brand", "mainBrand"))


class BrandMentionResponse(BaseModel):
    brand: str
    count: int
    mentioned: bool
    context: list[str]
    citation_urls: list[str]
    citation_share: float  # % of all brand mentions in the response


class AnalysisResultResponse(BaseModel):
    category: str
    brands: list[str]
    mentions: list[BrandMentionResponse]
    total_mentions: int
    visibility_score: float  # % of tracked brands mentioned at least once
    provider: str
    timestamp: datetime
    run_id: int | None  # None when the run could not be recorded

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisResultResponse":
        total = result.total_mentions
        return cls(
            category=result.category,
            brands=result.brands,
            mentions=[
                BrandMentionResponse(
                    brand=m.brand,
                    count=m.count,
                    mentioned=m.mentioned,
                    context=m.context,
                    citation_urls=m.citation_urls,
                    citation_share=round(citation_share(m, total), 2),
                )
                for m in result.mentions
            ],
            total_mentions=total,
            visibility_score=round(visibility_score(result.mentions), 2),
            provider=result.provider,
            timestamp=result.timestamp,
            run_id=result.run_id,
        )


class MetricsResponse(BaseModel):
    runs_tracked: int
    brands_tracked: int

    @classmethod
    def from_metrics(cls, metrics: DashboardMetrics) -> "MetricsResponse":
        return cls(runs_tracked=metrics.runs_tracked, brands_tracked=metrics.brands_tracked)


class RunBrandResponse(BaseModel):
    brand_id: int
    brand_name: str
    mentioned: bool
    mention_count: int
    context: list[str]
    citation_urls: list[str]


class RunResponse(BaseModel):
    id: int
    category: str
    prompt: str
    ai_provider: str
    timestamp: datetime | None
    brands: list[RunBrandResponse]

    @classmethod
    def from_record(cls, item: RunWithMentions) -> "RunResponse":
        return cls(
            id=item.run.id,
            category=item.run.category,
            prompt=item.run.prompt,
            ai_provider=item.run.provider,
            timestamp=item.run.created_at,
            brands=[
                RunBrandResponse(
                    brand_id=m.brand_id,
                    brand_name=m.brand_name,
                    mentioned=m.mentioned,
                    mention_count=m.mention_count,
                    context=m.context,
                    citation_urls=m.citation_urls,
                )
                for m in item.mentions
            ],
        )


class BrandResponse(BaseModel):
    id: int
    name: str
    created_at: datetime | None

    @classmethod
    def from_record(cls, brand: BrandRecord) -> "BrandResponse":
        return cls(id=brand.id, name=brand.name, created_at=brand.created_at)


class RunDetailResponse(BaseModel):
    id: int
    category: str
    prompt: str
    raw_response: str
    ai_provider: str
    timestamp: datetime | None

    @classmethod
    def from_record(cls, run: RunRecord) -> "RunDetailResponse":
        return cls(
            id=run.id,
            category=run.category,
            prompt=run.prompt,
            raw_response=run.raw_response,
            ai_provider=run.provider,
            timestamp=run.created_at,
        )


class BrandMentionHistoryItem(BaseModel):
    run_id: int
    mentioned: bool
    mention_count: int
    context: list[str]
    citation_urls: list[str]
    timestamp: datetime | None


class BrandMentionsResponse(BaseModel):
    brand: BrandResponse
    mentions: list[BrandMentionHistoryItem]

    @classmethod
    def from_records(cls, brand: BrandRecord, mentions: list[MentionRecord]) -> "BrandMentionsResponse":
        return cls(
            brand=BrandResponse.from_record(brand),
            mentions=[
                BrandMentionHistoryItem(
                    run_id=m.run_id,
                    mentioned=m.mentioned,
                    mention_count=m.mention_count,
                    context=m.context,
                    citation_urls=m.citation_urls,
                    timestamp=m.created_at,
                )
                for m in mentions
            ],
        )
