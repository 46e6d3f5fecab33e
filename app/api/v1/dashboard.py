"""Dashboard API endpoints: aggregate counters, brands, per-brand mention history and providers."""

from fastapi import APIRouter, Depends

from app.collectors.registry import ProviderRegistry
from app.core.dependencies import get_recorder, get_registry
from app.db.recorder import RunRecorder
from app.schemas.visibility import BrandMentionsResponse, BrandResponse, MetricsResponse
from app.services.visibility_service import get_brand_mentions, get_metrics

router = APIRouter(tags=["dashboard"])


@router.get("/metrics")
async def dashboard_metrics(recorder: RunRecorder = Depends(get_recorder)):
    """Runs and brands tracked so far. Recomputed on every request."""
    metrics = await get_metrics(recorder)
    return {"success": True, "data": MetricsResponse.from_metrics(metrics)}


@router.get("/brands")
async def list_brands(recorder: RunRecorder = Depends(get_recorder)):
    brands = await recorder.list_brands()
    return {"success": True, "data": [BrandResponse.from_record(b) for b in brands]}


@router.get("/brands/{brand_id}/mentions")
async def brand_mentions(brand_id: int, recorder: RunRecorder = Depends(get_recorder)):
    """Every recorded mention row for one brand, newest first."""
    brand, mentions = await get_brand_mentions(recorder, brand_id)
    return {"success": True, "data": BrandMentionsResponse.from_records(brand, mentions)}


@router.get("/providers")
async def list_providers(registry: ProviderRegistry = Depends(get_registry)):
    """Providers with a configured API key."""
    return {"success": True, "data": registry.available()}
