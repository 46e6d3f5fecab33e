"""Visibility checks and run history."""

from fastapi import APIRouter, Depends, Query

from app.collectors.registry import ProviderRegistry
from app.core.dependencies import get_recorder, get_registry
from app.db.recorder import RunRecorder
from app.schemas.visibility import AnalysisResultResponse, RunDetailResponse, RunResponse, VisibilityCheckRequest
from app.services.visibility_service import (
    DEFAULT_HISTORY_LIMIT,
    check_visibility,
    get_run,
    get_runs_with_mentions,
)

router = APIRouter(tags=["visibility"])


@router.post("/check-visibility")
async def run_visibility_check(
    body: VisibilityCheckRequest,
    registry: ProviderRegistry = Depends(get_registry),
    recorder: RunRecorder = Depends(get_recorder),
):
    """Query one provider about a category and report which brands it mentions.

    ``data.run_id`` is null when the analysis succeeded but could not be stored.
    """
    result = await check_visibility(
        registry,
        recorder,
        category=body.category,
        brands=body.brands or [],
        provider=body.provider,
        competitor_mode=body.competitor_mode,
        main_brand=body.main_brand,
    )
    return {"success": True, "data": AnalysisResultResponse.from_result(result)}


@router.get("/prompts")
async def list_prompts(
    limit: int = Query(DEFAULT_HISTORY_LIMIT),
    offset: int = Query(0),
    brand: str | None = Query(None, description="Only runs that tracked this brand (case-insensitive)"),
    recorder: RunRecorder = Depends(get_recorder),
):
    # Range checks live in the service so they return 400 like other validation errors
    runs = await get_runs_with_mentions(recorder, limit=limit, offset=offset, brand_filter=brand)
    return {"success": True, "data": [RunResponse.from_record(r) for r in runs]}


@router.get("/prompts/{run_id}")
async def get_prompt(run_id: int, recorder: RunRecorder = Depends(get_recorder)):
    """One stored run with the provider's full response text."""
    run = await get_run(recorder, run_id)
    return {"success": True, "data": RunDetailResponse.from_record(run)}
