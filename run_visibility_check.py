"""
run_visibility_check.py: one visibility check from the command line

Runs the same pipeline as POST /api/v1/check-visibility without the HTTP layer:
  1. Build the provider registry and run recorder from .env / environment
  2. Ask the provider about the category
  3. Print mentions, citations and scores as JSON

Usage:
    python run_visibility_check.py "CRM software" Salesforce HubSpot Pipedrive
    python run_visibility_check.py "CRM software" HubSpot Salesforce --provider groq \\
        --competitor-mode --main-brand HubSpot
    python run_visibility_check.py "CRM software" Salesforce --no-record
"""

import argparse
import asyncio
import json
import logging
import sys

from app.collectors.registry import LlmProvider, build_registry
from app.core.config import settings
from app.core.exceptions import AppError
from app.db.factory import build_recorder
from app.schemas.visibility import AnalysisResultResponse
from app.services.visibility_service import check_visibility

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s: %(message)s",
)
logger = logging.getLogger("visibility_check")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check which brands an AI assistant mentions for a category")
    parser.add_argument("category", help='Product category, e.g. "CRM software"')
    parser.add_argument("brands", nargs="+", help="Brand names to track")
    parser.add_argument(
        "--provider",
        default=settings.default_provider,
        choices=[p.value for p in LlmProvider],
        help="LLM provider (default: %(default)s)",
    )
    parser.add_argument("--competitor-mode", action="store_true", help="List the main brand first in the prompt")
    parser.add_argument("--main-brand", default=None, help="Main brand (required with --competitor-mode)")
    parser.add_argument("--no-record", action="store_true", help="Do not store the run")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    registry = build_registry(settings)
    recorder = None if args.no_record else build_recorder(settings)

    try:
        result = await check_visibility(
            registry,
            recorder,
            category=args.category,
            brands=args.brands,
            provider=args.provider,
            competitor_mode=args.competitor_mode,
            main_brand=args.main_brand,
        )
    except AppError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1
    finally:
        if recorder is not None:
            await recorder.close()

    response = AnalysisResultResponse.from_result(result)
    print(json.dumps(response.model_dump(mode="json"), indent=2, ensure_ascii=False))

    if result.run_id is None and recorder is not None:
        logger.warning("Analysis completed but was not stored")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
