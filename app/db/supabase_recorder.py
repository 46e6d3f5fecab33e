"""Supabase implementation of the Run Recorder.

Talks to the project's PostgREST endpoint (``{SUPABASE_URL}/rest/v1``) over
httpx using the same tables as the SQL schema.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

import httpx

from app.core.exceptions import StorageError
from app.db.recorder import BrandRecord, MentionRecord, RunRecord, RunRecorder, RunWithMentions

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _ts(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _quote(value: str) -> str:
    """Quote a filter value so PostgREST reserved characters (, . : ( )) are taken literally."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _ilike_literal(value: str) -> str:
    """Escape LIKE wildcards so ``ilike`` behaves as case-insensitive equality."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_").replace("*", "\\*")
    return f"ilike.{_quote(escaped)}"


def _brand_record(row: dict) -> BrandRecord:
    return BrandRecord(
        id=row["id"],
        name=row["name"],
        created_at=_ts(row.get("created_at")),
        updated_at=_ts(row.get("updated_at")),
    )


def _run_record(row: dict) -> RunRecord:
    return RunRecord(
        id=row["id"],
        category=row["category"],
        prompt=row["prompt"],
        raw_response=row["raw_response"],
        provider=row["ai_provider"],
        created_at=_ts(row.get("created_at")),
    )


def _mention_record(row: dict) -> MentionRecord:
    brand = row.get("brands") or {}
    return MentionRecord(
        id=row["id"],
        run_id=row["prompt_run_id"],
        brand_id=row["brand_id"],
        mentioned=row["mentioned"],
        mention_count=row["mention_count"],
        context=list(row.get("context") or []),
        citation_urls=list(row.get("citation_urls") or []),
        created_at=_ts(row.get("created_at")),
        brand_name=brand.get("name", "") if isinstance(brand, dict) else "",
    )


@contextmanager
def _decoding(action: str) -> Iterator[None]:
    """Turn a 2xx reply with an unexpected body (empty, not JSON, missing rows or keys) into StorageError."""
    try:
        yield
    except (ValueError, IndexError, KeyError, TypeError, AttributeError) as e:
        logger.error("Unexpected Supabase response while %s: %r", action, e)
        raise StorageError(f"Unexpected Supabase response while {action}") from e


class SupabaseRunRecorder(RunRecorder):
    """Run Recorder backed by Supabase's REST API."""

    backend = "supabase"

    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not url or not key:
            raise StorageError("Supabase URL and key are required")
        self._client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )
        logger.info("Supabase recorder initialized (url=%s...)", url[:30])

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        *,
        params: dict | None = None,
        json: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Supabase request failed while %s: %s", action, e)
            raise StorageError(f"Supabase error while {action}") from e
        if resp.status_code >= 400:
            logger.error("Supabase %d while %s: %s", resp.status_code, action, resp.text[:500])
            raise StorageError(f"Supabase error while {action}")
        return resp

    @staticmethod
    def _count(resp: httpx.Response) -> int:
        # Content-Range: 0-0/42 or */0
        content_range = resp.headers.get("content-range", "")
        total = content_range.rsplit("/", 1)[-1]
        if not total.isdigit():
            raise StorageError("Supabase did not return an exact count")
        return int(total)

    # ── Runs ─────────────────────────────────────────────────────────

    async def create_run(self, category: str, prompt: str, raw_response: str, provider: str) -> RunRecord:
        resp = await self._request(
            "POST",
            "/prompt_runs",
            "creating prompt run",
            json={"category": category, "prompt": prompt, "raw_response": raw_response, "ai_provider": provider},
            headers={"Prefer": "return=representation"},
        )
        with _decoding("creating prompt run"):
            run = _run_record(resp.json()[0])
        logger.debug("Prompt run created via Supabase (id=%d, provider=%s)", run.id, provider)
        return run

    async def get_run(self, run_id: int) -> RunRecord | None:
        resp = await self._request(
            "GET", "/prompt_runs", "fetching prompt run", params={"select": "*", "id": f"eq.{run_id}"}
        )
        with _decoding("fetching prompt run"):
            rows = resp.json()
            return _run_record(rows[0]) if rows else None

    async def count_runs(self) -> int:
        resp = await self._request(
            "HEAD", "/prompt_runs", "counting prompt runs", params={"select": "id"}, headers={"Prefer": "count=exact"}
        )
        return self._count(resp)

    async def _run_ids_for_brand(self, brand_filter: str) -> list[int]:
        brands = await self._find_brands(brand_filter)
        if not brands:
            return []
        ids = ",".join(str(b.id) for b in brands)
        resp = await self._request(
            "GET",
            "/mentions",
            "filtering runs by brand",
            params={"select": "prompt_run_id", "brand_id": f"in.({ids})"},
        )
        with _decoding("filtering runs by brand"):
            return sorted({row["prompt_run_id"] for row in resp.json()})

    async def list_runs_with_mentions(
        self,
        limit: int = 50,
        offset: int = 0,
        brand_filter: str | None = None,
    ) -> list[RunWithMentions]:
        params = {
            "select": "*,mentions(*,brands(name))",
            "order": "created_at.desc,id.desc",
            "limit": str(limit),
            "offset": str(offset),
        }
        if brand_filter:
            run_ids = await self._run_ids_for_brand(brand_filter.strip())
            if not run_ids:
                return []
            params["id"] = f"in.({','.join(str(i) for i in run_ids)})"

        resp = await self._request("GET", "/prompt_runs", "listing prompt runs", params=params)
        result = []
        with _decoding("listing prompt runs"):
            for row in resp.json():
                mentions = [_mention_record(m) for m in row.get("mentions") or []]
                mentions.sort(key=lambda m: (-m.mention_count, m.id))
                for m in mentions:
                    m.brand_name = m.brand_name or "Unknown"
                result.append(RunWithMentions(run=_run_record(row), mentions=mentions))
        return result

    # ── Brands ───────────────────────────────────────────────────────

    async def _find_brands(self, name: str) -> list[BrandRecord]:
        resp = await self._request(
            "GET", "/brands", "looking up brand", params={"select": "*", "name": _ilike_literal(name)}
        )
        wanted = name.lower()
        with _decoding("looking up brand"):
            return [_brand_record(row) for row in resp.json() if row["name"].lower() == wanted]

    async def get_or_create_brand(self, name: str) -> BrandRecord:
        existing = await self._find_brands(name)
        if existing:
            return existing[0]

        try:
            resp = await self._client.post(
                "/brands", json={"name": name}, headers={"Prefer": "return=representation"}
            )
        except httpx.HTTPError as e:
            logger.error("Supabase request failed while creating brand: %s", e)
            raise StorageError("Supabase error while creating brand") from e

        if resp.status_code == 409 or (resp.status_code >= 400 and UNIQUE_VIOLATION in resp.text):
            # Lost the insert race: another request created it first
            existing = await self._find_brands(name)
            if existing:
                logger.debug("Brand insert conflict for %s, reusing id=%d", name, existing[0].id)
                return existing[0]
            raise StorageError(f"Brand {name!r} conflicted on insert but could not be re-fetched")
        if resp.status_code >= 400:
            logger.error("Supabase %d while creating brand: %s", resp.status_code, resp.text[:500])
            raise StorageError("Supabase error while creating brand")

        with _decoding("creating brand"):
            brand = _brand_record(resp.json()[0])
        logger.debug("Brand created via Supabase (id=%d, name=%s)", brand.id, name)
        return brand

    async def get_brand(self, brand_id: int) -> BrandRecord | None:
        resp = await self._request("GET", "/brands", "fetching brand", params={"select": "*", "id": f"eq.{brand_id}"})
        with _decoding("fetching brand"):
            rows = resp.json()
            return _brand_record(rows[0]) if rows else None

    async def list_brands(self) -> list[BrandRecord]:
        resp = await self._request("GET", "/brands", "listing brands", params={"select": "*", "order": "name"})
        with _decoding("listing brands"):
            return [_brand_record(row) for row in resp.json()]

    async def count_brands(self) -> int:
        resp = await self._request(
            "HEAD", "/brands", "counting brands", params={"select": "id"}, headers={"Prefer": "count=exact"}
        )
        return self._count(resp)

    # ── Mentions ─────────────────────────────────────────────────────

    async def upsert_mention(
        self,
        run_id: int,
        brand_id: int,
        mentioned: bool,
        mention_count: int,
        context: list[str],
        citation_urls: list[str],
    ) -> MentionRecord:
        resp = await self._request(
            "POST",
            "/mentions",
            "upserting mention",
            params={"on_conflict": "prompt_run_id,brand_id"},
            json={
                "prompt_run_id": run_id,
                "brand_id": brand_id,
                "mentioned": mentioned,
                "mention_count": mention_count,
                "context": list(context),
                "citation_urls": list(citation_urls),
            },
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        with _decoding("upserting mention"):
            mention = _mention_record(resp.json()[0])
        logger.debug("Mention upserted via Supabase (id=%d, run_id=%d, brand_id=%d)", mention.id, run_id, brand_id)
        return mention

    async def list_mentions_for_brand(self, brand_id: int) -> list[MentionRecord]:
        resp = await self._request(
            "GET",
            "/mentions",
            "listing mentions for brand",
            params={"select": "*,brands(name)", "brand_id": f"eq.{brand_id}", "order": "created_at.desc,id.desc"},
        )
        with _decoding("listing mentions for brand"):
            return [_mention_record(row) for row in resp.json()]

    # ── Lifecycle ────────────────────────────────────────────────────

    async def ping(self) -> bool:
        try:
            resp = await self._client.get("/brands", params={"select": "id", "limit": "1"})
        except httpx.HTTPError as e:
            logger.error("Supabase connection failed: %s", e)
            return False
        if resp.status_code >= 400:
            logger.error("Supabase connection failed: %d %s", resp.status_code, resp.text[:200])
            return False
        return True

    async def close(self) -> None:
        await self._client.aclose()
