"""SQLAlchemy implementation of the Run Recorder (PostgreSQL in production)."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.core.exceptions import StorageError
from app.db.recorder import BrandRecord, MentionRecord, RunRecord, RunRecorder, RunWithMentions
from app.models.brand import Brand
from app.models.mention import Mention
from app.models.prompt_run import PromptRun

logger = logging.getLogger(__name__)


def _brand_record(brand: Brand) -> BrandRecord:
    return BrandRecord(id=brand.id, name=brand.name, created_at=brand.created_at, updated_at=brand.updated_at)


def _run_record(run: PromptRun) -> RunRecord:
    return RunRecord(
        id=run.id,
        category=run.category,
        prompt=run.prompt,
        raw_response=run.raw_response,
        provider=run.ai_provider,
        created_at=run.created_at,
    )


def _mention_record(mention: Mention, brand_name: str = "") -> MentionRecord:
    return MentionRecord(
        id=mention.id,
        run_id=mention.prompt_run_id,
        brand_id=mention.brand_id,
        mentioned=mention.mentioned,
        mention_count=mention.mention_count,
        context=list(mention.context or []),
        citation_urls=list(mention.citation_urls or []),
        created_at=mention.created_at,
        brand_name=brand_name,
    )


class SqlRunRecorder(RunRecorder):
    """Run Recorder backed by a SQLAlchemy async engine.

    Mention upserts use native ``ON CONFLICT DO UPDATE`` on PostgreSQL and
    SQLite; other dialects fall back to select-then-write.
    """

    backend = "sql"

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Database error while %s: %s", action, e)
                raise StorageError(f"Database error while {action}") from e
            except OSError as e:
                # Driver-level connect failures (asyncpg raises ConnectionRefusedError unwrapped);
                # there is no live connection to roll back
                logger.error("Database unreachable while %s: %s", action, e)
                raise StorageError(f"Database unreachable while {action}") from e

    # ── Runs ─────────────────────────────────────────────────────────

    async def create_run(self, category: str, prompt: str, raw_response: str, provider: str) -> RunRecord:
        async with self._session("creating prompt run") as session:
            run = PromptRun(category=category, prompt=prompt, raw_response=raw_response, ai_provider=provider)
            session.add(run)
            await session.commit()
            logger.debug("Prompt run created (id=%d, category=%s, provider=%s)", run.id, category, provider)
            return _run_record(run)

    async def get_run(self, run_id: int) -> RunRecord | None:
        async with self._session("fetching prompt run") as session:
            run = await session.get(PromptRun, run_id)
            return _run_record(run) if run else None

    async def count_runs(self) -> int:
        async with self._session("counting prompt runs") as session:
            return (await session.execute(select(func.count()).select_from(PromptRun))).scalar_one()

    async def list_runs_with_mentions(
        self,
        limit: int = 50,
        offset: int = 0,
        brand_filter: str | None = None,
    ) -> list[RunWithMentions]:
        stmt = select(PromptRun).options(selectinload(PromptRun.mentions).selectinload(Mention.brand))
        if brand_filter:
            stmt = stmt.where(
                PromptRun.mentions.any(Mention.brand.has(func.lower(Brand.name) == brand_filter.strip().lower()))
            )
        stmt = stmt.order_by(PromptRun.created_at.desc(), PromptRun.id.desc()).limit(limit).offset(offset)

        async with self._session("listing prompt runs") as session:
            runs = (await session.execute(stmt)).scalars().all()
            result = []
            for run in runs:
                mentions = sorted(run.mentions, key=lambda m: (-m.mention_count, m.id))
                result.append(
                    RunWithMentions(
                        run=_run_record(run),
                        mentions=[_mention_record(m, m.brand.name if m.brand else "Unknown") for m in mentions],
                    )
                )
            return result

    # ── Brands ───────────────────────────────────────────────────────

    @staticmethod
    async def _find_brand(session: AsyncSession, name: str) -> Brand | None:
        result = await session.execute(select(Brand).where(func.lower(Brand.name) == name.lower()).limit(1))
        return result.scalar_one_or_none()

    async def get_or_create_brand(self, name: str) -> BrandRecord:
        async with self._session("getting or creating brand") as session:
            brand = await self._find_brand(session, name)
            if brand is not None:
                return _brand_record(brand)

            brand = Brand(name=name)
            session.add(brand)
            try:
                await session.commit()
                logger.debug("Brand created (id=%d, name=%s)", brand.id, name)
            except IntegrityError:
                # Lost the insert race: another request created it first
                await session.rollback()
                brand = await self._find_brand(session, name)
                if brand is None:
                    raise StorageError(f"Brand {name!r} conflicted on insert but could not be re-fetched")
                logger.debug("Brand insert conflict for %s, reusing id=%d", name, brand.id)
            return _brand_record(brand)

    async def get_brand(self, brand_id: int) -> BrandRecord | None:
        async with self._session("fetching brand") as session:
            brand = await session.get(Brand, brand_id)
            return _brand_record(brand) if brand else None

    async def list_brands(self) -> list[BrandRecord]:
        async with self._session("listing brands") as session:
            brands = (await session.execute(select(Brand).order_by(Brand.name))).scalars().all()
            return [_brand_record(b) for b in brands]

    async def count_brands(self) -> int:
        async with self._session("counting brands") as session:
            return (await session.execute(select(func.count()).select_from(Brand))).scalar_one()

    # ── Mentions ─────────────────────────────────────────────────────

    def _dialect_insert(self):
        dialect = self._engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            return None
        return insert

    async def upsert_mention(
        self,
        run_id: int,
        brand_id: int,
        mentioned: bool,
        mention_count: int,
        context: list[str],
        citation_urls: list[str],
    ) -> MentionRecord:
        values = {
            "mentioned": mentioned,
            "mention_count": mention_count,
            "context": list(context),
            "citation_urls": list(citation_urls),
        }
        key = (Mention.prompt_run_id == run_id) & (Mention.brand_id == brand_id)

        async with self._session("upserting mention") as session:
            insert = self._dialect_insert()
            if insert is not None:
                stmt = (
                    insert(Mention)
                    .values(prompt_run_id=run_id, brand_id=brand_id, **values)
                    .on_conflict_do_update(index_elements=["prompt_run_id", "brand_id"], set_=values)
                )
                await session.execute(stmt)
            else:
                existing = (await session.execute(select(Mention.id).where(key))).scalar_one_or_none()
                if existing is None:
                    session.add(Mention(prompt_run_id=run_id, brand_id=brand_id, **values))
                else:
                    await session.execute(update(Mention).where(key).values(**values))
            await session.commit()

            mention = (await session.execute(select(Mention).where(key))).scalar_one()
            logger.debug(
                "Mention upserted (id=%d, run_id=%d, brand_id=%d, mentioned=%s)",
                mention.id,
                run_id,
                brand_id,
                mentioned,
            )
            return _mention_record(mention)

    async def list_mentions_for_brand(self, brand_id: int) -> list[MentionRecord]:
        stmt = (
            select(Mention)
            .options(selectinload(Mention.brand))
            .where(Mention.brand_id == brand_id)
            .order_by(Mention.created_at.desc(), Mention.id.desc())
        )
        async with self._session("listing mentions for brand") as session:
            mentions = (await session.execute(stmt)).scalars().all()
            return [_mention_record(m, m.brand.name) for m in mentions]

    # ── Lifecycle ────────────────────────────────────────────────────

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database connection failed: %s", e)
            return False

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("Database engine disposed")
