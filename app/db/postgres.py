from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import settings

engine = create_async_engine(settings.postgres_url, echo=False, pool_pre_ping=True)
