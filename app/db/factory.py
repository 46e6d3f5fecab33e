import logging

from app.core.config import Settings
from app.db.recorder import RunRecorder

logger = logging.getLogger(__name__)


def build_recorder(settings: Settings) -> RunRecorder:
    """Pick the storage backend once, at startup.

    Supabase wins when its URL and a key are configured; otherwise runs are
    recorded through SQLAlchemy using ``settings.postgres_url``.
    """
    if settings.use_supabase:
        from app.db.supabase_recorder import SupabaseRunRecorder

        logger.info("Recording runs via Supabase")
        return SupabaseRunRecorder(settings.supabase_url, settings.supabase_key)

    from app.db.postgres import engine
    from app.db.sql_recorder import SqlRunRecorder

    logger.info("Recording runs via SQLAlchemy (%s)", engine.dialect.name)
    return SqlRunRecorder(engine)
