import logging
import time

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from aivestor.config import GlobalConfig

settings = GlobalConfig()
_slow_query_logger = logging.getLogger("db.slow_query")

engine = create_async_engine(
    settings.database_url or "postgresql+asyncpg://localhost/investment_advisor",
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
    echo=settings.debug,
)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Slow query detection
@event.listens_for(engine.sync_engine, "before_cursor_execute")
def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info["query_start_time"] = time.monotonic()


@event.listens_for(engine.sync_engine, "after_cursor_execute")
def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    elapsed = time.monotonic() - conn.info.get("query_start_time", 0)
    threshold_sec = settings.slow_query_threshold_ms / 1000.0
    if elapsed > threshold_sec:
        _slow_query_logger.warning(
            "SLOW_QUERY query=%s",
            statement[:200],
            extra={"duration_ms": round(elapsed * 1000, 1)},
        )


async def get_session() -> AsyncSession:
    """Request-scoped DB session (FastAPI Depends)."""
    async with SessionLocal() as session:
        yield session
