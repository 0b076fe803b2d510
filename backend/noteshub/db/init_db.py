import asyncio

import structlog
from noteshub.core.config import settings
from noteshub.db.record_store import create_tables

logger = structlog.get_logger()

async def init_db(engine=None):
    if engine is None:
        from noteshub.db.session import engine

    logger.info("db_init_start", backend="sqlite" if "sqlite" in settings.DATABASE_URL else "postgres")
    try:
        # Fail fast if the remote database is unreachable
        async with asyncio.timeout(10):
            await create_tables(engine)
    except TimeoutError:
        logger.error("db_init_timeout", message="Connection to database timed out after 10s. Check DATABASE_URL.")
        raise
    except Exception as e:
        logger.error("db_init_failed", error=str(e))
        raise
    logger.info("db_init_complete")

if __name__ == "__main__":
    asyncio.run(init_db())
