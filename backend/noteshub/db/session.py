from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
from noteshub.core.config import settings

# For Supabase/PostgreSQL with asyncpg, SSL is specified in the URL, not connect_args
db_url = settings.DATABASE_URL
if "supabase" in db_url and "ssl=" not in db_url:
    db_url = db_url + ("&" if "?" in db_url else "?") + "ssl=require"

engine_kwargs = {"echo": False, "future": True}
if db_url.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs["poolclass"] = NullPool  # asyncpg behind the Supabase pooler

engine = create_async_engine(db_url, **engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)
