"""
HyperLocal Database Configuration
PostgreSQL - SQLAlchemy 2.0 Async
"""
import os
import ssl
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
import logging

logger = logging.getLogger(__name__)

# Get DATABASE_URL from environment
DATABASE_URL = os.environ.get('DATABASE_URL', '')


def convert_url_for_asyncpg(url: str) -> str:
    """Convert standard PostgreSQL URL to asyncpg-compatible format"""
    if not url:
        return url

    parsed = urlparse(url)

    # Other dialects (sqlite+aiosqlite for tests) are passed through untouched
    if parsed.scheme not in ("postgres", "postgresql", "postgresql+asyncpg"):
        return url

    scheme = 'postgresql+asyncpg'

    # asyncpg doesn't understand sslmode/channel_binding
    query_params = parse_qs(parsed.query)
    query_params.pop('sslmode', None)
    query_params.pop('channel_binding', None)

    new_query = urlencode({k: v[0] for k, v in query_params.items()})

    return urlunparse((
        scheme,
        parsed.netloc,
        parsed.path,
        parsed.params,
        new_query,
        parsed.fragment
    ))


def is_postgres_url(url: str) -> bool:
    return url.startswith("postgresql")


def build_engine(url: str):
    """Create the async engine for a database URL"""
    if not url:
        return None

    url = convert_url_for_asyncpg(url)

    if not is_postgres_url(url):
        return create_async_engine(url, echo=False)

    connect_args = {}
    if os.environ.get("DATABASE_SSL", "true").lower() != "false":
        # Managed Postgres requires SSL but ships self-signed chains
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ssl_context

    return create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        connect_args=connect_args
    )


engine = build_engine(DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
) if engine else None


class Base(DeclarativeBase):
    pass


async def get_db():
    """Dependency for getting async database sessions"""
    if not AsyncSessionLocal:
        raise RuntimeError("Database not configured. Set DATABASE_URL environment variable.")

    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """Create all tables (development and tests; production uses Alembic)"""
    if not engine:
        logger.error("Database engine not initialized. Check DATABASE_URL.")
        return

    from .models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized with tables and constraints")
