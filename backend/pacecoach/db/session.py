"""
Database Session Management

Provides the async database engine and session factory used by the
analytics provider and result sink.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker

from pacecoach.config import settings


def get_async_url(url: str) -> str:
    """Convert sync database URL to async version."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    elif url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    return url


def create_engine_for(url: str) -> AsyncEngine:
    """Create an async engine with driver-appropriate options."""
    async_url = get_async_url(url)

    if async_url.startswith("sqlite"):
        return create_async_engine(
            async_url,
            connect_args={"check_same_thread": False}
        )
    if async_url.startswith("postgresql"):
        # PostgreSQL with connection pool settings
        return create_async_engine(
            async_url,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,  # 30 minutes
        )
    return create_async_engine(async_url)


async_engine = create_engine_for(settings.database_url)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def init_db(engine: AsyncEngine = async_engine) -> None:
    """Initialize database tables."""
    from pacecoach.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
