from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from core.config import settings


def build_engine(url: str = None, **kwargs):
    url = url or settings.DATABASE_URL
    if not url.startswith("sqlite"):
        # Pool tuning only applies to server databases
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_recycle", 3600)
        kwargs.setdefault("pool_size", 20)      # Base connections
        kwargs.setdefault("max_overflow", 10)   # Burst connections
    return create_async_engine(url, echo=False, future=True, **kwargs)


engine = build_engine()

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_models(bind=None):
    """Create all tables. Development convenience; production runs Alembic."""
    from models.base import Base
    import models.question  # noqa: F401
    import models.participant  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
