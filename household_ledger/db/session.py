from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from household_ledger.core.config import settings

Base = declarative_base()

engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

# Objects stay readable after commit; services build their payloads before committing
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    async with async_session() as session:
        yield session


async def init_models():
    from household_ledger.db.base import metadata

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
