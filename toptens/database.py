from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from toptens.config import DATABASE_URL, SYNC_DATABASE_URL, DB_ECHO


async_create_engine = create_async_engine(DATABASE_URL, echo=DB_ECHO)
async_session_maker = async_sessionmaker(async_create_engine, expire_on_commit=False, class_=AsyncSession)

# used by celery workers, which run outside the event loop
sync_engine = create_engine(SYNC_DATABASE_URL, echo=DB_ECHO)
SyncSessionLocal = sessionmaker(sync_engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass
