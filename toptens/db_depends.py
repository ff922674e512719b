from collections.abc import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession
from toptens.database import async_session_maker


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provides an async SQLAlchemy session for the duration of one request.
    """
    async with async_session_maker() as session:
        yield session
