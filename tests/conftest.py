from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from toptens.config import SECRET_KEY, ALGORITHM, LIKE_EMOJI
from toptens.database import Base
from toptens.db_depends import get_async_db
from toptens.main import app
from toptens.models import (
    UserModel, CategoryModel, RankingModel, RankingItemModel, CommentModel, ReactionModel, TargetType
)


def auth_header(user) -> dict:
    claims = {
        "sub": user.email,
        "id": user.id,
        "role": user.role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=30),
    }
    return {"Authorization": f"Bearer {jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)}"}


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'toptens.db'}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_async_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_get_async_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_async_db, None)


@pytest_asyncio.fixture
async def users(session_maker):
    async with session_maker() as session:
        people = {
            "alice": UserModel(username="alice", display_name="Alice", email="alice@example.com"),
            "bob": UserModel(username="bob", display_name="Bob", email="bob@example.com"),
            "carol": UserModel(username="carol", email="carol@example.com"),
            "admin": UserModel(username="moderator", email="mod@example.com", role="admin"),
            "other_admin": UserModel(username="moderator2", email="mod2@example.com", role="admin"),
            "gone": UserModel(username="gone", email="gone@example.com", is_active=False),
        }
        session.add_all(people.values())
        await session.commit()
    return people


@pytest.fixture
def make_ranking(session_maker):
    async def _make(
        owner,
        title="Best pizza toppings",
        *,
        is_public=True,
        allow_comments=True,
        created_at=None,
        like_count=0,
        comment_count=0,
        view_count=0,
        items=3,
    ) -> int:
        async with session_maker() as session:
            category = await session.scalar(select(CategoryModel).where(CategoryModel.slug == "food"))
            if category is None:
                category = CategoryModel(name="Food", slug="food", description="Rankings about food")
                session.add(category)
                await session.flush()
            ranking = RankingModel(
                title=title,
                is_public=is_public,
                allow_comments=allow_comments,
                like_count=like_count,
                comment_count=comment_count,
                view_count=view_count,
                category_id=category.id,
                user_id=owner.id,
                items=[
                    RankingItemModel(position=position, title=f"Item {position}", extra={})
                    for position in range(1, items + 1)
                ],
            )
            if created_at is not None:
                ranking.created_at = created_at
            session.add(ranking)
            await session.commit()
            return ranking.id

    return _make


@pytest.fixture
def fetch(session_maker):
    async def _fetch(model, record_id):
        async with session_maker() as session:
            return await session.get(model, record_id)

    return _fetch


@pytest.fixture
def true_likes(session_maker):
    async def _count(target_type : TargetType, target_id : int) -> int:
        async with session_maker() as session:
            return await session.scalar(
                select(func.count(ReactionModel.id)).where(
                    ReactionModel.target_type == target_type,
                    ReactionModel.target_id == target_id,
                    ReactionModel.emoji == LIKE_EMOJI,
                )
            )

    return _count


@pytest.fixture
def true_comments(session_maker):
    async def _count(ranking_id : int) -> int:
        async with session_maker() as session:
            return await session.scalar(
                select(func.count(CommentModel.id)).where(
                    CommentModel.ranking_id == ranking_id,
                    CommentModel.is_deleted.is_(False),
                )
            )

    return _count


@pytest.fixture
def auth():
    return auth_header
