import logging
import math
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status, Query

from sqlalchemy import select, or_, func
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from toptens.config import LIKE_EMOJI, FEATURED_CANDIDATE_POOL, TRENDING_CANDIDATE_FACTOR
from toptens.counters import adjust_counter, true_like_counts, true_comment_counts
from toptens.db_depends import get_async_db
from toptens.exceptions import NotFound
from toptens.models import RankingModel, RankingItemModel, CategoryModel, UserModel, TargetType
from toptens.schemas.comments import LikeResultSchema
from toptens.schemas.rankings import (
    RankingCreateSchema, RankingSchema, RankingPageSchema, RankingListSchema, PaginationSchema, ViewCountSchema
)
from toptens.trending import Candidate, Policy, TimeFilter, FEATURED_WINDOW, select_top, window_start
from toptens.utilits import toggle_reaction
from toptens.validation.jwt_manager import jwt_manager


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rankings",
    tags=["Rankings"]
)

PREVIEW_ITEMS = 3

RANKING_OPTIONS = (
    selectinload(RankingModel.items),
    selectinload(RankingModel.category),
    selectinload(RankingModel.user),
)


def ranking_schema(
    ranking : RankingModel,
    like_count : int | None = None,
    comment_count : int | None = None,
    preview : bool = False,
) -> RankingSchema:
    """Cached counters unless true counts are passed in."""
    schema = RankingSchema.model_validate(ranking)
    updates = {}
    if like_count is not None:
        updates["like_count"] = like_count
    if comment_count is not None:
        updates["comment_count"] = comment_count
    if preview:
        updates["items"] = schema.items[:PREVIEW_ITEMS]
    return schema.model_copy(update=updates)


async def get_or_create_category(name : str | None, db : AsyncSession) -> CategoryModel:
    name = (name or "").strip()
    slug = name.lower() if name else "other"
    category = await db.scalar(select(CategoryModel).where(CategoryModel.slug == slug))
    if category is not None:
        return category
    if name:
        category = CategoryModel(
            name=name[:1].upper() + name[1:],
            slug=slug,
            description=f"Rankings about {name}",
        )
    else:
        category = CategoryModel(name="Other", slug="other", description="Miscellaneous rankings")
    db.add(category)
    await db.flush()
    return category


async def load_ranking(ranking_id : int, db : AsyncSession) -> RankingModel | None:
    return await db.scalar(
        select(RankingModel)
        .where(RankingModel.id == ranking_id)
        .options(*RANKING_OPTIONS)
        .execution_options(populate_existing=True)
    )


async def with_true_counts(rankings : list[RankingModel], db : AsyncSession):
    ids = [ranking.id for ranking in rankings]
    likes = await true_like_counts(db, TargetType.RANKING, ids)
    comments = await true_comment_counts(db, ids)
    candidates = [
        Candidate(
            record=ranking,
            like_count=likes.get(ranking.id, 0),
            comment_count=comments.get(ranking.id, 0),
            view_count=ranking.view_count,
            created_at=ranking.created_at,
            is_public=ranking.is_public,
        )
        for ranking in rankings
    ]
    return candidates, likes, comments


@router.post("", response_model=RankingSchema, status_code=status.HTTP_201_CREATED)
async def add_ranking(
    new_ranking : RankingCreateSchema,
    db : AsyncSession = Depends(get_async_db),
    current_user : UserModel = Depends(jwt_manager.get_current_user),
) -> RankingSchema:
    category = await get_or_create_category(new_ranking.category, db)
    ranking = RankingModel(
        title=new_ranking.title,
        description=new_ranking.description,
        is_public=new_ranking.is_public,
        allow_comments=new_ranking.allow_comments,
        category_id=category.id,
        user_id=current_user.id,
        items=[
            RankingItemModel(
                position=position,
                title=item.title,
                description=item.description,
                image_url=item.image_url,
                extra={},
            )
            for position, item in enumerate(new_ranking.items, start=1)
        ],
    )
    db.add(ranking)
    await db.commit()
    logger.info("User %s published ranking %s", current_user.id, ranking.id)

    ranking = await load_ranking(ranking.id, db)
    return ranking_schema(ranking)


@router.get("", response_model=RankingPageSchema)
async def search_rankings(
    page : int = Query(1, ge=1),
    limit : int = Query(10, ge=1, le=50),
    category : str | None = Query(None, description="Category slug"),
    search : str | None = Query(None),
    db : AsyncSession = Depends(get_async_db)
) -> RankingPageSchema:
    filters = [RankingModel.is_public.is_(True)]
    if category:
        filters.append(RankingModel.category.has(CategoryModel.slug == category.lower()))
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        filters.append(
            or_(
                RankingModel.title.ilike(pattern),
                RankingModel.description.ilike(pattern),
            )
        )

    total = await db.scalar(select(func.count(RankingModel.id)).where(*filters))
    items = (await db.scalars(
        select(RankingModel)
        .where(*filters)
        .options(*RANKING_OPTIONS)
        .order_by(RankingModel.created_at.desc(), RankingModel.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )).all()

    # listing pages read the cached counters
    return RankingPageSchema(
        rankings=[ranking_schema(ranking) for ranking in items],
        pagination=PaginationSchema(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit),
        ),
    )


@router.get("/featured", response_model=RankingListSchema)
async def featured_rankings(
    limit : int = Query(6, ge=1, le=50),
    db : AsyncSession = Depends(get_async_db)
) -> RankingListSchema:
    now = datetime.now(timezone.utc)
    rankings = (await db.scalars(
        select(RankingModel)
        .where(
            RankingModel.is_public.is_(True),
            RankingModel.created_at >= now - FEATURED_WINDOW,
        )
        .options(*RANKING_OPTIONS)
        .order_by(
            RankingModel.like_count.desc(),
            RankingModel.comment_count.desc(),
            RankingModel.view_count.desc(),
            RankingModel.created_at.desc(),
        )
        .limit(FEATURED_CANDIDATE_POOL)
    )).all()

    candidates, likes, comments = await with_true_counts(rankings, db)
    selected = select_top(candidates, Policy.FEATURED, limit, now)
    return RankingListSchema(rankings=[
        ranking_schema(ranking, likes.get(ranking.id, 0), comments.get(ranking.id, 0), preview=True)
        for ranking in selected
    ])


@router.get("/trending", response_model=RankingListSchema)
async def trending_rankings(
    time_filter : TimeFilter = Query(TimeFilter.WEEK, alias="timeFilter"),
    limit : int = Query(10, ge=1, le=50),
    db : AsyncSession = Depends(get_async_db)
) -> RankingListSchema:
    # local time, "today" starts at the server's midnight
    now = datetime.now().astimezone()
    stmt = (
        select(RankingModel)
        .where(RankingModel.is_public.is_(True))
        .options(*RANKING_OPTIONS)
        .order_by(RankingModel.created_at.desc(), RankingModel.id.desc())
        .limit(limit * TRENDING_CANDIDATE_FACTOR)
    )
    start = window_start(time_filter, now)
    if start is not None:
        stmt = stmt.where(RankingModel.created_at >= start.astimezone(timezone.utc))
    rankings = (await db.scalars(stmt)).all()

    candidates, likes, comments = await with_true_counts(rankings, db)
    selected = select_top(candidates, Policy.TRENDING, limit, now, time_filter)
    return RankingListSchema(rankings=[
        ranking_schema(ranking, likes.get(ranking.id, 0), comments.get(ranking.id, 0), preview=True)
        for ranking in selected
    ])


@router.get("/{ranking_id}", response_model=RankingSchema)
async def get_ranking_info(
    ranking_id : int,
    db : AsyncSession = Depends(get_async_db),
    current_user : UserModel | None = Depends(jwt_manager.get_optional_user),
) -> RankingSchema:
    ranking = await load_ranking(ranking_id, db)
    if ranking is None:
        raise NotFound("Ranking not found")
    if not ranking.is_public and (current_user is None or current_user.id != ranking.user_id):
        raise NotFound("Ranking not found")
    _, likes, comments = await with_true_counts([ranking], db)
    return ranking_schema(ranking, likes.get(ranking.id, 0), comments.get(ranking.id, 0))


@router.post("/{ranking_id}/view", response_model=ViewCountSchema)
async def register_view(
    ranking_id : int,
    db : AsyncSession = Depends(get_async_db)
) -> ViewCountSchema:
    if await db.scalar(select(RankingModel.id).where(RankingModel.id == ranking_id)) is None:
        raise NotFound("Ranking not found")
    await adjust_counter(db, RankingModel, ranking_id, "view_count", 1)
    await db.commit()
    view_count = await db.scalar(select(RankingModel.view_count).where(RankingModel.id == ranking_id))
    return ViewCountSchema(view_count=view_count)


@router.post("/{ranking_id}/like", response_model=LikeResultSchema)
async def liked_ranking(
    ranking_id : int,
    db : AsyncSession = Depends(get_async_db),
    current_user : UserModel = Depends(jwt_manager.get_current_user)
) -> LikeResultSchema:
    liked = await toggle_reaction(
        user_id=current_user.id,
        target_type=TargetType.RANKING,
        target_id=ranking_id,
        emoji=LIKE_EMOJI,
        db=db,
    )
    return LikeResultSchema(liked=liked)
