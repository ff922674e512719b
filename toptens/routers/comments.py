import logging

from fastapi import APIRouter, Depends, Response, status

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from toptens.config import LIKE_EMOJI
from toptens.counters import adjust_counter, true_like_counts
from toptens.db_depends import get_async_db
from toptens.exceptions import NotFound, Forbidden
from toptens.models import CommentModel, UserModel, RankingModel, TargetType
from toptens.schemas.comments import (
    CommentCreateSchema, CommentUpdateSchema, CommentSchema, CommentListSchema, LikeResultSchema
)
from toptens.schemas.users import UserSummarySchema
from toptens.utilits import toggle_reaction
from toptens.validation.jwt_manager import jwt_manager


logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Comments"]
)


def comment_schema(comment : CommentModel, like_count : int = 0, replies : list[CommentSchema] | None = None) -> CommentSchema:
    return CommentSchema(
        id=comment.id,
        content=comment.content,
        ranking_id=comment.ranking_id,
        user_id=comment.user_id,
        parent_id=comment.parent_id,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        like_count=like_count,
        user=UserSummarySchema.model_validate(comment.user),
        replies=replies or [],
    )


async def load_comment(comment_id : int, db : AsyncSession) -> CommentModel | None:
    return await db.scalar(
        select(CommentModel)
        .where(CommentModel.id == comment_id, CommentModel.is_deleted.is_(False))
        .options(selectinload(CommentModel.user))
        .execution_options(populate_existing=True)
    )


@router.post("/rankings/{ranking_id}/comments", response_model=CommentSchema, status_code=status.HTTP_201_CREATED)
async def create_comment(
    ranking_id : int,
    new_comment : CommentCreateSchema,
    db : AsyncSession = Depends(get_async_db),
    current_user : UserModel = Depends(jwt_manager.get_current_user)
) -> CommentSchema:
    ranking = await db.get(RankingModel, ranking_id)
    if ranking is None:
        raise NotFound("Ranking not found")
    if not ranking.allow_comments:
        raise Forbidden("Comments are disabled for this ranking")
    if new_comment.parent_id is not None:
        parent_comment = await db.scalar(
            select(CommentModel.id)
            .where(
                CommentModel.id == new_comment.parent_id,
                CommentModel.ranking_id == ranking_id,
                CommentModel.is_deleted.is_(False),
            )
        )
        if parent_comment is None:
            raise NotFound("Parent comment not found")

    comment = CommentModel(
        content=new_comment.content,
        ranking_id=ranking_id,
        user_id=current_user.id,
        parent_id=new_comment.parent_id
    )
    db.add(comment)
    await db.flush()
    await adjust_counter(db, RankingModel, ranking_id, "comment_count", 1)
    await db.commit()
    logger.info("User %s commented on ranking %s", current_user.id, ranking_id)

    comment = await load_comment(comment.id, db)
    return comment_schema(comment)


@router.get("/rankings/{ranking_id}/comments", response_model=CommentListSchema)
async def ranking_comments(
    ranking_id : int,
    db : AsyncSession = Depends(get_async_db)
) -> CommentListSchema:
    if await db.scalar(select(RankingModel.id).where(RankingModel.id == ranking_id)) is None:
        raise NotFound("Ranking not found")

    top_level = (await db.scalars(
        select(CommentModel)
        .where(
            CommentModel.ranking_id == ranking_id,
            CommentModel.parent_id.is_(None),
            CommentModel.is_deleted.is_(False),
        )
        .options(selectinload(CommentModel.user))
        .order_by(CommentModel.created_at.desc(), CommentModel.id.desc())
    )).all()

    top_ids = [comment.id for comment in top_level]
    replies = []
    if top_ids:
        replies = (await db.scalars(
            select(CommentModel)
            .where(
                CommentModel.parent_id.in_(top_ids),
                CommentModel.is_deleted.is_(False),
            )
            .options(selectinload(CommentModel.user))
            .order_by(CommentModel.created_at.asc(), CommentModel.id.asc())
        )).all()

    likes = await true_like_counts(db, TargetType.COMMENT, top_ids + [reply.id for reply in replies])

    replies_by_parent : dict[int, list[CommentSchema]] = {}
    for reply in replies:
        replies_by_parent.setdefault(reply.parent_id, []).append(
            comment_schema(reply, likes.get(reply.id, 0))
        )

    return CommentListSchema(comments=[
        comment_schema(comment, likes.get(comment.id, 0), replies_by_parent.get(comment.id))
        for comment in top_level
    ])


@router.post("/comments/{comment_id}/like", response_model=LikeResultSchema)
async def liked_comment(
    comment_id : int,
    db : AsyncSession = Depends(get_async_db),
    current_user : UserModel = Depends(jwt_manager.get_current_user)
) -> LikeResultSchema:
    liked = await toggle_reaction(
        user_id=current_user.id,
        target_type=TargetType.COMMENT,
        target_id=comment_id,
        emoji=LIKE_EMOJI,
        db=db,
    )
    return LikeResultSchema(liked=liked)


@router.put("/comments/{comment_id}", response_model=CommentSchema)
async def update_comment(
    comment_id : int,
    new_comment : CommentUpdateSchema,
    db : AsyncSession = Depends(get_async_db),
    current_user : UserModel = Depends(jwt_manager.get_current_user)
) -> CommentSchema:
    comment = await load_comment(comment_id, db)
    if comment is None:
        raise NotFound("Comment not found")
    if comment.user_id != current_user.id:
        raise Forbidden("Only the author can edit a comment")
    await db.execute(
        update(CommentModel)
        .where(CommentModel.id == comment_id)
        .values(content=new_comment.content)
    )
    await db.commit()

    comment = await load_comment(comment_id, db)
    likes = await true_like_counts(db, TargetType.COMMENT, [comment_id])
    return comment_schema(comment, likes.get(comment_id, 0))


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: UserModel = Depends(jwt_manager.get_current_user)
):
    comment = await load_comment(comment_id, db)
    if comment is None:
        raise NotFound("Comment not found")

    if current_user.role == "admin":
        if comment.user_id != current_user.id and comment.user.role == "admin":
            raise Forbidden("Admins can only remove comments of regular users")
    elif current_user.id != comment.user_id:
        raise Forbidden("You can only delete your own comments")

    ranking_id = comment.ranking_id
    result = await db.execute(
        update(CommentModel)
        .where(CommentModel.id == comment_id, CommentModel.is_deleted.is_(False))
        .values(is_deleted=True)
    )
    # a concurrent delete may already have flipped the flag
    if result.rowcount == 1:
        await adjust_counter(db, RankingModel, ranking_id, "comment_count", -1)
    await db.commit()
    logger.info("Comment %s removed by user %s", comment_id, current_user.id)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
