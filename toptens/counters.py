"""
Denormalized counters.

``like_count`` on rankings/comments and ``comment_count`` on rankings are caches
of aggregates over the reaction and comment tables. They are only ever moved
through :func:`adjust_counter`, inside the same transaction as the row change
that justifies the move. The ``*_stmt`` builders return the true aggregates and
are shared by the request path (async session) and the reconciliation task
(sync session).
"""
from collections.abc import Iterable

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from toptens.config import LIKE_EMOJI
from toptens.models import CommentModel, ReactionModel, TargetType


async def adjust_counter(db : AsyncSession, model, record_id : int, field : str, delta : int) -> None:
    """Move ``model.field`` of one row by ``delta`` on the database side. Does not commit."""
    column = getattr(model, field)
    await db.execute(
        update(model)
        .where(model.id == record_id)
        .values({field: column + delta})
    )


def like_counts_stmt(target_type : TargetType, target_ids : Iterable[int] | None = None):
    stmt = (
        select(ReactionModel.target_id, func.count(ReactionModel.id))
        .where(
            ReactionModel.target_type == target_type,
            ReactionModel.emoji == LIKE_EMOJI,
        )
        .group_by(ReactionModel.target_id)
    )
    if target_ids is not None:
        stmt = stmt.where(ReactionModel.target_id.in_(list(target_ids)))
    return stmt


def comment_counts_stmt(ranking_ids : Iterable[int] | None = None):
    stmt = (
        select(CommentModel.ranking_id, func.count(CommentModel.id))
        .where(CommentModel.is_deleted.is_(False))
        .group_by(CommentModel.ranking_id)
    )
    if ranking_ids is not None:
        stmt = stmt.where(CommentModel.ranking_id.in_(list(ranking_ids)))
    return stmt


async def true_like_counts(db : AsyncSession, target_type : TargetType, target_ids : list[int]) -> dict[int, int]:
    if not target_ids:
        return {}
    result = await db.execute(like_counts_stmt(target_type, target_ids))
    return {target_id: count for target_id, count in result.all()}


async def true_comment_counts(db : AsyncSession, ranking_ids : list[int]) -> dict[int, int]:
    if not ranking_ids:
        return {}
    result = await db.execute(comment_counts_stmt(ranking_ids))
    return {ranking_id: count for ranking_id, count in result.all()}
