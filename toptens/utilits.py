import logging

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from toptens.config import LIKE_EMOJI, TOGGLE_MAX_ATTEMPTS
from toptens.counters import adjust_counter
from toptens.exceptions import NotFound, InvalidArgument, Internal
from toptens.models import RankingModel, RankingItemModel, CommentModel, ReactionModel, TargetType


logger = logging.getLogger(__name__)


TARGET_MODELS = {
    TargetType.RANKING: RankingModel,
    TargetType.COMMENT: CommentModel,
    TargetType.RANKING_ITEM: RankingItemModel,
}

# target types whose rows cache their like count
LIKE_COUNTED = {TargetType.RANKING, TargetType.COMMENT}


async def target_exists(db : AsyncSession, target_type : TargetType, target_id : int) -> bool:
    model = TARGET_MODELS[target_type]
    filters = [model.id == target_id]
    if model is CommentModel:
        filters.append(CommentModel.is_deleted.is_(False))
    return await db.scalar(select(model.id).where(*filters)) is not None


async def _find_reaction(db : AsyncSession, user_id : int, target_type : TargetType, target_id : int, emoji : str):
    return await db.scalar(
        select(ReactionModel).where(
            ReactionModel.user_id == user_id,
            ReactionModel.target_type == target_type,
            ReactionModel.target_id == target_id,
            ReactionModel.emoji == emoji,
        )
    )


async def toggle_reaction(
    user_id : int,
    target_type : TargetType,
    target_id : int,
    emoji : str,
    db : AsyncSession,
) -> bool:
    """
    Adds the reaction if the user has not reacted with ``emoji`` yet, removes it otherwise.

    Returns True when the reaction is active after the call. The existence check,
    the row change and the like counter move are committed as one transaction.
    A concurrent insert of the same key makes our insert fail on the unique
    constraint; the transaction is rolled back and the toggle starts over.
    """
    emoji = emoji.strip()
    if not emoji:
        raise InvalidArgument("Emoji is required")
    if not await target_exists(db, target_type, target_id):
        raise NotFound("Target not found")

    model = TARGET_MODELS[target_type]
    counted = emoji == LIKE_EMOJI and target_type in LIKE_COUNTED

    for attempt in range(1, TOGGLE_MAX_ATTEMPTS + 1):
        existing = await _find_reaction(db, user_id, target_type, target_id, emoji)
        if existing is not None:
            result = await db.execute(
                delete(ReactionModel).where(ReactionModel.id == existing.id)
            )
            # a concurrent toggle may have removed the row first
            if counted and result.rowcount == 1:
                await adjust_counter(db, model, target_id, "like_count", -1)
            await db.commit()
            return False

        db.add(ReactionModel(
            user_id=user_id,
            target_type=target_type,
            target_id=target_id,
            emoji=emoji,
        ))
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            logger.warning(
                "Concurrent reaction on %s:%s by user %s, retrying (attempt %s)",
                target_type.value, target_id, user_id, attempt,
            )
            continue
        if counted:
            await adjust_counter(db, model, target_id, "like_count", 1)
        await db.commit()
        return True

    logger.error("Gave up toggling reaction on %s:%s after %s attempts", target_type.value, target_id, TOGGLE_MAX_ATTEMPTS)
    raise Internal("Could not apply reaction, try again")


async def list_reactions(
    target_type : TargetType,
    target_id : int,
    db : AsyncSession,
    user_id : int | None = None,
) -> list[dict]:
    """True per-emoji counts for a target, in order of first use."""
    result = await db.execute(
        select(
            ReactionModel.emoji,
            func.count(ReactionModel.id).label("count"),
            func.min(ReactionModel.id).label("first_id"),
        )
        .where(
            ReactionModel.target_type == target_type,
            ReactionModel.target_id == target_id,
        )
        .group_by(ReactionModel.emoji)
        .order_by(func.min(ReactionModel.id))
    )
    rows = result.all()

    mine = set()
    if user_id is not None and rows:
        mine = set(await db.scalars(
            select(ReactionModel.emoji).where(
                ReactionModel.target_type == target_type,
                ReactionModel.target_id == target_id,
                ReactionModel.user_id == user_id,
            )
        ))

    return [
        {"emoji": emoji, "count": count, "user_reacted": emoji in mine}
        for emoji, count, _ in rows
    ]
