from fastapi import APIRouter, Depends, Query
from pydantic import PositiveInt
from sqlalchemy.ext.asyncio import AsyncSession

from toptens.db_depends import get_async_db
from toptens.models import UserModel, TargetType
from toptens.schemas.reactions import ReactionToggleSchema, ReactionToggleResultSchema, ReactionListSchema
from toptens.utilits import toggle_reaction, list_reactions
from toptens.validation.jwt_manager import jwt_manager


router = APIRouter(
    prefix="/reactions",
    tags=["Reactions"]
)


@router.post("", response_model=ReactionToggleResultSchema)
async def react(
    reaction : ReactionToggleSchema,
    db : AsyncSession = Depends(get_async_db),
    current_user : UserModel = Depends(jwt_manager.get_current_user),
) -> ReactionToggleResultSchema:
    reacted = await toggle_reaction(
        user_id=current_user.id,
        target_type=reaction.target_type,
        target_id=reaction.target_id,
        emoji=reaction.emoji,
        db=db,
    )
    return ReactionToggleResultSchema(reacted=reacted)


@router.get("", response_model=ReactionListSchema)
async def reactions_for_target(
    target_type : TargetType = Query(..., alias="targetType"),
    target_id : PositiveInt = Query(..., alias="targetId"),
    db : AsyncSession = Depends(get_async_db),
    current_user : UserModel | None = Depends(jwt_manager.get_optional_user),
) -> ReactionListSchema:
    user_id = current_user.id if current_user is not None else None
    reactions = await list_reactions(target_type, target_id, db, user_id=user_id)
    return ReactionListSchema(reactions=reactions)
