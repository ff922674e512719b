from pydantic import Field, PositiveInt, field_validator

from toptens.models import TargetType
from toptens.schemas.base import CamelSchema


class ReactionToggleSchema(CamelSchema):
    target_type : TargetType = Field(..., description="ranking | comment | ranking_item")
    target_id : PositiveInt = Field(..., description="ID of the ranking, comment or ranking item")
    emoji : str = Field(..., min_length=1, max_length=32, description="Emoji symbol")

    @field_validator("emoji")
    @classmethod
    def validation_emoji(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("Emoji is required")
        return value


class ReactionToggleResultSchema(CamelSchema):
    reacted : bool


class ReactionCountSchema(CamelSchema):
    emoji : str
    count : int = Field(ge=0)
    user_reacted : bool = False


class ReactionListSchema(CamelSchema):
    reactions : list[ReactionCountSchema] = Field(default_factory=list)
