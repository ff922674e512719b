from pydantic import Field, PositiveInt, field_validator
from typing import Optional
from datetime import datetime

from toptens.schemas.base import CamelSchema
from toptens.schemas.users import UserSummarySchema


def _strip_content(value : str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Content is required")
    return value


class CommentCreateSchema(CamelSchema):
    content : str = Field(..., min_length=1, description="Comment text, at least one non-blank character")
    parent_id : PositiveInt | None = Field(None, description="Comment this one replies to")

    @field_validator("content")
    @classmethod
    def validation_content(cls, value):
        return _strip_content(value)


class CommentUpdateSchema(CamelSchema):
    content : str = Field(..., min_length=1, description="New comment text")

    @field_validator("content")
    @classmethod
    def validation_content(cls, value):
        return _strip_content(value)


class CommentSchema(CamelSchema):
    id : PositiveInt
    content : str
    ranking_id : PositiveInt
    user_id : PositiveInt
    parent_id : Optional[PositiveInt]
    created_at : datetime
    updated_at : datetime
    like_count : int = Field(default=0, ge=0, description="Number of likes")
    user : UserSummarySchema
    replies : list["CommentSchema"] = Field(default_factory=list)


class CommentListSchema(CamelSchema):
    comments : list[CommentSchema] = Field(default_factory=list)


class LikeResultSchema(CamelSchema):
    liked : bool
