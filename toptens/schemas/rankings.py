from pydantic import Field, PositiveInt
from typing import Optional
from datetime import datetime

from toptens.schemas.base import CamelSchema
from toptens.schemas.users import UserSummarySchema


class RankingItemCreateSchema(CamelSchema):
    title : str = Field(..., min_length=1, max_length=200)
    description : Optional[str] = None
    image_url : Optional[str] = Field(None, max_length=255)


class RankingCreateSchema(CamelSchema):
    title : str = Field(..., min_length=1, max_length=100, description="Ranking title")
    description : Optional[str] = Field(None, description="What the list is about")
    category : Optional[str] = Field(None, max_length=50, description="Category name, created if unknown")
    is_public : bool = True
    allow_comments : bool = True
    items : list[RankingItemCreateSchema] = Field(..., min_length=1, description="Entries in ranked order")


class CategorySchema(CamelSchema):
    id : PositiveInt
    name : str
    slug : str
    description : Optional[str]


class RankingItemSchema(CamelSchema):
    id : PositiveInt
    position : PositiveInt
    title : str
    description : Optional[str]
    image_url : Optional[str]


class RankingSchema(CamelSchema):
    id : PositiveInt
    title : str
    description : Optional[str]
    is_public : bool
    allow_comments : bool
    view_count : int = Field(default=0, ge=0)
    like_count : int = Field(default=0, ge=0, description="Number of likes")
    comment_count : int = Field(default=0, ge=0, description="Number of comments")
    created_at : datetime
    updated_at : datetime
    category : CategorySchema
    user : UserSummarySchema
    items : list[RankingItemSchema] = Field(default_factory=list)


class PaginationSchema(CamelSchema):
    page : int = Field(ge=1)
    limit : int = Field(ge=1)
    total : int = Field(ge=0)
    pages : int = Field(ge=0)


class RankingPageSchema(CamelSchema):
    rankings : list[RankingSchema] = Field(default_factory=list)
    pagination : PaginationSchema


class RankingListSchema(CamelSchema):
    rankings : list[RankingSchema] = Field(default_factory=list)


class ViewCountSchema(CamelSchema):
    view_count : int = Field(ge=0)
