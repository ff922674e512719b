from pydantic import PositiveInt
from typing import Optional

from toptens.schemas.base import CamelSchema


class UserSummarySchema(CamelSchema):
    id : PositiveInt
    username : str
    display_name : Optional[str]
    avatar_url : Optional[str]
