from .users import UserModel
from .categories import CategoryModel
from .rankings import RankingModel
from .ranking_items import RankingItemModel
from .comments import CommentModel
from .reactions import ReactionModel, TargetType


__all__ = ["UserModel", "CategoryModel", "RankingModel", "RankingItemModel", "CommentModel", "ReactionModel", "TargetType"]
