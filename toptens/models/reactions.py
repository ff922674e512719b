import enum

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, ForeignKey, UniqueConstraint, Index, DateTime, Enum, func

from datetime import datetime

from toptens.database import Base


class TargetType(str, enum.Enum):
    RANKING = "ranking"
    COMMENT = "comment"
    RANKING_ITEM = "ranking_item"


class ReactionModel(Base):
    __tablename__ = "reactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    # polymorphic, resolved through TARGET_MODELS in toptens.utilits
    target_type: Mapped[TargetType] = mapped_column(
        Enum(
            TargetType,
            name="reaction_target_type",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False
    )
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)

    emoji: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "target_type", "target_id", "emoji", name="uq_user_target_emoji"),
        Index("reactions_target", "target_type", "target_id"),
    )
