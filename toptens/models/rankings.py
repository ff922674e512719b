from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Integer, String, Boolean, DateTime, ForeignKey, Index, func, TEXT
)
from datetime import datetime
from typing import Optional

from toptens.database import Base


class RankingModel(Base):
    __tablename__ = "rankings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_comments: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # cached counters, the reaction and comment rows are the source of truth
    view_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    like_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    comment_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"),
        nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("rankings_public_created", "is_public", "created_at"),
    )

    # relationships
    user: Mapped["UserModel"] = relationship(back_populates="rankings")
    category: Mapped["CategoryModel"] = relationship(back_populates="rankings")

    items: Mapped[list["RankingItemModel"]] = relationship(
        back_populates="ranking",
        cascade="all, delete-orphan",
        order_by="RankingItemModel.position",
    )

    comments: Mapped[list["CommentModel"]] = relationship(
        back_populates="ranking",
        cascade="all, delete-orphan",
    )
