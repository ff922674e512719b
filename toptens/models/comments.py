from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, Boolean, ForeignKey, Index, TEXT, DateTime, func

from toptens.database import Base

from datetime import datetime
from typing import Optional


class CommentModel(Base):
    __tablename__ = "comments"

    __table_args__ = (
        Index("comments_ranking_parent", "ranking_id", "parent_id"),
    )
    id : Mapped[int] = mapped_column(Integer, primary_key=True)
    content : Mapped[str] = mapped_column(TEXT, nullable=False)
    ranking_id : Mapped[int] = mapped_column(Integer, ForeignKey("rankings.id", ondelete="CASCADE"), nullable=False)
    user_id : Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id : Mapped[int | None] = mapped_column(ForeignKey("comments.id"), nullable=True)
    created_at : Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at : Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    is_deleted : Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    like_count : Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    replies : Mapped[list["CommentModel"]] = relationship(back_populates="parent")
    parent : Mapped[Optional["CommentModel"]] = relationship(back_populates="replies", remote_side="CommentModel.id")

    user: Mapped["UserModel"] = relationship(back_populates="comments")
    ranking: Mapped["RankingModel"] = relationship(back_populates="comments")
