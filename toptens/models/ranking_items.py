from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, ForeignKey, UniqueConstraint, TEXT, JSON
from typing import Optional

from toptens.database import Base


class RankingItemModel(Base):
    __tablename__ = "ranking_items"

    __table_args__ = (
        UniqueConstraint("ranking_id", "position", name="uq_ranking_item_position"),
    )
    id : Mapped[int] = mapped_column(Integer, primary_key=True)
    ranking_id : Mapped[int] = mapped_column(ForeignKey("rankings.id", ondelete="CASCADE"), nullable=False)
    position : Mapped[int] = mapped_column(Integer, nullable=False)
    title : Mapped[str] = mapped_column(String(200), nullable=False)
    description : Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    image_url : Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # "metadata" is reserved on declarative classes
    extra : Mapped[dict] = mapped_column("metadata", JSON, default=dict, nullable=False)

    ranking : Mapped["RankingModel"] = relationship(back_populates="items")
