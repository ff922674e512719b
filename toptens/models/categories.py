from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, TEXT
from typing import Optional

from toptens.database import Base


class CategoryModel(Base):
    __tablename__ = "categories"
    id : Mapped[int] = mapped_column(Integer, primary_key=True)
    name : Mapped[str] = mapped_column(String(50), nullable=False)
    slug : Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    description : Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    rankings : Mapped[list["RankingModel"]] = relationship(back_populates="category")
