from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Boolean, DateTime, func

from datetime import datetime
from typing import Optional

from toptens.database import Base


class UserModel(Base):
    __tablename__ = "users"
    id : Mapped[int] = mapped_column(Integer, primary_key=True)
    username : Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    display_name : Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    avatar_url : Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email : Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    role : Mapped[str] = mapped_column(String(15), default="user", nullable=False)
    created_at : Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    is_active : Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    rankings : Mapped[list["RankingModel"]] = relationship(back_populates="user")
    comments : Mapped[list["CommentModel"]] = relationship(back_populates="user")
