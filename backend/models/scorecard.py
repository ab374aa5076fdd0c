from __future__ import annotations
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, Float, DateTime, ForeignKey
from utils.db import Base

if TYPE_CHECKING:
    from models.base import User


class ReviewerScorecard(Base):
    __tablename__ = "reviewer_scorecards"
    reviewer_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    helpfulness_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    response_time_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    trust_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, index=True)  # 每次寫入重算
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    reviewer: Mapped["User"] = relationship("User", back_populates="scorecard", lazy="joined")
