from __future__ import annotations
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, ForeignKey, DateTime, UniqueConstraint
from utils.db import Base

if TYPE_CHECKING:
    from models.base import User


class TrustedReviewer(Base):
    """學生 -> 信任審閱者的加權有向邊"""
    __tablename__ = "trusted_reviewers"
    __table_args__ = (
        UniqueConstraint("owner_id", "trusted_id", name="uq_trusted_reviewers_pair"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    trusted_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=3)  # 1..10
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc), nullable=False,
    )

    owner: Mapped["User"] = relationship("User", foreign_keys=[owner_id], back_populates="trusted_edges")
    trusted: Mapped["User"] = relationship("User", foreign_keys=[trusted_id], back_populates="trusted_by_edges", lazy="joined")
