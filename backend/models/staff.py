"""
Staff models - 助教升級通報與內部討論
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import TYPE_CHECKING
import enum

from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from utils.db import Base

if TYPE_CHECKING:
    from models.base import User


class EscalationPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class EscalationStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"


class StaffEscalation(Base):
    """助教向授課教師提出的學生問題通報"""
    __tablename__ = "staff_escalations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    staff_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    issue_type: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=EscalationPriority.MEDIUM.value)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=EscalationStatus.OPEN.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    staff: Mapped["User"] = relationship("User", foreign_keys=[staff_id], back_populates="escalations")
    student: Mapped["User"] = relationship("User", foreign_keys=[student_id], back_populates="escalations_about")
    resolved_by_user: Mapped["User | None"] = relationship("User", foreign_keys=[resolved_by])


class StaffDiscussion(Base):
    __tablename__ = "staff_discussions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    staff_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_private: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    staff: Mapped["User"] = relationship("User", back_populates="discussions")
