"""
Workflow models - 審閱者角色申請與行政請求
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import TYPE_CHECKING
import enum

from sqlalchemy import Integer, String, Text, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from utils.db import Base

if TYPE_CHECKING:
    from models.base import User


class RoleRequestStatus(str, enum.Enum):
    """角色申請狀態機：PENDING -> APPROVED / REJECTED（終態）"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AdminRequestStatus(str, enum.Enum):
    """行政請求狀態"""
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    REOPENED = "REOPENED"     # 以新列重新開啟，指向原請求


class RoleRequest(Base):
    __tablename__ = "role_requests"
    __table_args__ = (
        # 每位學生最多一筆待審申請
        Index(
            "uq_role_requests_one_pending",
            "student_id",
            unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RoleRequestStatus.PENDING.value)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    student: Mapped["User"] = relationship("User", foreign_keys=[student_id], back_populates="role_requests")
    reviewed_by_user: Mapped["User | None"] = relationship("User", foreign_keys=[reviewed_by])

    @property
    def is_terminal(self) -> bool:
        return self.status != RoleRequestStatus.PENDING.value


class AdminRequest(Base):
    __tablename__ = "admin_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    instructor_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=AdminRequestStatus.OPEN.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    original_request_id: Mapped[int | None] = mapped_column(
        ForeignKey("admin_requests.id", ondelete="SET NULL"), nullable=True, index=True
    )

    instructor: Mapped["User"] = relationship("User", foreign_keys=[instructor_id], back_populates="admin_requests")
    closed_by_user: Mapped["User | None"] = relationship("User", foreign_keys=[closed_by])
    original_request: Mapped["AdminRequest | None"] = relationship("AdminRequest", remote_side=[id])
