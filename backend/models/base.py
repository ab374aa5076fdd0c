# backend/models/base.py
from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, DateTime, ForeignKey
import enum
from typing import TYPE_CHECKING, Iterable
from utils.db import Base

if TYPE_CHECKING:
    from .qa import Question, Answer, Review
    from .trust import TrustedReviewer
    from .workflow import RoleRequest, AdminRequest
    from .scorecard import ReviewerScorecard
    from .staff import StaffEscalation, StaffDiscussion
    from .moderation import ModerationLog

class UserRole(str, enum.Enum):
    student = "student"          # 學生
    reviewer = "reviewer"        # 審閱者（經角色申請核准）
    staff = "staff"              # 助教
    instructor = "instructor"    # 授課教師
    admin = "admin"              # 系統管理員

# 顯示用主要角色的優先序
ROLE_PRIORITY: tuple[UserRole, ...] = (
    UserRole.admin,
    UserRole.instructor,
    UserRole.staff,
    UserRole.reviewer,
    UserRole.student,
)


def primary_role(roles: Iterable[str]) -> str:
    owned = {str(r.value if isinstance(r, UserRole) else r) for r in roles}
    for role in ROLE_PRIORITY:
        if role.value in owned:
            return role.value
    return UserRole.student.value


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    role_grants: Mapped[list["UserRoleGrant"]] = relationship(
        "UserRoleGrant", back_populates="user", cascade="all, delete-orphan", lazy="selectin"
    )

    # 刪除使用者時一併刪除相依資料
    questions: Mapped[list["Question"]] = relationship("Question", back_populates="author", cascade="all, delete-orphan", passive_deletes=True)
    answers: Mapped[list["Answer"]] = relationship("Answer", back_populates="author", cascade="all, delete-orphan", passive_deletes=True)
    reviews: Mapped[list["Review"]] = relationship("Review", back_populates="reviewer", cascade="all, delete-orphan", passive_deletes=True)
    trusted_edges: Mapped[list["TrustedReviewer"]] = relationship(
        "TrustedReviewer", foreign_keys="TrustedReviewer.owner_id", back_populates="owner",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    trusted_by_edges: Mapped[list["TrustedReviewer"]] = relationship(
        "TrustedReviewer", foreign_keys="TrustedReviewer.trusted_id", back_populates="trusted",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    role_requests: Mapped[list["RoleRequest"]] = relationship(
        "RoleRequest", foreign_keys="RoleRequest.student_id", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    scorecard: Mapped["ReviewerScorecard | None"] = relationship(
        "ReviewerScorecard", back_populates="reviewer", cascade="all, delete-orphan", passive_deletes=True, uselist=False
    )
    admin_requests: Mapped[list["AdminRequest"]] = relationship(
        "AdminRequest", foreign_keys="AdminRequest.instructor_id", back_populates="instructor",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    escalations: Mapped[list["StaffEscalation"]] = relationship(
        "StaffEscalation", foreign_keys="StaffEscalation.staff_id", back_populates="staff",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    escalations_about: Mapped[list["StaffEscalation"]] = relationship(
        "StaffEscalation", foreign_keys="StaffEscalation.student_id", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    discussions: Mapped[list["StaffDiscussion"]] = relationship(
        "StaffDiscussion", back_populates="staff", cascade="all, delete-orphan", passive_deletes=True
    )
    moderation_logs: Mapped[list["ModerationLog"]] = relationship(
        "ModerationLog", back_populates="staff", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def roles(self) -> set[str]:
        return {g.role for g in self.role_grants}

    def has_role(self, role: str | UserRole) -> bool:
        wanted = role.value if isinstance(role, UserRole) else role
        return wanted in self.roles

    @property
    def primary_role(self) -> str:
        return primary_role(self.roles)


class UserRoleGrant(Base):
    """使用者角色集合，一列一個角色"""
    __tablename__ = "user_roles"
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role: Mapped[str] = mapped_column(String(16), primary_key=True)

    user: Mapped[User] = relationship("User", back_populates="role_grants")
