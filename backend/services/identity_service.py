"""
Identity service - 使用者註冊、憑證檢查與角色集合管理
"""
from __future__ import annotations
import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from models import User, UserRole, UserRoleGrant
from utils.db import is_unique_violation
from utils.errors import Conflict, NotFound, ValidationFailed

logger = logging.getLogger(__name__)

VALID_ROLES = frozenset(r.value for r in UserRole)


def normalize_roles(roles: Iterable[str | UserRole]) -> set[str]:
    """驗證並轉成角色字串集合（精確比對，不做子字串判斷）"""
    out: set[str] = set()
    for r in roles:
        value = r.value if isinstance(r, UserRole) else str(r).strip().lower()
        if value not in VALID_ROLES:
            raise ValidationFailed(f"未知的角色：{r}", details={"allowed": sorted(VALID_ROLES)})
        out.add(value)
    return out


class IdentityService:
    """使用者與角色服務類"""

    @staticmethod
    def register(
        session: Session,
        username: str,
        password: str,
        display_name: str = "",
        email: Optional[str] = None,
        roles: Iterable[str | UserRole] = (UserRole.student,),
    ) -> User:
        username = (username or "").strip()
        if not username or not password:
            raise ValidationFailed("帳號與密碼不能為空")
        role_set = normalize_roles(roles)

        if session.scalar(select(User.id).where(User.username == username)) is not None:
            raise Conflict("帳號已存在", details={"username": username})

        user = User(
            username=username,
            password_hash=generate_password_hash(password),
            display_name=(display_name or username).strip(),
            email=(email or "").strip().lower() or None,
        )
        user.role_grants = [UserRoleGrant(role=r) for r in sorted(role_set)]
        session.add(user)
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            if not is_unique_violation(e, "users.username", "users_username_key"):
                raise
            raise Conflict("帳號已存在", details={"username": username}) from e
        logger.info("user registered: %s roles=%s", username, sorted(role_set))
        return user

    @staticmethod
    def check_credentials(session: Session, username: str, secret: str) -> bool:
        user = session.scalar(select(User).where(User.username == (username or "").strip()))
        if not user:
            return False
        return check_password_hash(user.password_hash, secret or "")

    @staticmethod
    def find_user(session: Session, username: str) -> Optional[User]:
        return session.scalar(select(User).where(User.username == username))

    @staticmethod
    def get_user(session: Session, username: str) -> User:
        user = IdentityService.find_user(session, username)
        if not user:
            raise NotFound("使用者不存在", details={"username": username})
        return user

    @staticmethod
    def list_users(session: Session) -> List[User]:
        return list(session.scalars(select(User).order_by(User.username)))

    @staticmethod
    def _count_admins(session: Session) -> int:
        return session.scalar(
            select(func.count()).select_from(UserRoleGrant).where(UserRoleGrant.role == UserRole.admin.value)
        ) or 0

    @staticmethod
    def grant_role(session: Session, user: User, role: str | UserRole) -> bool:
        """
        在目前交易中加入角色，不 commit。
        已擁有時不重複新增，回傳是否有變更。
        """
        (value,) = normalize_roles([role])
        if user.has_role(value):
            return False
        user.role_grants.append(UserRoleGrant(role=value))
        return True

    @staticmethod
    def add_role(session: Session, username: str, role: str | UserRole) -> User:
        user = IdentityService.get_user(session, username)
        if IdentityService.grant_role(session, user, role):
            session.commit()
            logger.info("role added: %s +%s", username, role)
        return user

    @staticmethod
    def remove_role(session: Session, username: str, role: str | UserRole) -> User:
        user = IdentityService.get_user(session, username)
        (value,) = normalize_roles([role])
        if not user.has_role(value):
            return user
        if value == UserRole.admin.value and IdentityService._count_admins(session) <= 1:
            raise Conflict("至少需要保留一位管理員")
        user.role_grants = [g for g in user.role_grants if g.role != value]
        session.commit()
        logger.info("role removed: %s -%s", username, value)
        return user

    @staticmethod
    def set_roles(session: Session, username: str, roles: Iterable[str | UserRole]) -> User:
        user = IdentityService.get_user(session, username)
        wanted = normalize_roles(roles)
        if (
            UserRole.admin.value in user.roles
            and UserRole.admin.value not in wanted
            and IdentityService._count_admins(session) <= 1
        ):
            raise Conflict("至少需要保留一位管理員")
        kept = [g for g in user.role_grants if g.role in wanted]
        existing = {g.role for g in kept}
        user.role_grants = kept + [UserRoleGrant(role=r) for r in sorted(wanted - existing)]
        session.commit()
        logger.info("roles set: %s -> %s", username, sorted(wanted))
        return user

    @staticmethod
    def delete_user(session: Session, username: str) -> None:
        user = IdentityService.get_user(session, username)
        if user.has_role(UserRole.admin) and IdentityService._count_admins(session) <= 1:
            raise Conflict("不可刪除最後一位管理員")
        session.delete(user)
        session.commit()
        logger.info("user deleted: %s", username)
