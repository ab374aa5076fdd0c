"""
Trust graph service - 學生的加權信任審閱者
"""
from __future__ import annotations
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from models import TrustedReviewer, User, UserRole
from services.identity_service import IdentityService
from utils.config_handler import trust_weight_range
from utils.db import is_unique_violation
from utils.errors import Conflict, NotFound, ValidationFailed

logger = logging.getLogger(__name__)


class TrustService:
    """信任邊服務類"""

    @staticmethod
    def _edges_query(owner_id: int):
        trusted = aliased(User)
        return (
            select(TrustedReviewer, trusted)
            .join(trusted, TrustedReviewer.trusted_id == trusted.id)
            .where(TrustedReviewer.owner_id == owner_id)
            .order_by(TrustedReviewer.weight.desc(), trusted.username.asc())
        )

    @staticmethod
    def _find_edge(session: Session, owner_id: int, trusted_id: int, lock: bool = False) -> Optional[TrustedReviewer]:
        stmt = select(TrustedReviewer).where(
            TrustedReviewer.owner_id == owner_id,
            TrustedReviewer.trusted_id == trusted_id,
        )
        if lock:
            stmt = stmt.with_for_update()
        return session.scalar(stmt)

    @staticmethod
    def upsert(session: Session, owner: str, trusted_username: str, weight: Optional[int] = None) -> TrustedReviewer:
        """已有邊則覆寫權重，否則新增（未指定權重時使用預設值）"""
        lo, hi, default = trust_weight_range()
        if weight is None:
            weight = default
        if isinstance(weight, bool) or not isinstance(weight, int):
            raise ValidationFailed("權重必須是整數", details={"weight": weight})
        if not lo <= weight <= hi:
            raise ValidationFailed(f"權重必須介於 {lo} 到 {hi}", details={"weight": weight, "min": lo, "max": hi})

        owner_user = IdentityService.get_user(session, owner)
        trusted_user = IdentityService.get_user(session, trusted_username)
        if owner_user.id == trusted_user.id:
            raise ValidationFailed("不能將自己設為信任審閱者")

        edge = TrustService._find_edge(session, owner_user.id, trusted_user.id, lock=True)
        if edge:
            edge.weight = weight
        else:
            edge = TrustedReviewer(owner_id=owner_user.id, trusted_id=trusted_user.id, weight=weight)
            session.add(edge)
        try:
            session.commit()
        except IntegrityError as e:
            # 併發下另一個請求已新增同一條邊
            session.rollback()
            if not is_unique_violation(e, "uq_trusted_reviewers_pair", "trusted_reviewers.owner_id"):
                raise
            raise Conflict("信任關係已被同時更新，請重試") from e
        logger.info("trust edge upserted: %s -> %s weight=%s", owner, trusted_username, weight)
        return edge

    @staticmethod
    def remove(session: Session, owner: str, trusted_username: str) -> None:
        owner_user = IdentityService.get_user(session, owner)
        trusted_user = IdentityService.get_user(session, trusted_username)
        edge = TrustService._find_edge(session, owner_user.id, trusted_user.id)
        if not edge:
            raise NotFound("信任關係不存在", details={"owner": owner, "trusted": trusted_username})
        session.delete(edge)
        session.commit()
        logger.info("trust edge removed: %s -> %s", owner, trusted_username)

    @staticmethod
    def list(session: Session, owner: str) -> List[Tuple[str, int]]:
        """依權重由高到低、同權重依帳號升冪"""
        owner_user = IdentityService.get_user(session, owner)
        rows = session.execute(TrustService._edges_query(owner_user.id)).all()
        return [(u.username, edge.weight) for edge, u in rows]

    @staticmethod
    def list_effective(session: Session, owner: str) -> List[User]:
        """
        與 list 相同排序，但只保留目前仍具 reviewer 角色的使用者。
        失去角色的邊仍保留在資料庫，只是查詢時不顯示。
        """
        owner_user = IdentityService.get_user(session, owner)
        rows = session.execute(TrustService._edges_query(owner_user.id)).all()
        return [u for _edge, u in rows if u.has_role(UserRole.reviewer)]

    @staticmethod
    def weight_of(session: Session, owner: str, trusted_username: str) -> int:
        owner_user = IdentityService.get_user(session, owner)
        trusted_user = IdentityService.get_user(session, trusted_username)
        edge = TrustService._find_edge(session, owner_user.id, trusted_user.id)
        if not edge:
            raise NotFound("信任關係不存在", details={"owner": owner, "trusted": trusted_username})
        return edge.weight
