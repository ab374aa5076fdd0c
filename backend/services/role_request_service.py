"""
審閱者角色申請服務
學生提出申請 -> 授課教師／管理員核准或駁回；核准時把 reviewer 加入學生角色集合
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from models import RoleRequest, RoleRequestStatus, User, UserRole
from services.identity_service import IdentityService
from utils.db import is_unique_violation
from utils.errors import Conflict, NotFound

logger = logging.getLogger(__name__)


def role_request_to_dict(req: RoleRequest) -> Dict[str, Any]:
    return {
        "id": req.id,
        "student": req.student.username,
        "student_name": req.student.display_name,
        "status": req.status,
        "requested_at": req.requested_at.isoformat() if req.requested_at else None,
        "reviewed_at": req.reviewed_at.isoformat() if req.reviewed_at else None,
        "reviewed_by": req.reviewed_by_user.username if req.reviewed_by_user else None,
    }


class RoleRequestService:
    """角色申請服務類"""

    @staticmethod
    def _pending_for(session: Session, student_id: int) -> RoleRequest | None:
        return session.scalar(
            select(RoleRequest).where(
                RoleRequest.student_id == student_id,
                RoleRequest.status == RoleRequestStatus.PENDING.value,
            )
        )

    @staticmethod
    def submit_or_raise(session: Session, student: str) -> RoleRequest:
        user = IdentityService.get_user(session, student)
        existing = RoleRequestService._pending_for(session, user.id)
        if existing:
            raise Conflict("已有待審核的角色申請", details={"request_id": existing.id})

        req = RoleRequest(student_id=user.id, status=RoleRequestStatus.PENDING.value)
        session.add(req)
        try:
            session.commit()
        except IntegrityError as e:
            # 部分唯一索引擋下併發的重複申請
            session.rollback()
            if not is_unique_violation(e, "uq_role_requests_one_pending", "role_requests.student_id"):
                raise
            raise Conflict("已有待審核的角色申請") from e
        logger.info("role request submitted: id=%s student=%s", req.id, student)
        return req

    @staticmethod
    def submit(session: Session, student: str) -> bool:
        """已有待審申請時回傳 False，否則新增並回傳 True"""
        try:
            RoleRequestService.submit_or_raise(session, student)
        except Conflict:
            return False
        return True

    @staticmethod
    def decide(session: Session, request_id: int, reviewer: str, approve: bool) -> RoleRequest:
        """
        PENDING -> APPROVED / REJECTED。
        終態請求重複相同決定時不做任何變更；相反決定回 Conflict。
        """
        decided_by = IdentityService.get_user(session, reviewer)
        req = session.scalar(
            select(RoleRequest)
            .where(RoleRequest.id == request_id)
            .with_for_update()
        )
        if not req:
            raise NotFound("角色申請不存在", details={"request_id": request_id})

        target = RoleRequestStatus.APPROVED if approve else RoleRequestStatus.REJECTED
        if req.is_terminal:
            if req.status == target.value:
                return req
            raise Conflict("角色申請已處理", details={"request_id": request_id, "status": req.status})

        req.status = target.value
        req.reviewed_at = datetime.now(timezone.utc)
        req.reviewed_by = decided_by.id
        if approve:
            IdentityService.grant_role(session, req.student, UserRole.reviewer)
        session.commit()
        logger.info("role request %s %s by %s", request_id, req.status, reviewer)
        return req

    @staticmethod
    def status_of(session: Session, request_id: int) -> str:
        req = session.get(RoleRequest, request_id)
        if not req:
            raise NotFound("角色申請不存在", details={"request_id": request_id})
        return req.status

    @staticmethod
    def list_pending(session: Session) -> List[RoleRequest]:
        """待審申請（含學生顯示名稱），依申請時間升冪"""
        return list(session.scalars(
            select(RoleRequest)
            .join(User, RoleRequest.student_id == User.id)
            .where(RoleRequest.status == RoleRequestStatus.PENDING.value)
            .options(joinedload(RoleRequest.student))
            .order_by(RoleRequest.requested_at.asc(), RoleRequest.id.asc())
        ))

    @staticmethod
    def list_for_student(session: Session, student: str) -> List[RoleRequest]:
        user = IdentityService.get_user(session, student)
        return list(session.scalars(
            select(RoleRequest).where(RoleRequest.student_id == user.id).order_by(RoleRequest.id.desc())
        ))
