"""
行政請求服務 - 授課教師提出、管理員關閉、以新列重新開啟
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import AdminRequest, AdminRequestStatus
from services.identity_service import IdentityService
from utils.errors import Conflict, NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def admin_request_to_dict(req: AdminRequest) -> Dict[str, Any]:
    return {
        "id": req.id,
        "instructor": req.instructor.username,
        "description": req.description,
        "status": req.status,
        "created_at": req.created_at.isoformat() if req.created_at else None,
        "closed_at": req.closed_at.isoformat() if req.closed_at else None,
        "closed_by": req.closed_by_user.username if req.closed_by_user else None,
        "original_request_id": req.original_request_id,
    }


class AdminRequestService:

    @staticmethod
    def create(session: Session, instructor: str, description: str) -> int:
        if not (description or "").strip():
            raise ValidationFailed("請求內容不能為空")
        user = IdentityService.get_user(session, instructor)
        req = AdminRequest(
            instructor_id=user.id,
            description=description.strip(),
            status=AdminRequestStatus.OPEN.value,
        )
        session.add(req)
        session.commit()
        logger.info("admin request created: id=%s by %s", req.id, instructor)
        return req.id

    @staticmethod
    def get(session: Session, request_id: int) -> AdminRequest:
        req = session.get(AdminRequest, request_id)
        if not req:
            raise NotFound("行政請求不存在", details={"request_id": request_id})
        return req

    @staticmethod
    def close(session: Session, request_id: int, closed_by: str) -> AdminRequest:
        closer = IdentityService.get_user(session, closed_by)
        req = session.get(AdminRequest, request_id, with_for_update=True)
        if not req:
            raise NotFound("行政請求不存在", details={"request_id": request_id})
        if req.status == AdminRequestStatus.CLOSED.value:
            raise Conflict("行政請求已關閉", details={"request_id": request_id})
        req.status = AdminRequestStatus.CLOSED.value
        req.closed_at = datetime.now(timezone.utc)
        req.closed_by = closer.id
        session.commit()
        logger.info("admin request %s closed by %s", request_id, closed_by)
        return req

    @staticmethod
    def reopen(session: Session, original_id: int, new_description: str) -> int:
        """
        以新列重新開啟已關閉的請求：複製原教師，狀態 REOPENED，
        original_request_id 指向原請求；原請求本身不變。
        """
        if not (new_description or "").strip():
            raise ValidationFailed("請求內容不能為空")
        original = session.get(AdminRequest, original_id, with_for_update=True)
        if not original:
            raise NotFound("原行政請求不存在", details={"request_id": original_id})
        if original.status != AdminRequestStatus.CLOSED.value:
            raise Conflict("只有已關閉的請求可以重新開啟", details={"request_id": original_id, "status": original.status})

        req = AdminRequest(
            instructor_id=original.instructor_id,
            description=new_description.strip(),
            status=AdminRequestStatus.REOPENED.value,
            original_request_id=original.id,
        )
        session.add(req)
        session.commit()
        logger.info("admin request %s reopened as %s", original_id, req.id)
        return req.id

    @staticmethod
    def list_all(session: Session) -> List[AdminRequest]:
        return list(session.scalars(
            select(AdminRequest).order_by(AdminRequest.created_at.desc(), AdminRequest.id.desc())
        ))

    @staticmethod
    def lineage(session: Session, request_id: int) -> List[AdminRequest]:
        """沿 original_request_id 回溯，回傳由最早請求到 request_id 的串鏈"""
        chain: List[AdminRequest] = []
        seen: set[int] = set()
        current = AdminRequestService.get(session, request_id)
        while current is not None and current.id not in seen:
            seen.add(current.id)
            chain.append(current)
            current = current.original_request
        chain.reverse()
        return chain
