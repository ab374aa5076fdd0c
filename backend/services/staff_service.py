"""
Staff tools service - 助教工具
內容總覽、學生活動統計、審核日誌、升級通報與內部討論
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, distinct, and_
from sqlalchemy.orm import Session

from models import (
    Question, Answer, User, UserRole, UserRoleGrant, ModerationLog,
    StaffEscalation, StaffDiscussion, EscalationPriority, EscalationStatus,
)
from services.identity_service import IdentityService
from utils.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)

CONTENT_TYPES = {"question", "answer", "review"}


class StaffService:
    """助教工具服務類"""

    # ---- 審核日誌 ----

    @staticmethod
    def log_moderation(
        session: Session,
        staff: str,
        content_type: str,
        content_id: int,
        action: str,
        reason: Optional[str] = None,
        original_content: Optional[str] = None,
        modified_content: Optional[str] = None,
    ) -> ModerationLog:
        content_type = (content_type or "").strip().lower()
        if content_type not in CONTENT_TYPES:
            raise ValidationFailed("未知的內容類型", details={"content_type": content_type, "allowed": sorted(CONTENT_TYPES)})
        if not (action or "").strip():
            raise ValidationFailed("action 不能為空")
        user = IdentityService.get_user(session, staff)
        entry = ModerationLog(
            staff_id=user.id,
            content_type=content_type,
            content_id=int(content_id),
            action=action.strip().lower(),
            reason=reason,
            original_content=original_content,
            modified_content=modified_content,
        )
        session.add(entry)
        session.commit()
        logger.info("moderation logged: %s %s#%s by %s", entry.action, content_type, content_id, staff)
        return entry

    @staticmethod
    def moderation_history(session: Session, content_type: str, content_id: int) -> List[ModerationLog]:
        return list(session.scalars(
            select(ModerationLog)
            .where(ModerationLog.content_type == (content_type or "").lower(), ModerationLog.content_id == content_id)
            .order_by(ModerationLog.created_at.desc(), ModerationLog.id.desc())
        ))

    # ---- 內容總覽與統計 ----

    @staticmethod
    def content_overview(session: Session) -> List[Dict[str, Any]]:
        """所有根問題與回答，標上 QUESTION / ANSWER"""
        items: List[Dict[str, Any]] = []
        for q in session.scalars(select(Question).where(Question.parent_id.is_(None)).order_by(Question.id)):
            items.append({
                "content_type": "QUESTION",
                "id": q.id,
                "title": q.title,
                "text": q.text,
                "author": q.author.username,
                "author_name": q.author.display_name,
                "resolved": q.resolved,
            })
        for a in session.scalars(select(Answer).order_by(Answer.id)):
            items.append({
                "content_type": "ANSWER",
                "id": a.id,
                "title": a.question.title,
                "text": a.text,
                "author": a.author.username,
                "author_name": a.author.display_name,
                "resolved": a.question.resolved,
                "resolves": a.resolves,
            })
        return items

    @staticmethod
    def student_content_history(session: Session, student: str) -> List[Dict[str, Any]]:
        user = IdentityService.get_user(session, student)
        return [item for item in StaffService.content_overview(session) if item["author"] == user.username]

    @staticmethod
    def activity_metrics(session: Session) -> List[Dict[str, Any]]:
        """每位學生的根問題數與回答數"""
        q_count = func.count(distinct(Question.id))
        a_count = func.count(distinct(Answer.id))
        stmt = (
            select(User.username, User.display_name, q_count.label("question_count"), a_count.label("answer_count"))
            .join(UserRoleGrant, and_(UserRoleGrant.user_id == User.id, UserRoleGrant.role == UserRole.student.value))
            .outerjoin(Question, and_(Question.author_id == User.id, Question.parent_id.is_(None)))
            .outerjoin(Answer, Answer.author_id == User.id)
            .group_by(User.id, User.username, User.display_name)
            .order_by(q_count.desc(), a_count.desc(), User.username.asc())
        )
        return [
            {
                "username": row.username,
                "name": row.display_name,
                "question_count": int(row.question_count),
                "answer_count": int(row.answer_count),
            }
            for row in session.execute(stmt)
        ]

    # ---- 升級通報 ----

    @staticmethod
    def escalate(
        session: Session,
        staff: str,
        student: str,
        issue_type: str,
        description: str,
        priority: str = EscalationPriority.MEDIUM.value,
    ) -> StaffEscalation:
        priority = (priority or EscalationPriority.MEDIUM.value).upper()
        if priority not in {p.value for p in EscalationPriority}:
            raise ValidationFailed("未知的優先級", details={"priority": priority})
        if not (issue_type or "").strip() or not (description or "").strip():
            raise ValidationFailed("問題類型與描述不能為空")
        staff_user = IdentityService.get_user(session, staff)
        student_user = IdentityService.get_user(session, student)
        esc = StaffEscalation(
            staff_id=staff_user.id,
            student_id=student_user.id,
            issue_type=issue_type.strip(),
            description=description.strip(),
            priority=priority,
            status=EscalationStatus.OPEN.value,
        )
        session.add(esc)
        session.commit()
        logger.info("escalation created: id=%s staff=%s student=%s priority=%s", esc.id, staff, student, priority)
        return esc

    @staticmethod
    def list_open_escalations(session: Session) -> List[StaffEscalation]:
        return list(session.scalars(
            select(StaffEscalation)
            .where(StaffEscalation.status == EscalationStatus.OPEN.value)
            .order_by(StaffEscalation.created_at.desc(), StaffEscalation.id.desc())
        ))

    @staticmethod
    def update_escalation(session: Session, escalation_id: int, status: str, resolved_by: str) -> StaffEscalation:
        status = (status or "").upper()
        if status not in {s.value for s in EscalationStatus}:
            raise ValidationFailed("未知的狀態", details={"status": status})
        resolver = IdentityService.get_user(session, resolved_by)
        esc = session.get(StaffEscalation, escalation_id, with_for_update=True)
        if not esc:
            raise NotFound("通報不存在", details={"escalation_id": escalation_id})
        esc.status = status
        esc.resolved_by = resolver.id
        esc.resolved_at = datetime.now(timezone.utc)
        session.commit()
        logger.info("escalation %s -> %s by %s", escalation_id, status, resolved_by)
        return esc

    # ---- 內部討論 ----

    @staticmethod
    def post_discussion(session: Session, staff: str, title: str, content: str) -> StaffDiscussion:
        if not (title or "").strip() or not (content or "").strip():
            raise ValidationFailed("標題與內容不能為空")
        user = IdentityService.get_user(session, staff)
        post = StaffDiscussion(staff_id=user.id, title=title.strip(), content=content.strip())
        session.add(post)
        session.commit()
        return post

    @staticmethod
    def list_discussions(session: Session) -> List[StaffDiscussion]:
        return list(session.scalars(
            select(StaffDiscussion).order_by(StaffDiscussion.created_at.desc(), StaffDiscussion.id.desc())
        ))
