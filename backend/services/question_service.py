"""
Question thread service - 問題、澄清與回答的業務邏輯
處理提問、澄清串、解決狀態與回答
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from models import Question, Answer
from services.identity_service import IdentityService
from services.review_service import ReviewService, review_to_dict
from utils.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def _require_text(**fields: str) -> None:
    for name, value in fields.items():
        if not (value or "").strip():
            raise ValidationFailed(f"{name} 不能為空", details={"field": name})


def question_to_dict(q: Question) -> Dict[str, Any]:
    return {
        "id": q.id,
        "parent_id": q.parent_id,
        "author": q.author.username,
        "title": q.title,
        "text": q.text,
        "resolved": q.resolved,
        "created_at": q.created_at.isoformat() if q.created_at else None,
    }


def answer_to_dict(a: Answer) -> Dict[str, Any]:
    return {
        "id": a.id,
        "question_id": a.question_id,
        "author": a.author.username,
        "text": a.text,
        "resolves": a.resolves,
        "created_at": a.created_at.isoformat() if a.created_at else None,
    }


class QuestionService:
    """問題串服務類"""

    @staticmethod
    def ask(session: Session, author: str, title: str, text: str) -> int:
        """建立根問題，回傳 id"""
        _require_text(title=title, text=text)
        user = IdentityService.get_user(session, author)
        q = Question(author_id=user.id, title=title.strip(), text=text.strip(), parent_id=None)
        session.add(q)
        session.commit()
        logger.info("question asked: id=%s by %s", q.id, author)
        return q.id

    @staticmethod
    def clarify(session: Session, parent_id: int, author: str, title: str, text: str) -> int:
        """在既有問題下建立澄清問題"""
        _require_text(title=title, text=text)
        parent = session.get(Question, parent_id)
        if not parent:
            raise NotFound("原問題不存在", details={"question_id": parent_id})
        user = IdentityService.get_user(session, author)
        q = Question(author_id=user.id, title=title.strip(), text=text.strip(), parent_id=parent.id)
        session.add(q)
        session.commit()
        logger.info("clarification asked: id=%s parent=%s by %s", q.id, parent_id, author)
        return q.id

    @staticmethod
    def get(session: Session, question_id: int) -> Question:
        """
        載入問題、回答（含評論）與問題評論，
        並沿著 id 最小的澄清問題遞迴載入，形成單一串鏈而非整棵樹。
        其他澄清問題請用 list_clarifications 取得。
        """
        q = session.scalar(
            select(Question)
            .where(Question.id == question_id)
            .options(
                selectinload(Question.answers).selectinload(Answer.reviews),
                selectinload(Question.reviews),
                selectinload(Question.clarifications),
            )
        )
        if not q:
            raise NotFound("問題不存在", details={"question_id": question_id})
        return q

    @staticmethod
    def render_thread(session: Session, question_id: int) -> Dict[str, Any]:
        """把 get() 的串鏈轉成巢狀 dict，評論由 ReviewService 附上"""
        root = QuestionService.get(session, question_id)

        def _node(q: Question) -> Dict[str, Any]:
            data = question_to_dict(q)
            data["reviews"] = [review_to_dict(r) for r in ReviewService.list_for_question(session, q.id)]
            data["answers"] = []
            for a in q.answers:
                item = answer_to_dict(a)
                item["reviews"] = [review_to_dict(r) for r in ReviewService.list_for_answer(session, a.id)]
                data["answers"].append(item)
            child = q.clarification
            data["clarification"] = _node(child) if child is not None else None
            return data

        return _node(root)

    @staticmethod
    def list_clarifications(session: Session, question_id: int) -> List[Question]:
        """所有直接子澄清問題（依 id 排序）"""
        if session.get(Question, question_id) is None:
            raise NotFound("問題不存在", details={"question_id": question_id})
        return list(session.scalars(
            select(Question).where(Question.parent_id == question_id).order_by(Question.id)
        ))

    @staticmethod
    def list_roots(session: Session) -> List[Question]:
        return list(session.scalars(
            select(Question)
            .where(Question.parent_id.is_(None))
            .options(selectinload(Question.answers), selectinload(Question.author))
            .order_by(Question.id)
        ))

    @staticmethod
    def list_by_author(session: Session, author: str) -> List[Question]:
        user = IdentityService.get_user(session, author)
        return list(session.scalars(
            select(Question)
            .where(Question.author_id == user.id, Question.parent_id.is_(None))
            .options(selectinload(Question.answers))
            .order_by(Question.id.desc())
        ))

    @staticmethod
    def update(session: Session, question_id: int, title: str, text: str) -> bool:
        """就地修改標題與內容；不存在時回傳 False"""
        _require_text(title=title, text=text)
        q = session.get(Question, question_id, with_for_update=True)
        if not q:
            return False
        q.title = title.strip()
        q.text = text.strip()
        session.commit()
        return True

    @staticmethod
    def set_resolved(session: Session, question_id: int, resolved: bool) -> Question:
        # 與回答的 resolves 旗標互不連動
        q = session.get(Question, question_id, with_for_update=True)
        if not q:
            raise NotFound("問題不存在", details={"question_id": question_id})
        q.resolved = bool(resolved)
        session.commit()
        logger.info("question %s resolved=%s", question_id, q.resolved)
        return q

    # ---- 回答 ----

    @staticmethod
    def answer(session: Session, question_id: int, author: str, text: str) -> int:
        _require_text(text=text)
        q = session.get(Question, question_id)
        if not q:
            raise NotFound("問題不存在", details={"question_id": question_id})
        user = IdentityService.get_user(session, author)
        a = Answer(question_id=q.id, author_id=user.id, text=text.strip())
        session.add(a)
        session.commit()
        logger.info("answer posted: id=%s question=%s by %s", a.id, question_id, author)
        return a.id

    @staticmethod
    def get_answer(session: Session, answer_id: int) -> Answer:
        a = session.get(Answer, answer_id)
        if not a:
            raise NotFound("回答不存在", details={"answer_id": answer_id})
        return a

    @staticmethod
    def update_answer(session: Session, answer_id: int, text: str) -> Answer:
        _require_text(text=text)
        a = session.get(Answer, answer_id, with_for_update=True)
        if not a:
            raise NotFound("回答不存在", details={"answer_id": answer_id})
        a.text = text.strip()
        session.commit()
        return a

    @staticmethod
    def list_answers(session: Session, question_id: int) -> List[Answer]:
        if session.get(Question, question_id) is None:
            raise NotFound("問題不存在", details={"question_id": question_id})
        return list(session.scalars(
            select(Answer)
            .where(Answer.question_id == question_id)
            .options(selectinload(Answer.reviews))
            .order_by(Answer.id)
        ))

    @staticmethod
    def set_answer_resolves(session: Session, answer_id: int, resolves: bool) -> Answer:
        """切換單一回答的 resolves；不會清除其他回答，也不會改變問題狀態"""
        a = session.get(Answer, answer_id, with_for_update=True)
        if not a:
            raise NotFound("回答不存在", details={"answer_id": answer_id})
        a.resolves = bool(resolves)
        session.commit()
        return a
