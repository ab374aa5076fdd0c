"""
Review service - 問題／回答評論
每則評論恰好指向一個目標（問題或回答），另一欄位明確為 NULL
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import Question, Answer, Review
from services.identity_service import IdentityService
from utils.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def review_to_dict(r: Review) -> Dict[str, Any]:
    return {
        "id": r.id,
        "text": r.text,
        "reviewer": r.reviewer.username,
        "question_id": r.question_id,
        "answer_id": r.answer_id,
        "target_type": r.target_type,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


class ReviewService:
    """評論服務類（不做作者權限檢查，由 API 層負責）"""

    @staticmethod
    def create(
        session: Session,
        reviewer: str,
        text: str,
        question_id: Optional[int] = None,
        answer_id: Optional[int] = None,
    ) -> Review:
        if (question_id is None) == (answer_id is None):
            raise ValidationFailed(
                "評論必須恰好指定問題或回答其中之一",
                details={"question_id": question_id, "answer_id": answer_id},
            )
        if not (text or "").strip():
            raise ValidationFailed("評論內容不能為空")

        if question_id is not None:
            if session.get(Question, question_id) is None:
                raise NotFound("問題不存在", details={"question_id": question_id})
        elif session.get(Answer, answer_id) is None:
            raise NotFound("回答不存在", details={"answer_id": answer_id})

        user = IdentityService.get_user(session, reviewer)
        review = Review(
            text=text.strip(),
            reviewer_id=user.id,
            question_id=question_id,
            answer_id=answer_id,
        )
        session.add(review)
        session.commit()
        logger.info("review created: id=%s by %s target=%s", review.id, reviewer, review.target_type)
        return review

    @staticmethod
    def review_question(session: Session, question_id: int, reviewer: str, text: str) -> Review:
        return ReviewService.create(session, reviewer, text, question_id=question_id)

    @staticmethod
    def review_answer(session: Session, answer_id: int, reviewer: str, text: str) -> Review:
        return ReviewService.create(session, reviewer, text, answer_id=answer_id)

    @staticmethod
    def get(session: Session, review_id: int) -> Review:
        review = session.get(Review, review_id)
        if not review:
            raise NotFound("評論不存在", details={"review_id": review_id})
        return review

    @staticmethod
    def list_for_question(session: Session, question_id: int) -> List[Review]:
        return list(session.scalars(
            select(Review).where(Review.question_id == question_id).order_by(Review.id)
        ))

    @staticmethod
    def list_for_answer(session: Session, answer_id: int) -> List[Review]:
        return list(session.scalars(
            select(Review).where(Review.answer_id == answer_id).order_by(Review.id)
        ))

    @staticmethod
    def list_by_reviewer(session: Session, reviewer: str) -> List[Review]:
        user = IdentityService.find_user(session, reviewer)
        if not user:
            return []
        return list(session.scalars(
            select(Review).where(Review.reviewer_id == user.id).order_by(Review.id)
        ))

    @staticmethod
    def update(session: Session, review_id: int, text: str) -> Review:
        if not (text or "").strip():
            raise ValidationFailed("評論內容不能為空")
        review = session.get(Review, review_id, with_for_update=True)
        if not review:
            raise NotFound("評論不存在", details={"review_id": review_id})
        review.text = text.strip()
        session.commit()
        return review

    @staticmethod
    def delete(session: Session, review_id: int) -> None:
        review = session.get(Review, review_id)
        if not review:
            raise NotFound("評論不存在", details={"review_id": review_id})
        session.delete(review)
        session.commit()
        logger.info("review deleted: id=%s", review_id)
