"""
Q&A models - 問題、澄清、回答與評論
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from utils.db import Base

if TYPE_CHECKING:
    from models.base import User


class Question(Base):
    """問題主表；parent_id 不為空者為澄清問題"""
    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_id: Mapped[int | None] = mapped_column(ForeignKey("questions.id", ondelete="CASCADE"), nullable=True, index=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    author: Mapped["User"] = relationship("User", back_populates="questions")
    parent: Mapped["Question | None"] = relationship("Question", remote_side=[id], back_populates="clarifications")
    clarifications: Mapped[List["Question"]] = relationship(
        "Question", back_populates="parent", cascade="all, delete-orphan", passive_deletes=True, order_by="Question.id"
    )
    answers: Mapped[List["Answer"]] = relationship(
        "Answer", back_populates="question", cascade="all, delete-orphan", passive_deletes=True, order_by="Answer.id"
    )
    reviews: Mapped[List["Review"]] = relationship(
        "Review", back_populates="question", cascade="all, delete-orphan", passive_deletes=True, order_by="Review.id"
    )

    @property
    def is_clarification(self) -> bool:
        return self.parent_id is not None

    @property
    def clarification(self) -> "Question | None":
        """第一個（id 最小的）直接澄清問題"""
        return self.clarifications[0] if self.clarifications else None


class Answer(Base):
    __tablename__ = "answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    # 多個回答可同時標記為解決
    resolves: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    question: Mapped[Question] = relationship("Question", back_populates="answers")
    author: Mapped["User"] = relationship("User", back_populates="answers")
    reviews: Mapped[List["Review"]] = relationship(
        "Review", back_populates="answer", cascade="all, delete-orphan", passive_deletes=True, order_by="Review.id"
    )


class Review(Base):
    """評論，目標恰為問題或回答其中之一"""
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint(
            "(question_id IS NULL) <> (answer_id IS NULL)",
            name="ck_reviews_exactly_one_target",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    reviewer_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id: Mapped[int | None] = mapped_column(ForeignKey("questions.id", ondelete="CASCADE"), nullable=True, index=True)
    answer_id: Mapped[int | None] = mapped_column(ForeignKey("answers.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    reviewer: Mapped["User"] = relationship("User", back_populates="reviews")
    question: Mapped[Question | None] = relationship("Question", back_populates="reviews")
    answer: Mapped[Answer | None] = relationship("Answer", back_populates="reviews")

    @property
    def target_type(self) -> str:
        return "question" if self.question_id is not None else "answer"


Index("idx_questions_roots", Question.parent_id, Question.id)
