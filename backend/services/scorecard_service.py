"""
Scorecard service - 審閱者成績卡與信任分數
"""
from __future__ import annotations
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import ReviewerScorecard, User
from services.identity_service import IdentityService
from utils.db import is_unique_violation
from utils.errors import Conflict, NotFound, ValidationFailed

logger = logging.getLogger(__name__)

WEIGHT_RATING = 0.4
WEIGHT_HELPFULNESS = 0.3
WEIGHT_RESPONSE = 0.3


def response_factor(response_time_hours: float) -> float:
    # 24 小時內滿分；之後以 48/h 遞減，在 24h 處不連續
    if response_time_hours < 24:
        return 1.0
    return 48.0 / response_time_hours


def compute_trust_score(average_rating: float, helpfulness_score: float, response_time_hours: float) -> float:
    return (
        WEIGHT_RATING * average_rating
        + WEIGHT_HELPFULNESS * helpfulness_score
        + WEIGHT_RESPONSE * response_factor(response_time_hours)
    )


def scorecard_to_dict(card: ReviewerScorecard) -> Dict[str, Any]:
    return {
        "reviewer": card.reviewer.username,
        "review_count": card.review_count,
        "average_rating": card.average_rating,
        "helpfulness_score": card.helpfulness_score,
        "response_time_hours": card.response_time_hours,
        "trust_score": round(card.trust_score, 4),
        "last_updated": card.last_updated.isoformat() if card.last_updated else None,
    }


class ScorecardService:

    @staticmethod
    def upsert(
        session: Session,
        reviewer: str,
        review_count: int,
        average_rating: float,
        helpfulness_score: float,
        response_time_hours: float,
    ) -> ReviewerScorecard:
        """每位審閱者一張成績卡，寫入即重算 trust_score"""
        for name, value in (
            ("average_rating", average_rating),
            ("helpfulness_score", helpfulness_score),
            ("response_time_hours", response_time_hours),
        ):
            # NaN / inf 會讓 trust_score 無法計算
            if not math.isfinite(value):
                raise ValidationFailed(f"{name} 必須是有限數值", details={"field": name})
        if review_count < 0:
            raise ValidationFailed("review_count 不可為負數", details={"review_count": review_count})
        if response_time_hours < 0:
            raise ValidationFailed("response_time_hours 不可為負數", details={"response_time_hours": response_time_hours})

        user = IdentityService.get_user(session, reviewer)
        card = session.get(ReviewerScorecard, user.id, with_for_update=True)
        if card is None:
            card = ReviewerScorecard(reviewer_id=user.id)
            session.add(card)
        card.review_count = int(review_count)
        card.average_rating = float(average_rating)
        card.helpfulness_score = float(helpfulness_score)
        card.response_time_hours = float(response_time_hours)
        card.trust_score = compute_trust_score(card.average_rating, card.helpfulness_score, card.response_time_hours)
        card.last_updated = datetime.now(timezone.utc)
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            if not is_unique_violation(e, "reviewer_scorecards.reviewer_id", "reviewer_scorecards_pkey"):
                raise
            raise Conflict("成績卡已被同時建立，請重試") from e
        logger.info("scorecard upserted: %s trust_score=%.4f", reviewer, card.trust_score)
        return card

    @staticmethod
    def get(session: Session, reviewer: str) -> ReviewerScorecard:
        user = IdentityService.get_user(session, reviewer)
        card = session.get(ReviewerScorecard, user.id)
        if card is None:
            raise NotFound("尚無成績卡", details={"reviewer": reviewer})
        return card

    @staticmethod
    def list_all(session: Session) -> List[ReviewerScorecard]:
        return list(session.scalars(
            select(ReviewerScorecard)
            .join(User, ReviewerScorecard.reviewer_id == User.id)
            .order_by(ReviewerScorecard.trust_score.desc(), User.username.asc())
        ))
