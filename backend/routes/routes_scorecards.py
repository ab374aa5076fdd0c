from __future__ import annotations
from flask import Blueprint

from utils.db import get_session
from utils.authz import require_role
from utils.errors import ValidationFailed
from utils.response_helpers import ok, json_body, int_field
from services.scorecard_service import ScorecardService, scorecard_to_dict

bp = Blueprint("scorecards", __name__, url_prefix="/api/scorecards")


def _number(data: dict, name: str) -> float:
    value = data.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationFailed(f"{name} 必須是數字", details={"field": name})
    return float(value)


@bp.get("")
def list_scorecards():
    with get_session() as s:
        return ok(items=[scorecard_to_dict(c) for c in ScorecardService.list_all(s)])


@bp.get("/<reviewer>")
def get_scorecard(reviewer: str):
    with get_session() as s:
        return ok(scorecard=scorecard_to_dict(ScorecardService.get(s, reviewer)))


@bp.put("/<reviewer>")
@require_role("instructor", "admin")
def upsert_scorecard(reviewer: str):
    data = json_body()
    with get_session() as s:
        card = ScorecardService.upsert(
            s,
            reviewer,
            review_count=int_field(data, "review_count"),
            average_rating=_number(data, "average_rating"),
            helpfulness_score=_number(data, "helpfulness_score"),
            response_time_hours=_number(data, "response_time_hours"),
        )
        return ok(scorecard=scorecard_to_dict(card))
