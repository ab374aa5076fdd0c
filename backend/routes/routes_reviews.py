"""
Module: backend/routes/routes_reviews.py
Unified comment style: module docstring + minimal inline notes.
"""
from __future__ import annotations
from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from utils.db import get_session
from utils.authz import current_username, has_any_role
from utils.errors import ValidationFailed
from utils.response_helpers import ok, error, json_body, int_field
from services.review_service import ReviewService, review_to_dict

bp = Blueprint("reviews", __name__, url_prefix="/api/reviews")

MODERATOR_ROLES = ("staff", "instructor", "admin")


def _owner_or_moderator(reviewer: str) -> bool:
    return reviewer == current_username() or has_any_role(*MODERATOR_ROLES)


@bp.get("")
def list_reviews():
    args = request.args
    with get_session() as s:
        if args.get("question_id"):
            rows = ReviewService.list_for_question(s, int_field(dict(args), "question_id"))
        elif args.get("answer_id"):
            rows = ReviewService.list_for_answer(s, int_field(dict(args), "answer_id"))
        elif args.get("reviewer"):
            rows = ReviewService.list_by_reviewer(s, args["reviewer"])
        else:
            raise ValidationFailed("需指定 question_id、answer_id 或 reviewer")
        return ok(items=[review_to_dict(r) for r in rows])


@bp.post("")
@jwt_required()
def create_review():
    data = json_body()
    with get_session() as s:
        r = ReviewService.create(
            s,
            reviewer=current_username(),
            text=data.get("text") or "",
            question_id=int_field(data, "question_id", required=False),
            answer_id=int_field(data, "answer_id", required=False),
        )
        return ok(201, review=review_to_dict(r))


@bp.patch("/<int:rid>")
@jwt_required()
def update_review(rid: int):
    data = json_body()
    with get_session() as s:
        r = ReviewService.get(s, rid)
        if not _owner_or_moderator(r.reviewer.username):
            return error("FORBIDDEN", 403, "只能修改自己的評論")
        r = ReviewService.update(s, rid, data.get("text") or "")
        return ok(review=review_to_dict(r))


@bp.delete("/<int:rid>")
@jwt_required()
def delete_review(rid: int):
    with get_session() as s:
        r = ReviewService.get(s, rid)
        if not _owner_or_moderator(r.reviewer.username):
            return error("FORBIDDEN", 403, "只能刪除自己的評論")
        ReviewService.delete(s, rid)
        return ok(deleted=rid)
