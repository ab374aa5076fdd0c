"""
Module: backend/routes/routes_questions.py
Unified comment style: module docstring + minimal inline notes.
"""
from __future__ import annotations
from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from utils.db import get_session
from utils.authz import current_username, has_any_role
from utils.errors import ValidationFailed
from utils.response_helpers import ok, error, json_body
from services.question_service import QuestionService, question_to_dict, answer_to_dict

bp = Blueprint("questions", __name__, url_prefix="/api")

# 可修改他人內容的角色
MODERATOR_ROLES = ("staff", "instructor", "admin")


def _flag(data: dict, name: str) -> bool:
    value = data.get(name)
    if not isinstance(value, bool):
        raise ValidationFailed(f"{name} 必須是布林值", details={"field": name})
    return value


def _can_edit(author: str) -> bool:
    return author == current_username() or has_any_role(*MODERATOR_ROLES)


@bp.get("/questions")
def list_questions():
    author = (request.args.get("author") or "").strip()
    with get_session() as s:
        rows = QuestionService.list_by_author(s, author) if author else QuestionService.list_roots(s)
        items = []
        for q in rows:
            item = question_to_dict(q)
            item["answers"] = [answer_to_dict(a) for a in q.answers]
            items.append(item)
        return ok(items=items)


@bp.post("/questions")
@jwt_required()
def ask_question():
    data = json_body()
    with get_session() as s:
        qid = QuestionService.ask(s, current_username(), data.get("title") or "", data.get("text") or "")
        return ok(201, id=qid)


@bp.get("/questions/<int:qid>")
def get_question(qid: int):
    with get_session() as s:
        return ok(question=QuestionService.render_thread(s, qid))


@bp.patch("/questions/<int:qid>")
@jwt_required()
def update_question(qid: int):
    data = json_body()
    with get_session() as s:
        q = QuestionService.get(s, qid)
        if not _can_edit(q.author.username):
            return error("FORBIDDEN", 403, "只能修改自己的問題")
        QuestionService.update(s, qid, data.get("title") or "", data.get("text") or "")
        return ok(question=question_to_dict(q))


@bp.post("/questions/<int:qid>/clarifications")
@jwt_required()
def clarify_question(qid: int):
    data = json_body()
    with get_session() as s:
        cid = QuestionService.clarify(s, qid, current_username(), data.get("title") or "", data.get("text") or "")
        return ok(201, id=cid)


@bp.get("/questions/<int:qid>/clarifications")
def list_clarifications(qid: int):
    with get_session() as s:
        return ok(items=[question_to_dict(c) for c in QuestionService.list_clarifications(s, qid)])


@bp.post("/questions/<int:qid>/resolved")
@jwt_required()
def set_resolved(qid: int):
    resolved = _flag(json_body(), "resolved")
    with get_session() as s:
        q = QuestionService.get(s, qid)
        if not _can_edit(q.author.username):
            return error("FORBIDDEN", 403, "只有提問者可以變更解決狀態")
        q = QuestionService.set_resolved(s, qid, resolved)
        return ok(question=question_to_dict(q))


@bp.get("/questions/<int:qid>/answers")
def list_answers(qid: int):
    with get_session() as s:
        return ok(items=[answer_to_dict(a) for a in QuestionService.list_answers(s, qid)])


@bp.post("/questions/<int:qid>/answers")
@jwt_required()
def post_answer(qid: int):
    data = json_body()
    with get_session() as s:
        aid = QuestionService.answer(s, qid, current_username(), data.get("text") or "")
        return ok(201, id=aid)


@bp.patch("/answers/<int:aid>")
@jwt_required()
def update_answer(aid: int):
    data = json_body()
    with get_session() as s:
        a = QuestionService.get_answer(s, aid)
        if not _can_edit(a.author.username):
            return error("FORBIDDEN", 403, "只能修改自己的回答")
        a = QuestionService.update_answer(s, aid, data.get("text") or "")
        return ok(answer=answer_to_dict(a))


@bp.post("/answers/<int:aid>/resolves")
@jwt_required()
def set_answer_resolves(aid: int):
    resolves = _flag(json_body(), "resolves")
    with get_session() as s:
        a = QuestionService.get_answer(s, aid)
        # 由提問者標記哪些回答解決了問題
        if not _can_edit(a.question.author.username):
            return error("FORBIDDEN", 403, "只有提問者可以標記解決的回答")
        a = QuestionService.set_answer_resolves(s, aid, resolves)
        return ok(answer=answer_to_dict(a))
