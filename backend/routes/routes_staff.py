"""
Module: backend/routes/routes_staff.py
Unified comment style: module docstring + minimal inline notes.
"""
from __future__ import annotations
from flask import Blueprint, request

from utils.db import get_session
from utils.authz import current_username, require_role
from utils.response_helpers import ok, json_body, int_field
from services.staff_service import StaffService

bp = Blueprint("staff", __name__, url_prefix="/api/staff")

STAFF_ROLES = ("staff", "instructor", "admin")


def _ts(dt):
    return dt.isoformat() if dt else None


def _escalation_dict(e) -> dict:
    return {
        "id": e.id,
        "staff": e.staff.username,
        "staff_name": e.staff.display_name,
        "student": e.student.username,
        "student_name": e.student.display_name,
        "issue_type": e.issue_type,
        "description": e.description,
        "priority": e.priority,
        "status": e.status,
        "created_at": _ts(e.created_at),
        "resolved_at": _ts(e.resolved_at),
        "resolved_by": e.resolved_by_user.username if e.resolved_by_user else None,
    }


@bp.get("/content")
@require_role(*STAFF_ROLES)
def content_overview():
    student = (request.args.get("student") or "").strip()
    with get_session() as s:
        if student:
            items = StaffService.student_content_history(s, student)
        else:
            items = StaffService.content_overview(s)
        return ok(items=items)


@bp.get("/metrics")
@require_role(*STAFF_ROLES)
def activity_metrics():
    with get_session() as s:
        return ok(items=StaffService.activity_metrics(s))


@bp.post("/moderation")
@require_role(*STAFF_ROLES)
def log_moderation():
    data = json_body()
    with get_session() as s:
        entry = StaffService.log_moderation(
            s,
            current_username(),
            data.get("content_type") or "",
            int_field(data, "content_id"),
            data.get("action") or "",
            reason=data.get("reason"),
            original_content=data.get("original_content"),
            modified_content=data.get("modified_content"),
        )
        return ok(201, id=entry.id)


@bp.get("/moderation/<content_type>/<int:content_id>")
@require_role(*STAFF_ROLES)
def moderation_history(content_type: str, content_id: int):
    with get_session() as s:
        rows = StaffService.moderation_history(s, content_type, content_id)
        return ok(items=[{
            "id": m.id,
            "staff": m.staff.username,
            "action": m.action,
            "reason": m.reason,
            "original_content": m.original_content,
            "modified_content": m.modified_content,
            "created_at": _ts(m.created_at),
        } for m in rows])


@bp.get("/escalations")
@require_role(*STAFF_ROLES)
def open_escalations():
    with get_session() as s:
        return ok(items=[_escalation_dict(e) for e in StaffService.list_open_escalations(s)])


@bp.post("/escalations")
@require_role("staff")
def escalate():
    data = json_body()
    with get_session() as s:
        esc = StaffService.escalate(
            s,
            current_username(),
            data.get("student") or "",
            data.get("issue_type") or "",
            data.get("description") or "",
            priority=data.get("priority") or "MEDIUM",
        )
        return ok(201, escalation=_escalation_dict(esc))


@bp.post("/escalations/<int:eid>/status")
@require_role("instructor", "admin")
def update_escalation(eid: int):
    data = json_body()
    with get_session() as s:
        esc = StaffService.update_escalation(s, eid, data.get("status") or "", current_username())
        return ok(escalation=_escalation_dict(esc))


@bp.get("/discussions")
@require_role(*STAFF_ROLES)
def list_discussions():
    with get_session() as s:
        return ok(items=[{
            "id": d.id,
            "staff": d.staff.username,
            "staff_name": d.staff.display_name,
            "title": d.title,
            "content": d.content,
            "created_at": _ts(d.created_at),
        } for d in StaffService.list_discussions(s)])


@bp.post("/discussions")
@require_role(*STAFF_ROLES)
def post_discussion():
    data = json_body()
    with get_session() as s:
        post = StaffService.post_discussion(s, current_username(), data.get("title") or "", data.get("content") or "")
        return ok(201, id=post.id)
