"""
Module: backend/routes/routes_role_requests.py
Unified comment style: module docstring + minimal inline notes.
"""
from __future__ import annotations
from flask import Blueprint

from utils.db import get_session
from utils.authz import current_username, require_role
from utils.errors import ValidationFailed
from utils.response_helpers import ok, json_body
from services.role_request_service import RoleRequestService, role_request_to_dict

bp = Blueprint("role_requests", __name__, url_prefix="/api/role-requests")


@bp.post("")
@require_role("student")
def submit_request():
    with get_session() as s:
        req = RoleRequestService.submit_or_raise(s, current_username())
        return ok(201, request=role_request_to_dict(req))


@bp.get("/mine")
@require_role("student")
def my_requests():
    with get_session() as s:
        rows = RoleRequestService.list_for_student(s, current_username())
        return ok(items=[role_request_to_dict(r) for r in rows])


@bp.get("/pending")
@require_role("instructor", "admin")
def pending_requests():
    with get_session() as s:
        return ok(items=[role_request_to_dict(r) for r in RoleRequestService.list_pending(s)])


@bp.post("/<int:rid>/decision")
@require_role("instructor", "admin")
def decide(rid: int):
    data = json_body()
    approve = data.get("approve")
    if not isinstance(approve, bool):
        raise ValidationFailed("approve 必須是布林值", details={"field": "approve"})
    with get_session() as s:
        req = RoleRequestService.decide(s, rid, current_username(), approve)
        return ok(request=role_request_to_dict(req))
