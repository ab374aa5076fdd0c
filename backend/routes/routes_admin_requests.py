"""
Module: backend/routes/routes_admin_requests.py
Unified comment style: module docstring + minimal inline notes.
"""
from __future__ import annotations
from flask import Blueprint

from utils.db import get_session
from utils.authz import current_username, require_role
from utils.response_helpers import ok, json_body
from services.admin_request_service import AdminRequestService, admin_request_to_dict

bp = Blueprint("admin_requests", __name__, url_prefix="/api/admin-requests")


@bp.get("")
@require_role("instructor", "admin")
def list_requests():
    with get_session() as s:
        return ok(items=[admin_request_to_dict(r) for r in AdminRequestService.list_all(s)])


@bp.post("")
@require_role("instructor")
def create_request():
    data = json_body()
    with get_session() as s:
        rid = AdminRequestService.create(s, current_username(), data.get("description") or "")
        return ok(201, id=rid)


@bp.post("/<int:rid>/close")
@require_role("admin")
def close_request(rid: int):
    with get_session() as s:
        req = AdminRequestService.close(s, rid, current_username())
        return ok(request=admin_request_to_dict(req))


@bp.post("/<int:rid>/reopen")
@require_role("instructor", "admin")
def reopen_request(rid: int):
    data = json_body()
    with get_session() as s:
        new_id = AdminRequestService.reopen(s, rid, data.get("description") or "")
        return ok(201, id=new_id)


@bp.get("/<int:rid>/lineage")
@require_role("instructor", "admin")
def lineage(rid: int):
    with get_session() as s:
        return ok(items=[admin_request_to_dict(r) for r in AdminRequestService.lineage(s, rid)])
