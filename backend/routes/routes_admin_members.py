"""
Module: backend/routes/routes_admin_members.py
Unified comment style: module docstring + minimal inline notes.
"""
from __future__ import annotations
from flask import Blueprint

from utils.db import get_session
from utils.authz import require_role, current_username
from utils.errors import Conflict, ValidationFailed
from utils.response_helpers import ok, json_body
from services.identity_service import IdentityService
from routes.routes_auth import user_to_dict

bp = Blueprint("admin_members", __name__, url_prefix="/api/admin/users")


@bp.get("")
@require_role("admin", "instructor")
def list_users():
    with get_session() as s:
        return ok(items=[user_to_dict(u) for u in IdentityService.list_users(s)])


@bp.put("/<username>/roles")
@require_role("admin")
def set_roles(username: str):
    data = json_body()
    roles = data.get("roles")
    if not isinstance(roles, list):
        raise ValidationFailed("roles 必須是陣列")
    with get_session() as s:
        u = IdentityService.set_roles(s, username, roles)
        return ok(user=user_to_dict(u))


@bp.delete("/<username>")
@require_role("admin")
def delete_user(username: str):
    if username == current_username():
        raise Conflict("不能刪除自己的帳號")
    with get_session() as s:
        IdentityService.delete_user(s, username)
        return ok(deleted=username)
