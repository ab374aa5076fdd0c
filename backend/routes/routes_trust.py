"""
Module: backend/routes/routes_trust.py
Unified comment style: module docstring + minimal inline notes.
"""
from __future__ import annotations
from flask import Blueprint

from utils.db import get_session
from utils.authz import current_username, require_role
from utils.response_helpers import ok, json_body, int_field
from services.trust_service import TrustService
from routes.routes_auth import user_to_dict

bp = Blueprint("trust", __name__, url_prefix="/api/trust")


@bp.get("")
@require_role("student")
def list_trusted():
    with get_session() as s:
        edges = TrustService.list(s, current_username())
        return ok(items=[{"username": name, "weight": w} for name, w in edges])


@bp.get("/effective")
@require_role("student")
def list_effective():
    with get_session() as s:
        return ok(items=[user_to_dict(u) for u in TrustService.list_effective(s, current_username())])


@bp.get("/<username>")
@require_role("student")
def weight_of(username: str):
    with get_session() as s:
        return ok(username=username, weight=TrustService.weight_of(s, current_username(), username))


@bp.put("/<username>")
@require_role("student")
def upsert_trusted(username: str):
    data = json_body()
    with get_session() as s:
        edge = TrustService.upsert(s, current_username(), username, int_field(data, "weight", required=False))
        return ok(username=username, weight=edge.weight)


@bp.delete("/<username>")
@require_role("student")
def remove_trusted(username: str):
    with get_session() as s:
        TrustService.remove(s, current_username(), username)
        return ok(deleted=username)
