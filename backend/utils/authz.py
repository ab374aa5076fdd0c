"""
Module: backend/utils/authz.py
Unified comment style: module docstring + minimal inline notes.
"""
import logging
from flask import abort, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from functools import wraps

logger = logging.getLogger(__name__)


def current_username() -> str:
    verify_jwt_in_request()
    return str(get_jwt_identity())


def current_roles() -> set[str]:
    verify_jwt_in_request()
    claims = get_jwt() or {}
    return set(claims.get("roles") or [])


def has_any_role(*roles: str) -> bool:
    return bool(current_roles() & set(roles))


def require_role(*roles: str):
    """JWT 的角色集合需與 roles 有交集（精確比對）"""
    def wrap(fn):
        @wraps(fn)
        def inner(*a, **kw):
            verify_jwt_in_request()
            claims = get_jwt() or {}
            owned = set(claims.get("roles") or [])
            if not owned & set(roles):
                logger.warning(
                    "forbidden: actor=%s roles=%s path=%s method=%s allow=%s",
                    claims.get("sub"), sorted(owned), request.path, request.method, roles,
                )
                abort(403)
            return fn(*a, **kw)
        return inner
    return wrap
