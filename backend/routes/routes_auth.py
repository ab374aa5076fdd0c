from flask import Blueprint
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
import logging

from utils.db import get_session
from utils.config_handler import load_config
from utils.errors import ValidationFailed
from utils.response_helpers import ok, error, json_body
from services.identity_service import IdentityService, normalize_roles

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def user_to_dict(u) -> dict:
    return {
        "username": u.username,
        "display_name": u.display_name,
        "email": u.email,
        "roles": sorted(u.roles),
        "primary_role": u.primary_role,
    }


def _issue_token(u) -> str:
    return create_access_token(identity=u.username, additional_claims={"roles": sorted(u.roles)})


@bp.post("/register")
def register():
    data = json_body()
    requested = data.get("roles") or ["student"]
    if not isinstance(requested, list):
        raise ValidationFailed("roles 必須是陣列")
    allowed = set(load_config().get("allow_self_registration_roles") or ["student"])
    role_set = normalize_roles(requested)
    if not role_set <= allowed:
        return error("ROLE_NOT_ALLOWED", 403, "不允許自行註冊此角色", details={"allowed": sorted(allowed)})

    with get_session() as s:
        u = IdentityService.register(
            s,
            username=data.get("username") or "",
            password=data.get("password") or "",
            display_name=data.get("display_name") or "",
            email=data.get("email"),
            roles=role_set,
        )
        return ok(201, user=user_to_dict(u))


@bp.post("/login")
def login():
    data = json_body()
    account = (data.get("username") or "").strip()
    password = data.get("password") or ""

    with get_session() as s:
        if not IdentityService.check_credentials(s, account, password):
            logger.info("login failed: %s", account)
            return error("BAD_CREDENTIALS", 401, "帳號或密碼錯誤")
        u = IdentityService.get_user(s, account)
        return ok(access_token=_issue_token(u), user=user_to_dict(u))


@bp.get("/me")
@jwt_required()
def me():
    with get_session() as s:
        u = IdentityService.get_user(s, str(get_jwt_identity()))
        return ok(user=user_to_dict(u))
