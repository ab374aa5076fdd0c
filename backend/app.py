"""
Module: backend/app.py
Unified comment style: module docstring + minimal inline notes.
"""
from __future__ import annotations
import logging
import os
import uuid
from datetime import datetime, timedelta, timezone

from dotenv import load_dotenv, find_dotenv

_dotenv_path = os.environ.get("DOTENV_PATH", "")
if _dotenv_path and os.path.exists(_dotenv_path):
    load_dotenv(_dotenv_path)
else:
    load_dotenv(find_dotenv(usecwd=True))

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException

from utils.config_handler import load_config
from utils.db import init_engine_session, get_db_health
from utils.errors import ServiceError
from utils.response_helpers import error, service_error_response
from routes.routes_auth import bp as auth_bp
from routes.routes_admin_members import bp as admin_members_bp
from routes.routes_questions import bp as questions_bp
from routes.routes_reviews import bp as reviews_bp
from routes.routes_trust import bp as trust_bp
from routes.routes_scorecards import bp as scorecards_bp
from routes.routes_role_requests import bp as role_requests_bp
from routes.routes_admin_requests import bp as admin_requests_bp
from routes.routes_staff import bp as staff_bp

APP_BUILD_VERSION = os.getenv("APP_BUILD_VERSION", "courseforum-v1.0.0")

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | %(message)s'


def _setup_logging(app: Flask) -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not any(getattr(h, "_courseforum", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._courseforum = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level)
    app.logger.setLevel(level)


def create_app() -> Flask:
    app = Flask(__name__)
    _setup_logging(app)

    app.config["JSON_AS_ASCII"] = False
    app.json.ensure_ascii = False  # type: ignore[attr-defined]
    app.config["PROPAGATE_EXCEPTIONS"] = False

    secret_key = os.getenv("SECRET_KEY")
    if not secret_key or secret_key == "dev":
        if os.getenv("FLASK_ENV") == "production":
            raise ValueError("生產環境必須設定 SECRET_KEY 環境變數")
        secret_key = "dev-only-key-not-for-production"
    app.config["SECRET_KEY"] = secret_key

    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "devkey")
    jwt_expires_hours = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "168"))
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(hours=jwt_expires_hours)
    jwt = JWTManager(app)

    init_engine_session()
    cfg = load_config()
    app.logger.info("CourseForum %s starting (mode=%s)", APP_BUILD_VERSION, cfg.get("mode"))

    @jwt.unauthorized_loader
    def _jwt_missing(reason: str):
        return jsonify({"ok": False, "error": {"code": "JWT_MISSING", "message": "缺少授權資訊", "hint": reason, "details": None}}), 401

    @jwt.invalid_token_loader
    def _jwt_invalid(reason: str):
        return jsonify({"ok": False, "error": {"code": "JWT_INVALID", "message": "無效的憑證", "hint": reason, "details": None}}), 401

    @jwt.expired_token_loader
    def _jwt_expired(h, p):
        return jsonify({"ok": False, "error": {"code": "JWT_EXPIRED", "message": "憑證已過期", "hint": None, "details": None}}), 401

    default_http_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    allowed_origins = (
        [o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",") if o.strip()]
        if os.getenv("CORS_ALLOWED_ORIGINS") else list(default_http_origins)
    )
    CORS(app, resources={r"/api/*": {"origins": allowed_origins}})

    @app.before_request
    def add_req_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        g.request_ts = datetime.now(timezone.utc).isoformat()

    @app.after_request
    def add_req_header(resp):
        rid = g.get("request_id")
        if rid:
            resp.headers["X-Request-ID"] = rid
        return resp

    @app.get("/api/healthz")
    def healthz():
        db = get_db_health()
        return jsonify({"ok": db["ok"], "version": APP_BUILD_VERSION, "db": db}), (200 if db["ok"] else 503)

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_members_bp)
    app.register_blueprint(questions_bp)
    app.register_blueprint(reviews_bp)
    app.register_blueprint(trust_bp)
    app.register_blueprint(scorecards_bp)
    app.register_blueprint(role_requests_bp)
    app.register_blueprint(admin_requests_bp)
    app.register_blueprint(staff_bp)

    @app.errorhandler(ServiceError)
    def handle_service_error(e: ServiceError):
        if e.http_status >= 500:
            app.logger.error("Service failure: %s (%s)", e.message, e.code)
        else:
            app.logger.info("%s: %s", e.code, e.message)
        return service_error_response(e)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        app.logger.info(f"HTTP {e.code}: {e.description}")  # HTTP 錯誤記錄但不需要 traceback
        return error(f"HTTP-{e.code}", e.code or 500, e.description or "HTTP錯誤", "檢查請求參數與權限")

    @app.errorhandler(Exception)
    def handle_any(e: Exception):  # noqa: F841
        app.logger.exception("Unhandled exception")  # 輸出完整 traceback
        return error(
            "INTERNAL",
            500,
            str(e),
            "請稍後再試或聯繫系統管理員",
            {"error_type": type(e).__name__},
        )

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
