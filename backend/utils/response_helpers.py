"""
回應輔助函數
提供統一的 API 回應格式
"""
from flask import g, jsonify, request
from typing import Any, Dict, Optional

from utils.errors import ServiceError, ValidationFailed


def ok(status_code: int = 200, **data: Any) -> tuple:
    """成功回應：{"ok": true, ...}"""
    return jsonify({"ok": True, **data}), status_code


def error(code: str, http: int, message: str, hint: Optional[str] = None, details: Any = None) -> tuple:
    return jsonify({
        "ok": False,
        "error": {"code": code, "message": message, "hint": hint, "details": details},
        "trace": {"request_id": g.get("request_id"), "ts": g.get("request_ts")},
    }), http


def service_error_response(e: ServiceError) -> tuple:
    body = e.to_dict()
    return error(body["code"], e.http_status, body["message"], body["hint"], body["details"])


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationFailed("請求內容必須是 JSON 物件")
    return data


def int_field(data: Dict[str, Any], name: str, required: bool = True) -> Optional[int]:
    value = data.get(name)
    if value is None:
        if required:
            raise ValidationFailed(f"缺少欄位 {name}", details={"field": name})
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationFailed(f"{name} 必須是整數", details={"field": name})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{name} 必須是整數", details={"field": name})
