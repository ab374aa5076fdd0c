"""
Module: backend/utils/errors.py
Unified comment style: module docstring + minimal inline notes.

服務層錯誤型別：NotFound / Conflict / ValidationFailed / StoreFailure
路由層依 http_status 與 code 轉成統一的錯誤回應
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """服務層可預期錯誤的基底類別"""

    code = "SERVICE_ERROR"
    http_status = 400
    hint: Optional[str] = None

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if hint is not None:
            self.hint = hint

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "hint": self.hint,
            "details": self.details,
        }


class NotFound(ServiceError):
    code = "NOT_FOUND"
    http_status = 404


class Conflict(ServiceError):
    code = "CONFLICT"
    http_status = 409


class ValidationFailed(ServiceError):
    code = "VALIDATION_FAILED"
    http_status = 422


class StoreFailure(ServiceError):
    code = "STORE_FAILURE"
    http_status = 503
    hint = "資料庫暫時無法使用，請稍後再試"
