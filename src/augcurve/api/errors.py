from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from augcurve.runtime.errors import (
    ALREADY_HATCHED,
    HATCH_EXPIRED,
    HATCH_NOT_EXPIRED,
    INVALID_TX,
    NO_CONTRIBUTION,
    NOT_FUNDING_POOL,
    NOT_HATCHED_YET,
    NOTHING_TO_REFUND,
    REENTRANT_CALL,
    VESTING_NOT_ELAPSED,
    ApplyError,
)

# Rejections caused by the token's phase or timing rather than by the request.
_CONFLICT_CODES = {
    ALREADY_HATCHED,
    NOT_HATCHED_YET,
    HATCH_EXPIRED,
    HATCH_NOT_EXPIRED,
    VESTING_NOT_ELAPSED,
    NOTHING_TO_REFUND,
    REENTRANT_CALL,
}


@dataclass(frozen=True, slots=True)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def forbidden(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(403, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def conflict(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(409, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    @staticmethod
    def from_apply_error(e: ApplyError) -> "ApiError":
        details = e.details if isinstance(e.details, dict) else {}
        if e.code in {NOT_FUNDING_POOL, "forbidden"} or (e.code == INVALID_TX and e.reason == "custody_cannot_sign"):
            return ApiError.forbidden(e.code, e.reason, details)
        if e.code == NO_CONTRIBUTION:
            return ApiError.not_found(e.code, e.reason, details)
        if e.code in _CONFLICT_CODES:
            return ApiError.conflict(e.code, e.reason, details)
        if e.code == "domain_error":
            return ApiError.internal(e.code, e.reason, details)
        return ApiError.bad_request(e.code, e.reason, details)

    def to_json(self) -> Dict[str, Any]:
        return {"ok": False, "error": {"code": self.code, "message": self.message, "details": self.details}}
