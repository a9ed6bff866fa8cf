# src/augcurve/api/structured_logging.py
from __future__ import annotations

import logging
import os
import sys
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from augcurve.runtime.event_log import log_event

Json = Dict[str, Any]

_HANDLER_NAME = "augcurve-jsonl"

# loggers whose level can be set on their own (AUGCURVE_<NAME>_LOG_LEVEL)
_COMPONENT_LOGGERS = {
    "HTTP": "augcurve.http",
    "EXECUTOR": "augcurve.executor",
    "POOL": "augcurve.funding_pool",
}


def _level(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip().upper()
    return int(getattr(logging, raw, default)) if raw else default


def configure_structured_logging() -> None:
    """Send augcurve's JSONL events to stderr, one object per line.

    AUGCURVE_LOG_LEVEL sets the base level (default INFO);
    AUGCURVE_HTTP_LOG_LEVEL, AUGCURVE_EXECUTOR_LOG_LEVEL and
    AUGCURVE_POOL_LOG_LEVEL override it per component. Calling it again only
    re-reads the levels.
    """
    base = _level("AUGCURVE_LOG_LEVEL", logging.INFO)

    root = logging.getLogger()
    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(base)

    for key, logger_name in _COMPONENT_LOGGERS.items():
        logging.getLogger(logger_name).setLevel(_level(f"AUGCURVE_{key}_LOG_LEVEL", base))


def _operation(path: str) -> str:
    """/v1/curve/mint -> curve.mint"""
    parts = [p for p in path.split("/") if p]
    if parts and parts[0] == "v1":
        parts = parts[1:]
    return ".".join(parts[:2]) if parts else ""


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One `http_request` event per request.

    Besides method/path/status/latency the event names the token operation
    (`op`), the ledger position before and after the request (`seq_before`,
    `seq_after`; equal for reads and rejected calls) and, for rejected calls,
    the domain error code the API returned (`error_code`).
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        self._logger = logging.getLogger("augcurve.http")

    @staticmethod
    def _seq(request: Request) -> Optional[int]:
        rt = getattr(request.app.state, "runtime", None)
        return None if rt is None else rt.executor.seq

    async def dispatch(self, request: Request, call_next):
        started = time.monotonic()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        seq_before = self._seq(request)

        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            seq_after = self._seq(request)
            log_event(
                self._logger,
                "http_request",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                op=_operation(request.url.path),
                status=status,
                duration_ms=int((time.monotonic() - started) * 1000),
                seq_before=seq_before,
                seq_after=seq_after,
                committed=seq_before is not None and seq_after != seq_before,
                error_code=getattr(request.state, "error_code", None),
            )
