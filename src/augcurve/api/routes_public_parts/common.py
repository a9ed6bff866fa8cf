from __future__ import annotations

from typing import Any, Callable, Dict

from fastapi import Request

from augcurve.api.errors import ApiError
from augcurve.runtime.errors import ApplyError
from augcurve.runtime.fixed_point import parse_amount

Json = Dict[str, Any]


def _runtime(request: Request):
    rt = getattr(request.app.state, "runtime", None)
    if rt is None:
        raise ApiError.internal("not_ready", "token runtime not attached to app.state", {})
    return rt


def _executor(request: Request):
    return _runtime(request).executor


def _snapshot(request: Request) -> Json:
    return _executor(request).read_state()


def _amount(v: Any, name: str) -> int:
    try:
        return parse_amount(v, name=name)
    except ApplyError as e:
        raise ApiError.from_apply_error(e)


def _call(fn: Callable[..., Json], *args: Any, **kwargs: Any) -> Json:
    """Run an executor/pool call, mapping domain rejections to ApiError."""
    try:
        out = fn(*args, **kwargs)
    except ApplyError as e:
        raise ApiError.from_apply_error(e)
    return {"ok": True, "result": out}


def _require_dev_assets(request: Request) -> None:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None or not bool(getattr(cfg, "dev_assets", False)):
        raise ApiError.not_found("not_found", "dev asset endpoints are disabled", {})
