# src/augcurve/api/routes_public_parts/state.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from augcurve.api.routes_public_parts.common import _executor, _snapshot
from augcurve.runtime import views

router = APIRouter()

Json = Dict[str, Any]


@router.get("/state/snapshot")
def state_snapshot(request: Request) -> Json:
    """Full token state (config, hatch, curve, vesting, contributions, token ledger)."""
    return {"ok": True, "state": _snapshot(request)}


@router.get("/state/summary")
def state_summary(request: Request) -> Json:
    return {"ok": True, "summary": views.summary(_snapshot(request))}


@router.get("/state/ops")
def state_ops(request: Request, since_seq: int = 0, limit: int = 100) -> Json:
    """Journal of applied operations (empty without a sqlite store)."""
    ops = _executor(request).read_ops(since_seq=since_seq, limit=max(1, min(int(limit), 1000)))
    return {"ok": True, "ops": ops}
