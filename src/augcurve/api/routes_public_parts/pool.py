from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from augcurve.api.routes_public_parts.common import _amount, _call, _runtime
from augcurve.api.schemas import AllocateRequest

router = APIRouter()

Json = Dict[str, Any]


@router.get("/pool/balance")
def pool_balance(request: Request) -> Json:
    pool = _runtime(request).pool
    return {"ok": True, "pool": pool.address, "balance": pool.balance()}


@router.post("/pool/allocate")
def pool_allocate(request: Request, body: AllocateRequest) -> Json:
    """Owner withdraws from the funding pool; the token is notified afterwards."""
    amount = _amount(body.amount, "amount")
    return _call(_runtime(request).pool.allocate_funds, body.caller, body.beneficiary, amount)
