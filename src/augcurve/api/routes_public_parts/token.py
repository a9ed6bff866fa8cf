from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from augcurve.api.routes_public_parts.common import _amount, _call, _executor, _snapshot
from augcurve.api.schemas import TransferRequest
from augcurve.runtime import views

router = APIRouter()

Json = Dict[str, Any]


@router.get("/token/balance/{account}")
def token_balance(request: Request, account: str) -> Json:
    return {"ok": True, "account": account, "balance": views.balance_of(_snapshot(request), account)}


@router.get("/token/supply")
def token_supply(request: Request) -> Json:
    return {"ok": True, "total_supply": views.total_supply(_snapshot(request))}


@router.post("/token/transfer")
def token_transfer(request: Request, body: TransferRequest) -> Json:
    amount = _amount(body.amount, "amount")
    return _call(_executor(request).transfer, body.signer, body.to, amount)
