from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from augcurve.api.routes_public_parts.common import _amount, _call, _require_dev_assets, _runtime
from augcurve.api.schemas import ApproveRequest, FaucetRequest

router = APIRouter()

Json = Dict[str, Any]


@router.get("/assets/balance/{account}")
def asset_balance(request: Request, account: str) -> Json:
    ledger = _runtime(request).ledger
    return {"ok": True, "asset": ledger.asset, "account": account, "balance": ledger.balance_of(account)}


@router.post("/assets/faucet")
def asset_faucet(request: Request, body: FaucetRequest) -> Json:
    _require_dev_assets(request)
    ledger = _runtime(request).ledger
    amount = _amount(body.amount, "amount")
    _call(ledger.mint, body.account, amount)
    return {"ok": True, "account": body.account, "balance": ledger.balance_of(body.account)}


@router.post("/assets/approve")
def asset_approve(request: Request, body: ApproveRequest) -> Json:
    _require_dev_assets(request)
    rt = _runtime(request)
    spender = body.spender or rt.executor.address
    amount = _amount(body.amount, "amount")
    _call(rt.ledger.approve, body.owner, spender, amount)
    return {"ok": True, "owner": body.owner, "spender": spender, "allowance": rt.ledger.allowance(body.owner, spender)}
