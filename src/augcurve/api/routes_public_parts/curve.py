from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from augcurve.api.errors import ApiError
from augcurve.api.routes_public_parts.common import _amount, _call, _executor, _snapshot
from augcurve.api.schemas import BurnRequest, MintRequest
from augcurve.runtime import views
from augcurve.runtime.errors import ApplyError

router = APIRouter()

Json = Dict[str, Any]


@router.get("/curve/price")
def curve_price(request: Request) -> Json:
    st = _snapshot(request)
    return {
        "ok": True,
        "price": views.curve_price(st),
        "reserve_balance": views.pool_balance(st),
        "total_supply": views.total_supply(st),
        "reserve_ratio": int(st["config"]["reserve_ratio"]),
    }


@router.get("/curve/quote/mint")
def curve_quote_mint(request: Request, deposit: str) -> Json:
    amount = _amount(deposit, "deposit")
    try:
        return {"ok": True, "quote": views.quote_mint(_snapshot(request), amount)}
    except ApplyError as e:
        raise ApiError.from_apply_error(e)


@router.get("/curve/quote/burn")
def curve_quote_burn(request: Request, amount: str) -> Json:
    sell = _amount(amount, "amount")
    try:
        return {"ok": True, "quote": views.quote_burn(_snapshot(request), sell)}
    except ApplyError as e:
        raise ApiError.from_apply_error(e)


@router.post("/curve/mint")
def curve_mint(request: Request, body: MintRequest) -> Json:
    deposit = _amount(body.deposit, "deposit")
    min_return = _amount(body.min_return, "min_return")
    return _call(_executor(request).mint, body.signer, deposit, min_return)


@router.post("/curve/burn")
def curve_burn(request: Request, body: BurnRequest) -> Json:
    amount = _amount(body.amount, "amount")
    min_return = _amount(body.min_return, "min_return")
    return _call(_executor(request).burn, body.signer, amount, min_return)
