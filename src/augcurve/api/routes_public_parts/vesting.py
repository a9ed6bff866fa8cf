from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from augcurve.api.errors import ApiError
from augcurve.api.routes_public_parts.common import _call, _executor, _snapshot
from augcurve.api.schemas import SignerRequest
from augcurve.runtime import views

router = APIRouter()

Json = Dict[str, Any]


@router.get("/vesting/status")
def vesting_status(request: Request) -> Json:
    return {"ok": True, "vesting": views.vesting_status(_snapshot(request))}


@router.get("/vesting/contributions/{account}")
def vesting_contribution(request: Request, account: str) -> Json:
    c = views.contribution(_snapshot(request), account)
    if not c:
        raise ApiError.not_found("NoContribution", "not_a_hatcher", {"account": account})
    return {"ok": True, "account": account, "contribution": c}


@router.post("/vesting/claim")
def vesting_claim(request: Request, body: SignerRequest) -> Json:
    return _call(_executor(request).claim, body.signer)
