from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from augcurve.api.routes_public_parts.common import _amount, _call, _executor, _snapshot
from augcurve.api.schemas import ContributeRequest, SignerRequest
from augcurve.runtime import views

router = APIRouter()

Json = Dict[str, Any]


@router.get("/hatch/status")
def hatch_status(request: Request) -> Json:
    return {"ok": True, "hatch": views.hatch_status(_snapshot(request))}


@router.post("/hatch/contribute")
def hatch_contribute(request: Request, body: ContributeRequest) -> Json:
    """Contribute reserve asset during the hatch. The hatcher must have approved
    the token custody account for at least `amount` beforehand."""
    amount = _amount(body.amount, "amount")
    return _call(_executor(request).contribute, body.signer, amount)


@router.post("/hatch/refund")
def hatch_refund(request: Request, body: SignerRequest) -> Json:
    return _call(_executor(request).refund, body.signer)
