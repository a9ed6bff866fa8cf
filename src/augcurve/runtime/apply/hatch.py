# src/augcurve/runtime/apply/hatch.py
from __future__ import annotations

"""Hatch phase: fixed-price subscription round.

HATCH_CONTRIBUTE
  - caps the accepted amount at the remaining raise; only the accepted part is
    pulled from the hatcher
  - locks `accepted * hatch_price` internal tokens for the hatcher
  - mints the reserve-backed share into custody, keeping
    custody == raised * hatch_price * (1e6 - theta) // 1e6
  - on reaching the target (exactly once): sends raise_target * theta // 1e6
    to the funding pool, seeds the curve reserve with the rest, flips is_hatched

HATCH_REFUND
  - only after the deadline of a hatch that never completed
  - returns the hatcher's paid_external and zeroes their lock
"""

from typing import Any, Dict, Optional

from augcurve.assets.ledger import Transfer
from augcurve.runtime.apply.token import burn_from, mint_to
from augcurve.runtime.errors import (
    ALREADY_HATCHED,
    CONTRIBUTION_TOO_SMALL,
    HATCH_EXPIRED,
    HATCH_NOT_EXPIRED,
    NO_CONTRIBUTION,
    NOTHING_TO_REFUND,
    CurveError,
)
from augcurve.runtime.fixed_point import DENOMINATOR_PPM, mul_div, parse_amount, ppm_of, safe_add, safe_mul
from augcurve.runtime.tx_envelope import TxEnvelope

Json = Dict[str, Any]

HATCH_TX_TYPES = {"HATCH_CONTRIBUTE", "HATCH_REFUND"}


def _as_str(v: Any) -> str:
    return str(v).strip() if isinstance(v, (str, int)) else ""


def _as_dict(v: Any) -> Json:
    return v if isinstance(v, dict) else {}


def _ensure_hatch_root(state: Json) -> Json:
    h = state.get("hatch")
    if not isinstance(h, dict):
        h = {}
        state["hatch"] = h
    h.setdefault("raised_external", 0)
    h.setdefault("refunded_external", 0)
    h.setdefault("custody_minted", 0)
    h.setdefault("is_hatched", False)
    h.setdefault("hatched_ts", None)
    h.setdefault("pool_seed", 0)
    return h


def _ensure_contribution(state: Json, hatcher: str) -> Json:
    contribs = state.get("contributions")
    if not isinstance(contribs, dict):
        contribs = {}
        state["contributions"] = contribs
    c = contribs.get(hatcher)
    if not isinstance(c, dict):
        c = {
            "paid_external": 0,
            "initial_locked": 0,
            "locked_internal": 0,
            "claimed_internal": 0,
            "refunded": False,
        }
        contribs[hatcher] = c
    return c


def _custody_target(cfg: Json, raised: int) -> int:
    return mul_div(safe_mul(raised, int(cfg["hatch_price"])), DENOMINATOR_PPM - int(cfg["theta"]), DENOMINATOR_PPM)


def _sync_custody(state: Json, cfg: Json, hatch: Json, backed_external: int) -> int:
    """Mint or burn custody tokens so custody tracks `backed_external`. Returns the delta."""
    custody = str(cfg["token_address"])
    target = _custody_target(cfg, backed_external)
    minted = int(hatch["custody_minted"])
    if target > minted:
        mint_to(state, custody, target - minted)
    elif target < minted:
        burn_from(state, custody, minted - target)
    hatch["custody_minted"] = target
    return target - minted


def _apply_hatch_contribute(state: Json, env: TxEnvelope) -> Json:
    cfg = state["config"]
    hatch = _ensure_hatch_root(state)
    hatcher = _as_str(env.signer)
    payload = _as_dict(env.payload)

    if hatch["is_hatched"]:
        raise CurveError(ALREADY_HATCHED, "hatch_complete", {"hatched_ts": hatch["hatched_ts"]})
    if int(env.ts) > int(hatch["deadline_ts"]):
        raise CurveError(HATCH_EXPIRED, "deadline_passed", {"deadline_ts": hatch["deadline_ts"], "ts": env.ts})

    amount = parse_amount(payload.get("amount"), name="amount")
    if amount < int(cfg["min_contribution"]):
        raise CurveError(
            CONTRIBUTION_TOO_SMALL,
            "below_min_contribution",
            {"amount": amount, "min_contribution": cfg["min_contribution"]},
        )

    raise_target = int(cfg["raise_target"])
    raised = int(hatch["raised_external"])
    accepted = min(amount, raise_target - raised)
    locked = safe_mul(accepted, int(cfg["hatch_price"]))

    c = _ensure_contribution(state, hatcher)
    c["paid_external"] = safe_add(c["paid_external"], accepted)
    c["initial_locked"] = safe_add(c["initial_locked"], locked)
    c["locked_internal"] = safe_add(c["locked_internal"], locked)

    raised = raised + accepted
    hatch["raised_external"] = raised
    _sync_custody(state, cfg, hatch, raised)

    custody = str(cfg["token_address"])
    asset = str(cfg["external_asset"])
    transfers = [Transfer(asset, hatcher, custody, accepted, spender=custody).to_json()]

    hatched = False
    if raised == raise_target:
        pool_seed = ppm_of(raise_target, int(cfg["theta"]))
        hatch["pool_seed"] = pool_seed
        hatch["is_hatched"] = True
        hatch["hatched_ts"] = int(env.ts)
        curve = state.setdefault("curve", {})
        curve["reserve_balance"] = raise_target - pool_seed
        if pool_seed > 0:
            transfers.append(Transfer(asset, custody, str(cfg["funding_pool"]), pool_seed).to_json())
        hatched = True

    return {
        "applied": "HATCH_CONTRIBUTE",
        "hatcher": hatcher,
        "requested": amount,
        "accepted": accepted,
        "locked_internal": locked,
        "raised_external": raised,
        "hatched": hatched,
        "transfers": transfers,
    }


def _apply_hatch_refund(state: Json, env: TxEnvelope) -> Json:
    cfg = state["config"]
    hatch = _ensure_hatch_root(state)
    hatcher = _as_str(env.signer)

    if hatch["is_hatched"]:
        raise CurveError(ALREADY_HATCHED, "hatch_complete", {"hatched_ts": hatch["hatched_ts"]})
    if int(env.ts) <= int(hatch["deadline_ts"]):
        raise CurveError(HATCH_NOT_EXPIRED, "deadline_not_passed", {"deadline_ts": hatch["deadline_ts"], "ts": env.ts})

    c = _as_dict(_as_dict(state.get("contributions")).get(hatcher))
    if not c:
        raise CurveError(NO_CONTRIBUTION, "not_a_hatcher", {"hatcher": hatcher})
    paid = int(c.get("paid_external", 0))
    if c.get("refunded") or paid == 0:
        raise CurveError(NOTHING_TO_REFUND, "already_refunded", {"hatcher": hatcher})

    c["refunded"] = True
    c["locked_internal"] = 0
    hatch["refunded_external"] = safe_add(hatch["refunded_external"], paid)
    _sync_custody(state, cfg, hatch, int(hatch["raised_external"]) - int(hatch["refunded_external"]))

    transfers = [Transfer(str(cfg["external_asset"]), str(cfg["token_address"]), hatcher, paid).to_json()]
    return {"applied": "HATCH_REFUND", "hatcher": hatcher, "refunded": paid, "transfers": transfers}


def apply_hatch(state: Json, env: TxEnvelope) -> Optional[Json]:
    """
    Returns:
      - dict: applied result, with the external `transfers` to execute
      - None: tx_type not in the hatch domain
    """
    t = _as_str(env.tx_type).upper()
    if t not in HATCH_TX_TYPES:
        return None

    if t == "HATCH_CONTRIBUTE":
        return _apply_hatch_contribute(state, env)

    if t == "HATCH_REFUND":
        return _apply_hatch_refund(state, env)

    return None


__all__ = ["apply_hatch"]
