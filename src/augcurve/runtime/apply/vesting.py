# src/augcurve/runtime/apply/vesting.py
from __future__ import annotations

"""Vesting ledger for hatchers' locked tokens.

Unlocking is driven by funding pool withdrawals, not by time:

    total_allocated_ratio = min(1e6, cumulative_allocated * 1e6 // raise_target)

A claim releases

    clamp(initial_locked * total_allocated_ratio // 1e6 - claimed_internal, 0, locked_internal)

which is recomputed from cumulative figures on every call, so a repeated
notice or a repeated claim can never unlock the same tokens twice.

When `vesting_duration_s > 0`, claims are additionally blocked until that many
seconds have passed since the first allocation notice.
"""

from typing import Any, Dict, Optional

from augcurve.runtime.apply.token import mint_to
from augcurve.runtime.errors import (
    INVALID_AMOUNT,
    NO_CONTRIBUTION,
    NOT_FUNDING_POOL,
    NOT_HATCHED_YET,
    VESTING_NOT_ELAPSED,
    CurveError,
)
from augcurve.runtime.fixed_point import DENOMINATOR_PPM, mul_div, parse_amount, safe_add
from augcurve.runtime.tx_envelope import TxEnvelope

Json = Dict[str, Any]

VESTING_TX_TYPES = {"ALLOCATION_NOTIFY", "CLAIM_TOKENS"}


def _as_str(v: Any) -> str:
    return str(v).strip() if isinstance(v, (str, int)) else ""


def _as_dict(v: Any) -> Json:
    return v if isinstance(v, dict) else {}


def _ensure_vesting_root(state: Json) -> Json:
    v = state.get("vesting")
    if not isinstance(v, dict):
        v = {}
        state["vesting"] = v
    v.setdefault("total_allocated_ratio", 0)
    v.setdefault("cumulative_allocated", 0)
    v.setdefault("first_allocation_ts", None)
    v.setdefault("notifications", 0)
    return v


def _require_hatched(state: Json, tx_type: str) -> None:
    if not bool(_as_dict(state.get("hatch")).get("is_hatched", False)):
        raise CurveError(NOT_HATCHED_YET, "vesting_closed_until_hatch", {"tx_type": tx_type})


def allocated_ratio(cumulative: int, raise_target: int) -> int:
    if raise_target <= 0:
        return 0
    return min(DENOMINATOR_PPM, int(cumulative) * DENOMINATOR_PPM // int(raise_target))


def unlockable(contribution: Json, ratio: int) -> int:
    initial = int(contribution.get("initial_locked", 0))
    claimed = int(contribution.get("claimed_internal", 0))
    locked = int(contribution.get("locked_internal", 0))
    due = mul_div(initial, ratio, DENOMINATOR_PPM) - claimed
    return max(0, min(due, locked))


def _apply_allocation_notify(state: Json, env: TxEnvelope) -> Json:
    cfg = state["config"]
    caller = _as_str(env.signer)
    if caller != str(cfg["funding_pool"]):
        raise CurveError(NOT_FUNDING_POOL, "caller_not_funding_pool", {"caller": caller})
    _require_hatched(state, "ALLOCATION_NOTIFY")

    withdrawn = parse_amount(_as_dict(env.payload).get("amount"), name="amount")
    if withdrawn == 0:
        raise CurveError(INVALID_AMOUNT, "zero_amount", {"field": "amount"})

    v = _ensure_vesting_root(state)
    v["cumulative_allocated"] = safe_add(v["cumulative_allocated"], withdrawn)
    v["total_allocated_ratio"] = allocated_ratio(v["cumulative_allocated"], int(cfg["raise_target"]))
    if v["first_allocation_ts"] is None:
        v["first_allocation_ts"] = int(env.ts)
    v["notifications"] = int(v["notifications"]) + 1

    return {
        "applied": "ALLOCATION_NOTIFY",
        "withdrawn": withdrawn,
        "cumulative_allocated": v["cumulative_allocated"],
        "total_allocated_ratio": v["total_allocated_ratio"],
    }


def _apply_claim_tokens(state: Json, env: TxEnvelope) -> Json:
    cfg = state["config"]
    _require_hatched(state, "CLAIM_TOKENS")
    hatcher = _as_str(env.signer)

    c = _as_dict(_as_dict(state.get("contributions")).get(hatcher))
    if not c or c.get("refunded"):
        raise CurveError(NO_CONTRIBUTION, "not_a_hatcher", {"hatcher": hatcher})

    v = _ensure_vesting_root(state)
    first = v["first_allocation_ts"]
    if first is None:
        return {"applied": "CLAIM_TOKENS", "hatcher": hatcher, "unlocked": 0, "locked_internal": c["locked_internal"]}

    vesting_s = int(cfg["vesting_duration_s"])
    if vesting_s > 0 and int(env.ts) < int(first) + vesting_s:
        raise CurveError(
            VESTING_NOT_ELAPSED,
            "vesting_period_running",
            {"unlocks_at": int(first) + vesting_s, "ts": env.ts},
        )

    amount = unlockable(c, int(v["total_allocated_ratio"]))
    if amount > 0:
        c["claimed_internal"] = int(c["claimed_internal"]) + amount
        c["locked_internal"] = int(c["locked_internal"]) - amount
        mint_to(state, hatcher, amount)

    return {"applied": "CLAIM_TOKENS", "hatcher": hatcher, "unlocked": amount, "locked_internal": c["locked_internal"]}


def apply_vesting(state: Json, env: TxEnvelope) -> Optional[Json]:
    t = _as_str(env.tx_type).upper()
    if t not in VESTING_TX_TYPES:
        return None

    if t == "ALLOCATION_NOTIFY":
        return _apply_allocation_notify(state, env)

    if t == "CLAIM_TOKENS":
        return _apply_claim_tokens(state, env)

    return None


__all__ = ["apply_vesting", "allocated_ratio", "unlockable"]
