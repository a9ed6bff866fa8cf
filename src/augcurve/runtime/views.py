# src/augcurve/runtime/views.py
from __future__ import annotations

"""Read-only queries over a token state dict.

None of these mutate state. Quotes run the same curve math the appliers use,
against the live supply and reserve.
"""

from typing import Any, Dict, Tuple

from augcurve.runtime import curve_math
from augcurve.runtime.apply import token as token_ledger
from augcurve.runtime.apply.vesting import unlockable
from augcurve.runtime.fixed_point import ppm_of

Json = Dict[str, Any]


def _cfg(state: Json) -> Json:
    return state.get("config") or {}


def is_hatched(state: Json) -> bool:
    return bool((state.get("hatch") or {}).get("is_hatched", False))


def raised_external(state: Json) -> int:
    return int((state.get("hatch") or {}).get("raised_external", 0))


def pool_balance(state: Json) -> int:
    """External asset backing the curve (the reserve)."""
    return int((state.get("curve") or {}).get("reserve_balance", 0))


def total_supply(state: Json) -> int:
    return token_ledger.total_supply(state)


def balance_of(state: Json, account: str) -> int:
    return token_ledger.balance_of(state, account)


def initial_contributions(state: Json, hatcher: str) -> Tuple[int, int]:
    """(paid_external, locked_internal); zeros for unknown accounts."""
    c = (state.get("contributions") or {}).get(str(hatcher)) or {}
    return int(c.get("paid_external", 0)), int(c.get("locked_internal", 0))


def contribution(state: Json, hatcher: str) -> Json:
    c = (state.get("contributions") or {}).get(str(hatcher))
    if not isinstance(c, dict):
        return {}
    out = dict(c)
    out["claimable"] = unlockable(c, int((state.get("vesting") or {}).get("total_allocated_ratio", 0)))
    return out


def hatch_status(state: Json) -> Json:
    cfg = _cfg(state)
    h = dict(state.get("hatch") or {})
    h["raise_target"] = int(cfg.get("raise_target", 0))
    h["remaining"] = max(0, h["raise_target"] - int(h.get("raised_external", 0)))
    return h


def vesting_status(state: Json) -> Json:
    cfg = _cfg(state)
    v = dict(state.get("vesting") or {})
    first = v.get("first_allocation_ts")
    vesting_s = int(cfg.get("vesting_duration_s", 0))
    v["vesting_duration_s"] = vesting_s
    v["claims_open_ts"] = None if first is None else int(first) + vesting_s
    return v


def curve_price(state: Json) -> int:
    """Spot price of one whole token in reserve units, 18-decimal fixed point."""
    return curve_math.spot_price(total_supply(state), pool_balance(state), int(_cfg(state).get("reserve_ratio", 0)))


def calculate_purchase_return(supply: int, reserve_balance: int, reserve_ratio: int, deposit_amount: int) -> int:
    return curve_math.calculate_purchase_return(supply, reserve_balance, reserve_ratio, deposit_amount)


def calculate_sale_return(supply: int, reserve_balance: int, reserve_ratio: int, sell_amount: int) -> int:
    return curve_math.calculate_sale_return(supply, reserve_balance, reserve_ratio, sell_amount)


def quote_mint(state: Json, deposit: int) -> Json:
    """Tokens a deposit would mint now; priced like CURVE_MINT, on the reserve including the deposit."""
    reserve_after = pool_balance(state) + int(deposit)
    minted = calculate_purchase_return(total_supply(state), reserve_after, int(_cfg(state)["reserve_ratio"]), deposit)
    return {"deposit": int(deposit), "minted": minted}


def quote_burn(state: Json, amount: int) -> Json:
    cfg = _cfg(state)
    gross = calculate_sale_return(total_supply(state), pool_balance(state), int(cfg["reserve_ratio"]), amount)
    fee = ppm_of(gross, int(cfg["friction"]))
    return {"amount": int(amount), "gross_return": gross, "friction_fee": fee, "net_return": gross - fee}


def summary(state: Json) -> Json:
    cfg = _cfg(state)
    return {
        "name": cfg.get("name"),
        "symbol": cfg.get("symbol"),
        "seq": int(state.get("seq", 0)),
        "is_hatched": is_hatched(state),
        "raised_external": raised_external(state),
        "reserve_balance": pool_balance(state),
        "total_supply": total_supply(state),
        "price": curve_price(state),
    }


__all__ = [
    "is_hatched",
    "raised_external",
    "pool_balance",
    "total_supply",
    "balance_of",
    "initial_contributions",
    "contribution",
    "hatch_status",
    "vesting_status",
    "curve_price",
    "calculate_purchase_return",
    "calculate_sale_return",
    "quote_mint",
    "quote_burn",
    "summary",
]
