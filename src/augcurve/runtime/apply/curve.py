# src/augcurve/runtime/apply/curve.py
from __future__ import annotations

from typing import Any, Dict, Optional

from augcurve.assets.ledger import Transfer
from augcurve.runtime.apply.token import balance_of, burn_from, mint_to, total_supply
from augcurve.runtime.curve_math import calculate_purchase_return, calculate_sale_return
from augcurve.runtime.errors import INSUFFICIENT_BALANCE, NOT_HATCHED_YET, SLIPPAGE_EXCEEDED, CurveError
from augcurve.runtime.fixed_point import parse_amount, ppm_of, safe_add, safe_sub
from augcurve.runtime.tx_envelope import TxEnvelope

Json = Dict[str, Any]

CURVE_TX_TYPES = {"CURVE_MINT", "CURVE_BURN"}


def _as_str(v: Any) -> str:
    return str(v).strip() if isinstance(v, (str, int)) else ""


def _as_dict(v: Any) -> Json:
    return v if isinstance(v, dict) else {}


def _ensure_curve_root(state: Json) -> Json:
    c = state.get("curve")
    if not isinstance(c, dict):
        c = {}
        state["curve"] = c
    c.setdefault("reserve_balance", 0)
    return c


def _require_hatched(state: Json, tx_type: str) -> None:
    if not bool(_as_dict(state.get("hatch")).get("is_hatched", False)):
        raise CurveError(NOT_HATCHED_YET, "curve_closed_until_hatch", {"tx_type": tx_type})


def _min_return(payload: Json) -> int:
    v = payload.get("min_return")
    if v is None:
        return 0
    return parse_amount(v, name="min_return")


def _apply_curve_mint(state: Json, env: TxEnvelope) -> Json:
    """Deposit reserve asset, receive newly minted tokens priced on the post-deposit reserve."""
    _require_hatched(state, "CURVE_MINT")
    cfg = state["config"]
    curve = _ensure_curve_root(state)
    buyer = _as_str(env.signer)
    payload = _as_dict(env.payload)

    deposit = parse_amount(payload.get("deposit"), name="deposit")
    min_return = _min_return(payload)

    # the deposit joins the reserve before it is priced
    reserve_after = safe_add(int(curve["reserve_balance"]), deposit)
    minted = calculate_purchase_return(total_supply(state), reserve_after, int(cfg["reserve_ratio"]), deposit)
    if minted < min_return:
        raise CurveError(SLIPPAGE_EXCEEDED, "mint_below_min_return", {"minted": minted, "min_return": min_return})

    curve["reserve_balance"] = reserve_after
    mint_to(state, buyer, minted)

    custody = str(cfg["token_address"])
    transfers = [Transfer(str(cfg["external_asset"]), buyer, custody, deposit, spender=custody).to_json()]
    return {
        "applied": "CURVE_MINT",
        "buyer": buyer,
        "deposit": deposit,
        "minted": minted,
        "reserve_balance": curve["reserve_balance"],
        "transfers": transfers,
    }


def _apply_curve_burn(state: Json, env: TxEnvelope) -> Json:
    """Burn tokens for reserve asset; `friction` ppm of the return goes to the fee recipient (the funding pool unless configured)."""
    _require_hatched(state, "CURVE_BURN")
    cfg = state["config"]
    curve = _ensure_curve_root(state)
    seller = _as_str(env.signer)
    payload = _as_dict(env.payload)

    sell = parse_amount(payload.get("amount"), name="amount")
    min_return = _min_return(payload)

    have = balance_of(state, seller)
    if have < sell:
        raise CurveError(INSUFFICIENT_BALANCE, "burn_exceeds_balance", {"account": seller, "balance": have, "amount": sell})

    reserve = int(curve["reserve_balance"])
    gross = calculate_sale_return(total_supply(state), reserve, int(cfg["reserve_ratio"]), sell)
    fee = ppm_of(gross, int(cfg["friction"]))
    net = gross - fee
    if net < min_return:
        raise CurveError(SLIPPAGE_EXCEEDED, "burn_below_min_return", {"net_return": net, "min_return": min_return})

    burn_from(state, seller, sell)
    curve["reserve_balance"] = safe_sub(reserve, gross)

    asset = str(cfg["external_asset"])
    fee_to = str(cfg.get("fee_recipient") or cfg["funding_pool"])
    custody = str(cfg["token_address"])
    transfers = []
    if fee > 0:
        transfers.append(Transfer(asset, custody, fee_to, fee).to_json())
    if net > 0:
        transfers.append(Transfer(asset, custody, seller, net).to_json())

    return {
        "applied": "CURVE_BURN",
        "seller": seller,
        "burned": sell,
        "gross_return": gross,
        "friction_fee": fee,
        "fee_recipient": fee_to,
        "net_return": net,
        "reserve_balance": curve["reserve_balance"],
        "transfers": transfers,
    }


def apply_curve(state: Json, env: TxEnvelope) -> Optional[Json]:
    t = _as_str(env.tx_type).upper()
    if t not in CURVE_TX_TYPES:
        return None

    if t == "CURVE_MINT":
        return _apply_curve_mint(state, env)

    if t == "CURVE_BURN":
        return _apply_curve_burn(state, env)

    return None


__all__ = ["apply_curve"]
