# src/augcurve/runtime/apply/token.py
from __future__ import annotations

from typing import Any, Dict, Optional

from augcurve.runtime.errors import INSUFFICIENT_BALANCE, INVALID_AMOUNT, INVALID_TX, CurveError
from augcurve.runtime.fixed_point import parse_amount, safe_add, safe_sub
from augcurve.runtime.tx_envelope import TxEnvelope

Json = Dict[str, Any]

TOKEN_TX_TYPES = {"TOKEN_TRANSFER"}


def _as_str(v: Any) -> str:
    return str(v).strip() if isinstance(v, (str, int)) else ""


def _as_dict(v: Any) -> Json:
    return v if isinstance(v, dict) else {}


def ensure_token_root(state: Json) -> Json:
    tok = state.get("token")
    if not isinstance(tok, dict):
        tok = {}
        state["token"] = tok
    if not isinstance(tok.get("balances"), dict):
        tok["balances"] = {}
    tok.setdefault("total_supply", 0)
    return tok


def balance_of(state: Json, account: str) -> int:
    return int(ensure_token_root(state)["balances"].get(str(account), 0))


def total_supply(state: Json) -> int:
    return int(ensure_token_root(state)["total_supply"])


def mint_to(state: Json, account: str, amount: int) -> None:
    """Credit `account` and grow total_supply by the same amount."""
    if amount <= 0:
        return
    tok = ensure_token_root(state)
    bals = tok["balances"]
    tok["total_supply"] = safe_add(tok["total_supply"], amount)
    bals[account] = safe_add(bals.get(account, 0), amount)


def burn_from(state: Json, account: str, amount: int) -> None:
    if amount <= 0:
        return
    tok = ensure_token_root(state)
    bals = tok["balances"]
    have = int(bals.get(account, 0))
    if have < amount:
        raise CurveError(INSUFFICIENT_BALANCE, "burn_exceeds_balance", {"account": account, "balance": have, "amount": amount})
    bals[account] = have - amount
    tok["total_supply"] = safe_sub(tok["total_supply"], amount)


def move(state: Json, src: str, dst: str, amount: int) -> None:
    bals = ensure_token_root(state)["balances"]
    have = int(bals.get(src, 0))
    if have < amount:
        raise CurveError(INSUFFICIENT_BALANCE, "transfer_exceeds_balance", {"account": src, "balance": have, "amount": amount})
    bals[src] = have - amount
    bals[dst] = safe_add(bals.get(dst, 0), amount)


def _apply_token_transfer(state: Json, env: TxEnvelope) -> Json:
    payload = _as_dict(env.payload)
    sender = _as_str(env.signer)
    to = _as_str(payload.get("to"))
    if not to:
        raise CurveError(INVALID_TX, "missing_recipient", {"tx_type": env.tx_type})

    amount = parse_amount(payload.get("amount"), name="amount")
    if amount == 0:
        raise CurveError(INVALID_AMOUNT, "zero_amount", {"field": "amount"})

    move(state, sender, to, amount)
    return {"applied": "TOKEN_TRANSFER", "from": sender, "to": to, "amount": amount}


def apply_token(state: Json, env: TxEnvelope) -> Optional[Json]:
    t = _as_str(env.tx_type).upper()
    if t not in TOKEN_TX_TYPES:
        return None

    if t == "TOKEN_TRANSFER":
        return _apply_token_transfer(state, env)

    return None


__all__ = ["apply_token", "balance_of", "total_supply", "mint_to", "burn_from", "move", "ensure_token_root"]
