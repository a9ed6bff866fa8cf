# src/augcurve/runtime/state_invariants.py
from __future__ import annotations

"""State construction and invariant checks.

Token state is a nested JSON-like dict mutated by the apply/* modules. This
module is the single place that:

  - builds the initial aggregate from a validated TokenConfig (`construct`)
  - ensures the top-level containers exist (`ensure_state`)
  - verifies the ledger-wide accounting invariants (`check_invariants`)

`check_invariants` is used by tests and by the sqlite store on load; it is not
on the hot path of every apply.
"""

from collections.abc import MutableMapping
from typing import Any, Dict, List

from augcurve.runtime.fixed_point import DENOMINATOR_PPM
from augcurve.runtime.token_config import TokenConfig, validate_token_config

Json = Dict[str, Any]

_ROOTS = ("config", "hatch", "curve", "vesting", "contributions", "token")


def construct(config: TokenConfig, now: int) -> Json:
    """Validate `config` (ValueError on a bad field) and return a fresh state."""
    validate_token_config(config)
    created = int(now)
    return {
        "config": config.to_json(),
        "hatch": {
            "created_ts": created,
            "deadline_ts": created + int(config.hatch_duration_s),
            "raised_external": 0,
            "refunded_external": 0,
            "custody_minted": 0,
            "is_hatched": False,
            "hatched_ts": None,
            "pool_seed": 0,
        },
        "curve": {"reserve_balance": 0},
        "vesting": {
            "total_allocated_ratio": 0,
            "cumulative_allocated": 0,
            "first_allocation_ts": None,
            "notifications": 0,
        },
        "contributions": {},
        "token": {"balances": {}, "total_supply": 0},
        "seq": 0,
    }


def ensure_state(st: Any) -> Json:
    """Ensure `st` is a dict carrying every top-level container.

    Raises:
        TypeError: if st (or one of its containers) has the wrong type
        ValueError: if the state was never constructed (no config)
    """
    if not isinstance(st, MutableMapping):
        raise TypeError(f"state must be MutableMapping, got {type(st)}")

    if not isinstance(st.get("config"), dict):
        raise ValueError("state has no token config; build it with construct()")

    for k in _ROOTS:
        v = st.get(k)
        if v is None:
            st[k] = {}
        elif not isinstance(v, dict):
            raise TypeError(f"state[{k!r}] must be dict, got {type(v)}")

    st.setdefault("seq", 0)
    return st  # type: ignore[return-value]


def check_invariants(st: Json) -> List[str]:
    """Return a list of violated invariants (empty when the state is sound)."""
    problems: List[str] = []
    cfg = st.get("config") or {}
    hatch = st.get("hatch") or {}
    vesting = st.get("vesting") or {}
    token = st.get("token") or {}

    raise_target = int(cfg.get("raise_target", 0))
    p0 = int(cfg.get("hatch_price", 0))

    if int(hatch.get("raised_external", 0)) > raise_target:
        problems.append("raised_external exceeds raise_target")

    balances = token.get("balances") or {}
    if sum(int(v) for v in balances.values()) != int(token.get("total_supply", 0)):
        problems.append("total_supply differs from the sum of balances")
    if any(int(v) < 0 for v in balances.values()):
        problems.append("negative balance")

    ratio = int(vesting.get("total_allocated_ratio", 0))
    if ratio < 0 or ratio > DENOMINATOR_PPM:
        problems.append("total_allocated_ratio outside 0..1e6")

    for hatcher, c in sorted((st.get("contributions") or {}).items()):
        paid = int(c.get("paid_external", 0))
        initial = int(c.get("initial_locked", 0))
        locked = int(c.get("locked_internal", 0))
        claimed = int(c.get("claimed_internal", 0))
        if initial != paid * p0:
            problems.append(f"{hatcher}: initial_locked != paid_external * hatch_price")
        if c.get("refunded"):
            if locked != 0:
                problems.append(f"{hatcher}: refunded contribution still locked")
            continue
        if locked != initial - claimed:
            problems.append(f"{hatcher}: locked_internal != initial_locked - claimed_internal")
        if claimed > initial * ratio // DENOMINATOR_PPM:
            problems.append(f"{hatcher}: claimed beyond the allocated ratio")

    return problems


__all__ = ["construct", "ensure_state", "check_invariants"]
