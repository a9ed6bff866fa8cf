# src/augcurve/runtime/domain_dispatch.py

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from augcurve.runtime.errors import INVALID_TX, UNKNOWN_OPERATION, ApplyError, CurveError
from augcurve.runtime.state_invariants import ensure_state
from augcurve.runtime.tx_envelope import TxEnvelope

# Domain appliers (each returns Optional[Json]; returning None means "not claimed")
from augcurve.runtime.apply.curve import apply_curve
from augcurve.runtime.apply.hatch import apply_hatch
from augcurve.runtime.apply.token import apply_token
from augcurve.runtime.apply.vesting import apply_vesting

Json = Dict[str, Any]
ApplyFn = Callable[[Json, Any], Optional[Json]]


def _get(env: Any, key: str, default: Any = None) -> Any:
    """Read a field from either a TxEnvelope or a raw dict envelope."""

    if isinstance(env, dict):
        return env.get(key, default)
    return getattr(env, key, default)


def _tx_type(env: Any) -> str:
    return str(_get(env, "tx_type", "") or "").strip().upper()


def _enforce_signer(state: Json, env: Any) -> None:
    """Every call needs a signer, and the custody account never signs."""
    t = _tx_type(env)
    signer = str(_get(env, "signer", "") or "").strip()
    if not signer:
        raise CurveError(INVALID_TX, "missing_signer", {"tx_type": t})

    custody = str(state["config"].get("token_address") or "")
    if signer == custody:
        raise CurveError(INVALID_TX, "custody_cannot_sign", {"tx_type": t, "signer": signer})


_APPLIERS: tuple[ApplyFn, ...] = (
    apply_hatch,
    apply_curve,
    apply_vesting,
    apply_token,
)


def apply_tx(state: Json, env: Any) -> Json:
    """Dispatch a TxEnvelope to the first domain applier that claims it."""

    ensure_state(state)

    env_norm: Any = env
    if isinstance(env, dict):
        env_norm = TxEnvelope.from_json(env)

    t = _tx_type(env_norm)
    if not t:
        raise CurveError(INVALID_TX, "missing_tx_type", {"tx_type": t})

    _enforce_signer(state, env_norm)

    for fn in _APPLIERS:
        try:
            out = fn(state, env_norm)
        except ApplyError:
            raise
        except Exception as e:
            raise CurveError(
                "domain_error",
                type(e).__name__,
                {"tx_type": t, "domain": fn.__name__, "error": str(e)},
            ) from e

        if out is not None:
            state["seq"] = int(state.get("seq", 0)) + 1
            out.setdefault("seq", state["seq"])
            return out

    raise CurveError(UNKNOWN_OPERATION, "tx_type_not_implemented", {"tx_type": t})


__all__ = ["apply_tx"]
