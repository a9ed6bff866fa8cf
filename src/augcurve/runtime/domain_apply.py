# src/augcurve/runtime/domain_apply.py
# ---------------------------------------------------------------------------
# Public, stable import path for applying tx envelopes.
# ---------------------------------------------------------------------------

from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from augcurve.runtime.domain_dispatch import apply_tx
from augcurve.runtime.errors import ApplyError
from augcurve.runtime.tx_envelope import TxEnvelope

Json = Dict[str, Any]


def apply_tx_atomic(state: Json, env: Any) -> Optional[Json]:
    """Apply a tx with fail-atomic semantics.

    On success:
      - state is updated as if apply_tx() ran directly.

    On ApplyError:
      - state remains unchanged.

    Appliers check and mutate in the same pass, so a rejection halfway through
    must never leak the mutations made before it.
    """

    env_norm: Any = env
    if isinstance(env, dict):
        env_norm = TxEnvelope.from_json(env)

    snapshot = copy.deepcopy(state)
    meta = apply_tx(snapshot, env_norm)

    # Commit by replacing contents in-place so callers holding references
    # to `state` see the updated view.
    state.clear()
    state.update(snapshot)
    return meta


__all__ = ["ApplyError", "apply_tx", "apply_tx_atomic", "Json"]
