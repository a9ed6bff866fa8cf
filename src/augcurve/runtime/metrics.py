from __future__ import annotations

"""Process-local token metrics with Prometheus text exposition.

Every metric is declared below with its type and help text; recording an
undeclared name is a programming error (ValueError). Counters may carry
labels (`tx_type`, `code`). Gauges describe the token state and are refreshed
from a state dict by `observe_token_state`.

Exposition is opt-in: the API serves `/v1/metrics` only when
AUGCURVE_METRICS_ENABLED is truthy.
"""

import os
import threading
import time
from typing import Any, Dict, Tuple

from augcurve.runtime import views
from augcurve.runtime.fixed_point import ONE

Json = Dict[str, Any]
Labels = Tuple[Tuple[str, str], ...]

PREFIX = "augcurve_"

COUNTERS: Dict[str, str] = {
    "tx_applied_total": "Token calls committed, by tx type.",
    "tx_rejected_total": "Token calls rejected without a state change, by tx type and error code.",
    "pool_allocations_total": "Funding pool payouts to beneficiaries.",
    "pool_notify_failures_total": "Allocation notices the token rejected after a pool payout.",
}

GAUGES: Dict[str, str] = {
    "seq": "Operations applied to the token state.",
    "hatched": "1 once the hatch raise target was reached, else 0.",
    "raised_external_tokens": "Reserve asset raised during the hatch (whole units).",
    "reserve_balance_tokens": "Reserve asset backing the bonding curve (whole units).",
    "total_supply_tokens": "Internal token supply priced by the curve (whole units).",
    "spot_price_micro": "Curve spot price in millionths of a reserve unit per token.",
    "allocated_ratio_ppm": "Share of hatch tokens unlocked by funding pool allocations (ppm).",
    "hatchers": "Accounts holding a hatch contribution.",
}

_lock = threading.Lock()
_counters: Dict[Tuple[str, Labels], int] = {}
_gauges: Dict[str, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    v = (os.environ.get("AUGCURVE_METRICS_ENABLED") or "").strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def inc_counter(name: str, value: int = 1, **labels: Any) -> None:
    if name not in COUNTERS:
        raise ValueError(f"undeclared counter: {name!r}")
    key = (name, tuple(sorted((k, str(v)) for k, v in labels.items() if v is not None)))
    with _lock:
        _counters[key] = _counters.get(key, 0) + int(value)


def set_gauge(name: str, value: int) -> None:
    if name not in GAUGES:
        raise ValueError(f"undeclared gauge: {name!r}")
    with _lock:
        _gauges[name] = int(value)


def observe_token_state(state: Json) -> None:
    """Refresh every state gauge from one token state snapshot."""
    set_gauge("seq", int(state.get("seq", 0)))
    set_gauge("hatched", 1 if views.is_hatched(state) else 0)
    set_gauge("raised_external_tokens", views.raised_external(state) // ONE)
    set_gauge("reserve_balance_tokens", views.pool_balance(state) // ONE)
    set_gauge("total_supply_tokens", views.total_supply(state) // ONE)
    set_gauge("spot_price_micro", views.curve_price(state) * 1_000_000 // ONE)
    set_gauge("allocated_ratio_ppm", int((state.get("vesting") or {}).get("total_allocated_ratio", 0)))
    set_gauge("hatchers", len(state.get("contributions") or {}))


def reset() -> None:
    with _lock:
        _counters.clear()
        _gauges.clear()


def _series(name: str, labels: Labels) -> str:
    if not labels:
        return name
    inner = ",".join(f'{k}="{v}"' for k, v in labels)
    return f"{name}{{{inner}}}"


def counter_total(name: str, **labels: Any) -> int:
    """Sum of a counter over every series matching `labels`."""
    want = {k: str(v) for k, v in labels.items()}
    with _lock:
        return sum(
            v for (n, ls), v in _counters.items() if n == name and all(dict(ls).get(k) == s for k, s in want.items())
        )


def snapshot() -> Json:
    with _lock:
        now = int(time.time() * 1000)
        return {
            "uptime_ms": now - _started_ms,
            "counters": {_series(n, ls): v for (n, ls), v in sorted(_counters.items())},
            "gauges": dict(_gauges),
        }


def format_prometheus() -> str:
    snap = snapshot()
    lines = [
        f"# HELP {PREFIX}uptime_ms Milliseconds since the process started.",
        f"# TYPE {PREFIX}uptime_ms gauge",
        f"{PREFIX}uptime_ms {snap['uptime_ms']}",
    ]

    with _lock:
        counters = sorted(_counters.items())
    for name, help_text in COUNTERS.items():
        lines.append(f"# HELP {PREFIX}{name} {help_text}")
        lines.append(f"# TYPE {PREFIX}{name} counter")
        for (n, ls), v in counters:
            if n == name:
                lines.append(f"{PREFIX}{_series(n, ls)} {v}")

    gauges = snap["gauges"]
    for name, help_text in GAUGES.items():
        if name not in gauges:
            continue
        lines.append(f"# HELP {PREFIX}{name} {help_text}")
        lines.append(f"# TYPE {PREFIX}{name} gauge")
        lines.append(f"{PREFIX}{name} {gauges[name]}")

    return "\n".join(lines) + "\n"


__all__ = [
    "COUNTERS",
    "GAUGES",
    "metrics_enabled",
    "inc_counter",
    "set_gauge",
    "observe_token_state",
    "counter_total",
    "reset",
    "snapshot",
    "format_prometheus",
]
