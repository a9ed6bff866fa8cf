from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter()


def _now_ms() -> int:
    return int(time.time() * 1000)


@router.get("/health")
def health(request: Request) -> dict[str, Any]:
    # health must never crash; report what is attached
    rt = getattr(request.app.state, "runtime", None)
    out: dict[str, Any] = {
        "ok": True,
        "service": "augcurve",
        "version": "v1",
        "ts_ms": _now_ms(),
        "runtime": rt is not None,
    }
    if rt is None:
        return out

    try:
        st = rt.executor.read_state()
        cfg = st.get("config") or {}
        out["symbol"] = cfg.get("symbol")
        out["seq"] = int(st.get("seq", 0))
        out["hatched"] = bool((st.get("hatch") or {}).get("is_hatched", False))
    except Exception as e:
        out["ok"] = False
        out["error"] = type(e).__name__
    return out
