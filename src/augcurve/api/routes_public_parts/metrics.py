from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request, Response

from augcurve.api.errors import ApiError
from augcurve.runtime import metrics as token_metrics

router = APIRouter()

Json = Dict[str, Any]

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4"


def _require_enabled() -> None:
    if not token_metrics.metrics_enabled():
        raise ApiError.not_found("metrics_disabled", "set AUGCURVE_METRICS_ENABLED=1 to expose metrics", {})


def _refresh_state_gauges(request: Request) -> None:
    # gauges follow the live token state at scrape time
    rt = getattr(request.app.state, "runtime", None)
    if rt is not None:
        token_metrics.observe_token_state(rt.executor.read_state())


@router.get("/metrics")
def metrics_prometheus(request: Request) -> Response:
    _require_enabled()
    _refresh_state_gauges(request)
    return Response(content=token_metrics.format_prometheus(), media_type=PROMETHEUS_CONTENT_TYPE)


@router.get("/metrics/snapshot")
def metrics_snapshot(request: Request) -> Json:
    """Same figures as /metrics, as JSON (labelled counters keyed by series)."""
    _require_enabled()
    _refresh_state_gauges(request)
    return {"ok": True, "metrics": token_metrics.snapshot()}
