# src/augcurve/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from augcurve.api.routes_public_parts.assets import router as assets_router
from augcurve.api.routes_public_parts.curve import router as curve_router
from augcurve.api.routes_public_parts.hatch import router as hatch_router
from augcurve.api.routes_public_parts.health import router as health_router
from augcurve.api.routes_public_parts.metrics import router as metrics_router
from augcurve.api.routes_public_parts.pool import router as pool_router
from augcurve.api.routes_public_parts.state import router as state_router
from augcurve.api.routes_public_parts.token import router as token_router
from augcurve.api.routes_public_parts.vesting import router as vesting_router

public_router = APIRouter()

# Versioned API surface
public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(state_router, prefix="/v1", tags=["state"])
public_router.include_router(hatch_router, prefix="/v1", tags=["hatch"])
public_router.include_router(curve_router, prefix="/v1", tags=["curve"])
public_router.include_router(vesting_router, prefix="/v1", tags=["vesting"])
public_router.include_router(token_router, prefix="/v1", tags=["token"])
public_router.include_router(pool_router, prefix="/v1", tags=["pool"])

# Dev-only asset helpers (each route checks app.state.cfg.dev_assets)
public_router.include_router(assets_router, prefix="/v1", tags=["assets"])

# Ops
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])
