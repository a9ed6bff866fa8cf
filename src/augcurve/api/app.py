from __future__ import annotations

import os
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from augcurve.api.config import load_api_config
from augcurve.api.errors import ApiError
from augcurve.api.routes_public import public_router
from augcurve.api.structured_logging import RequestLogMiddleware
from augcurve.runtime.runtime_boot import build_runtime as _build_runtime


def build_runtime():
    """Build the TokenRuntime served by the API.

    This wrapper exists so tests can monkeypatch `augcurve.api.app.build_runtime`
    without reaching into runtime modules.
    """
    return _build_runtime()


def _parse_cors_origins(mode: str) -> List[str]:
    """Parse CORS origins.

    Policy:
      - If AUGCURVE_CORS_ORIGINS is unset/empty -> CORS disabled
      - Wildcard "*" is rejected in AUGCURVE_MODE=prod
    """
    raw = os.environ.get("AUGCURVE_CORS_ORIGINS", "").strip()
    if not raw:
        return []

    origins = [o.strip() for o in raw.split(",") if o.strip()]

    if "*" in origins:
        if mode == "prod":
            raise RuntimeError(
                "Unsafe CORS configuration: wildcard '*' not allowed in production. "
                "Set explicit origins in AUGCURVE_CORS_ORIGINS."
            )
        return ["*"]

    return origins


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    request.state.error_code = exc.code
    return JSONResponse(status_code=exc.status_code, content=exc.to_json())


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load the token config and attach app.state.runtime
      - False: keep lightweight for unit tests / import-time validation
    """
    cfg = load_api_config()

    # Disable docs in production.
    if cfg.mode == "prod":
        app = FastAPI(title="augcurve token API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="augcurve token API")

    app.state.cfg = cfg
    app.state.runtime = build_runtime() if boot_runtime else None

    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]

    # --- Middleware ---
    if cfg.log_requests:
        app.add_middleware(RequestLogMiddleware)

    cors_origins = _parse_cors_origins(cfg.mode)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=cors_origins != ["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    # --- Routers ---
    app.include_router(public_router)

    return app
