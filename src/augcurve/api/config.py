import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ApiConfig:
    mode: str  # "prod" | "dev" | "test"
    dev_assets: bool  # expose /v1/assets/faucet and /v1/assets/approve
    log_requests: bool


def _is_truthy(v: str | None) -> bool:
    if v is None:
        return False
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def load_api_config() -> ApiConfig:
    mode = os.getenv("AUGCURVE_MODE", "prod").strip().lower()
    if mode not in {"prod", "dev", "test"}:
        raise ValueError(f"AUGCURVE_MODE must be prod, dev or test; got: {mode!r}")

    raw_dev = os.getenv("AUGCURVE_DEV_ASSETS")
    dev_assets = _is_truthy(raw_dev) if raw_dev is not None else mode != "prod"

    raw_log = os.getenv("AUGCURVE_LOG_REQUESTS")
    log_requests = True if raw_log is None else _is_truthy(raw_log)

    return ApiConfig(mode=mode, dev_assets=dev_assets, log_requests=log_requests)
