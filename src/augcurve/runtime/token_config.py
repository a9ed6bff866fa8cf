# src/augcurve/runtime/token_config.py
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from augcurve.runtime.fixed_point import DENOMINATOR_PPM, MAX_UINT256, ONE, check_ppm

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    if v is None:
        return int(default)
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class TokenConfig:
    """Construction parameters of one continuous token. Immutable once built."""

    name: str
    symbol: str

    # account ids
    token_address: str  # the core's own custody account
    external_asset: str  # reserve asset id
    funding_pool: str

    reserve_ratio: int  # ppm, kappa ~ 6 => 142857
    hatch_price: int  # p0, internal tokens per external unit
    raise_target: int  # smallest units of the reserve asset
    theta: int  # ppm of the hatch raise sent to the funding pool
    friction: int  # ppm of every sale return sent to fee_recipient (default: funding_pool)

    hatch_duration_s: int
    vesting_duration_s: int
    min_contribution: int
    fee_recipient: Optional[str] = None  # burn friction payee; None sends it to funding_pool

    def to_json(self) -> Json:
        return asdict(self)

    @staticmethod
    def from_json(j: Json) -> "TokenConfig":
        fields = TokenConfig.__dataclass_fields__
        return TokenConfig(**{k: j[k] if k != "fee_recipient" else j.get(k) for k in fields})


def validate_token_config(cfg: TokenConfig) -> None:
    """Fail-fast validation. Raises ValueError naming the offending field."""

    for name in ("name", "symbol", "token_address", "external_asset", "funding_pool"):
        v = getattr(cfg, name)
        if not isinstance(v, str) or not v.strip():
            raise ValueError(f"{name} must be a non-empty string")

    if len({cfg.token_address, cfg.funding_pool}) != 2:
        raise ValueError("token_address and funding_pool must differ")

    check_ppm(cfg.reserve_ratio, name="reserve_ratio", allow_zero=False)
    check_ppm(cfg.theta, name="theta", allow_full=False)
    check_ppm(cfg.friction, name="friction", allow_full=False)

    if cfg.reserve_ratio == DENOMINATOR_PPM and cfg.friction == 0:
        raise ValueError("friction must be > 0 with a linear reserve_ratio; a round trip would return the full deposit")

    if cfg.fee_recipient is not None:
        if not isinstance(cfg.fee_recipient, str) or not cfg.fee_recipient.strip():
            raise ValueError("fee_recipient must be a non-empty string when set")
        if cfg.fee_recipient == cfg.token_address:
            raise ValueError("fee_recipient must differ from token_address")

    for name in ("hatch_price", "raise_target", "min_contribution", "hatch_duration_s"):
        v = getattr(cfg, name)
        if isinstance(v, bool) or not isinstance(v, int) or v <= 0:
            raise ValueError(f"{name} must be a positive integer; got: {v!r}")

    if isinstance(cfg.vesting_duration_s, bool) or not isinstance(cfg.vesting_duration_s, int) or cfg.vesting_duration_s < 0:
        raise ValueError(f"vesting_duration_s must be >= 0; got: {cfg.vesting_duration_s!r}")

    if cfg.min_contribution > cfg.raise_target:
        raise ValueError(
            f"min_contribution must be <= raise_target; got: {cfg.min_contribution} > {cfg.raise_target}"
        )

    if cfg.raise_target * cfg.hatch_price * DENOMINATOR_PPM > MAX_UINT256:
        raise ValueError("raise_target * hatch_price is outside the uint256 range")


def default_token_config() -> TokenConfig:
    """Development defaults: kappa ~ 6, 35% theta, 2% friction, 10k raise."""
    return TokenConfig(
        name="Augmented Commons",
        symbol="AUG",
        token_address="@token",
        external_asset="wRES",
        funding_pool="@funding_pool",
        reserve_ratio=142_857,
        hatch_price=1,
        raise_target=10_000 * ONE,
        theta=350_000,
        friction=20_000,
        hatch_duration_s=5 * 7 * 24 * 60 * 60,
        vesting_duration_s=0,
        min_contribution=100 * ONE,
    )


def read_token_config_file(path: str) -> TokenConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("token config must be a JSON object")

    d = default_token_config()

    cfg = TokenConfig(
        name=_as_str(raw.get("name"), d.name),
        symbol=_as_str(raw.get("symbol"), d.symbol),
        token_address=_as_str(raw.get("token_address"), d.token_address),
        external_asset=_as_str(raw.get("external_asset"), d.external_asset),
        funding_pool=_as_str(raw.get("funding_pool"), d.funding_pool),
        reserve_ratio=_as_int(raw.get("reserve_ratio"), d.reserve_ratio),
        hatch_price=_as_int(raw.get("hatch_price"), d.hatch_price),
        raise_target=_as_int(raw.get("raise_target"), d.raise_target),
        theta=_as_int(raw.get("theta"), d.theta),
        friction=_as_int(raw.get("friction"), d.friction),
        hatch_duration_s=_as_int(raw.get("hatch_duration_s"), d.hatch_duration_s),
        vesting_duration_s=_as_int(raw.get("vesting_duration_s"), d.vesting_duration_s),
        min_contribution=_as_int(raw.get("min_contribution"), d.min_contribution),
        fee_recipient=_as_str(raw.get("fee_recipient"), "") or None,
    )

    validate_token_config(cfg)
    return cfg


def load_token_config(*, config_path: Optional[str] = None) -> TokenConfig:
    p = config_path or os.environ.get("AUGCURVE_TOKEN_CONFIG_PATH")
    if p:
        return read_token_config_file(p)

    cfg = default_token_config()
    validate_token_config(cfg)
    return cfg
