# src/augcurve/runtime/fixed_point.py
from __future__ import annotations

"""Integer amount helpers.

All amounts are plain ints in the smallest unit of an 18-decimal token
(1 token == 10**18 units). Percentages are parts-per-million (ppm) with
DENOMINATOR_PPM == 1_000_000.

Python ints never overflow, but the ledger keeps amounts inside the uint256
range so persisted state stays portable to 256-bit accounting. Every helper here
raises CurveError(ArithmeticOverflow) instead of silently producing an
out-of-range value.
"""

from typing import Any

from augcurve.runtime.errors import ARITHMETIC_OVERFLOW, INVALID_AMOUNT, CurveError

DECIMALS: int = 18
ONE: int = 10**DECIMALS
DENOMINATOR_PPM: int = 1_000_000
MAX_UINT256: int = (1 << 256) - 1


def to_units(value: Any) -> int:
    """Whole tokens -> smallest units (accepts ints and decimal strings)."""
    s = str(value).strip()
    if not s:
        raise ValueError("empty amount")
    neg = s.startswith("-")
    if neg:
        s = s[1:]
    whole, _, frac = s.partition(".")
    if len(frac) > DECIMALS:
        raise ValueError(f"too many decimals: {value!r}")
    units = int(whole or "0") * ONE + int((frac or "0").ljust(DECIMALS, "0"))
    return -units if neg else units


def from_units(units: int) -> str:
    """Smallest units -> decimal string without trailing zeros."""
    u = int(units)
    sign = "-" if u < 0 else ""
    whole, frac = divmod(abs(u), ONE)
    if not frac:
        return f"{sign}{whole}"
    return f"{sign}{whole}." + str(frac).rjust(DECIMALS, "0").rstrip("0")


def check_uint(v: Any, *, name: str = "amount") -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise CurveError(INVALID_AMOUNT, "not_an_integer", {"field": name, "value": repr(v)})
    if v < 0:
        raise CurveError(INVALID_AMOUNT, "negative_amount", {"field": name, "value": v})
    if v > MAX_UINT256:
        raise CurveError(ARITHMETIC_OVERFLOW, "uint256_range", {"field": name})
    return v


def parse_amount(v: Any, *, name: str = "amount") -> int:
    """Payload amount -> int. Accepts ints and base-10 digit strings (JSON clients)."""
    if isinstance(v, str):
        s = v.strip()
        if not s.isdigit():
            raise CurveError(INVALID_AMOUNT, "not_an_integer", {"field": name, "value": v})
        v = int(s)
    return check_uint(v, name=name)


def safe_add(a: int, b: int) -> int:
    r = int(a) + int(b)
    if r > MAX_UINT256:
        raise CurveError(ARITHMETIC_OVERFLOW, "add_overflow", {"a": a, "b": b})
    return r


def safe_sub(a: int, b: int) -> int:
    r = int(a) - int(b)
    if r < 0:
        raise CurveError(ARITHMETIC_OVERFLOW, "sub_underflow", {"a": a, "b": b})
    return r


def safe_mul(a: int, b: int) -> int:
    r = int(a) * int(b)
    if r > MAX_UINT256:
        raise CurveError(ARITHMETIC_OVERFLOW, "mul_overflow", {"a": a, "b": b})
    return r


def safe_div(a: int, b: int) -> int:
    if int(b) == 0:
        raise CurveError(ARITHMETIC_OVERFLOW, "division_by_zero", {"a": a})
    return int(a) // int(b)


def mul_div(a: int, b: int, d: int) -> int:
    """floor(a * b / d); the product is checked against the uint256 range."""
    return safe_div(safe_mul(a, b), d)


def ppm_of(amount: int, ppm: int) -> int:
    """floor(amount * ppm / 1e6)."""
    return mul_div(amount, ppm, DENOMINATOR_PPM)


def check_ppm(v: Any, *, name: str, allow_zero: bool = True, allow_full: bool = True) -> int:
    """Validate a ppm value; raises ValueError (config-time check)."""
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValueError(f"{name} must be an integer ppm value; got: {v!r}")
    lo = 0 if allow_zero else 1
    hi = DENOMINATOR_PPM if allow_full else DENOMINATOR_PPM - 1
    if v < lo or v > hi:
        raise ValueError(f"{name} must be in {lo}..{hi} ppm; got: {v}")
    return v


__all__ = [
    "DECIMALS",
    "ONE",
    "DENOMINATOR_PPM",
    "MAX_UINT256",
    "to_units",
    "from_units",
    "check_uint",
    "parse_amount",
    "safe_add",
    "safe_sub",
    "safe_mul",
    "safe_div",
    "mul_div",
    "ppm_of",
    "check_ppm",
]
