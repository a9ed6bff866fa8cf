# src/augcurve/runtime/curve_math.py
from __future__ import annotations

"""Bonding curve numerics (continuous reserve formula).

Purchase:
    return = supply * ((1 + deposit / reserve) ^ (ratio / 1e6) - 1)

Sale:
    return = reserve * (1 - (1 - sell / supply) ^ (1e6 / ratio))

`ratio` is the reserve ratio in ppm (kappa ~ 6 curves use ratio ~ 142857).

Powers are computed as e ^ (ln(base) * exp) on binary fixed-point integers
with 127 fractional bits:

  - fixed_ln walks log2 bit by bit (one squaring per fractional bit) and then
    scales by ln(2). The result is floored.
  - fixed_exp reduces x by multiples of ln(2) and sums the Maclaurin series of
    the remainder (< ln 2) until terms vanish. Every term is floored.

Precision: both steps are accurate to a few units of 2^-127 relative error for
exponents produced by uint256 inputs, so for 18-decimal amounts below 10^40 the
returned values are within 1 unit of the exact real result and never above it
by more than that unit. Both formulas round down, in favour of the reserve.

Degenerate inputs (zero supply, zero reserve, zero amount, ratio outside
(0, 1e6]) raise InvalidCurveInput rather than returning 0 so callers never
mint or pay out against an empty curve.
"""

from typing import Any

from augcurve.runtime.errors import (
    ARITHMETIC_OVERFLOW,
    INSUFFICIENT_SUPPLY,
    INVALID_CURVE_INPUT,
    CurveError,
)
from augcurve.runtime.fixed_point import DENOMINATOR_PPM, MAX_UINT256, ONE

MAX_PRECISION = 127
FIXED_1 = 1 << MAX_PRECISION
FIXED_2 = 1 << (MAX_PRECISION + 1)

# ln(2) * 2^122, floored
LN2_MANTISSA = 0x2C5C85FDF473DE6AF278ECE600FCBDA
LN2_EXPONENT = 122
LN2_FIXED = LN2_MANTISSA << (MAX_PRECISION - LN2_EXPONENT)


def floor_log2(n: int) -> int:
    if n < 1:
        raise ValueError("floor_log2 requires n >= 1")
    return n.bit_length() - 1


def fixed_ln(numerator: int, denominator: int) -> int:
    """Return floor(ln(numerator / denominator) * 2^127); requires numerator >= denominator >= 1."""
    if denominator < 1 or numerator < denominator:
        raise ValueError("fixed_ln requires numerator >= denominator >= 1")

    res = 0
    x = numerator * FIXED_1 // denominator

    # integer part of log2(x)
    if x >= FIXED_2:
        count = floor_log2(x // FIXED_1)
        x >>= count  # now 1 <= x < 2
        res = count * FIXED_1

    # fractional part of log2(x)
    if x > FIXED_1:
        for i in range(MAX_PRECISION, 0, -1):
            x = (x * x) // FIXED_1  # now 1 < x < 4
            if x >= FIXED_2:
                x >>= 1
                res += 1 << (i - 1)

    return (res * LN2_MANTISSA) >> LN2_EXPONENT


def fixed_exp(x: int) -> int:
    """Return e^(x / 2^127) * 2^127 for x >= 0."""
    if x < 0:
        raise ValueError("fixed_exp requires x >= 0")

    k, r = divmod(x, LN2_FIXED)

    total = FIXED_1
    term = FIXED_1
    i = 1
    while True:
        term = (term * r) // (FIXED_1 * i)
        if term == 0:
            break
        total += term
        i += 1

    return total << k


def fixed_power(base_n: int, base_d: int, exp_n: int, exp_d: int) -> int:
    """Return (base_n / base_d) ^ (exp_n / exp_d) * 2^127 for base_n >= base_d."""
    if exp_d <= 0 or exp_n < 0:
        raise ValueError("fixed_power requires exp_n >= 0 and exp_d > 0")
    if base_n == base_d or exp_n == 0:
        return FIXED_1
    return fixed_exp(fixed_ln(base_n, base_d) * exp_n // exp_d)


def _check_input(v: Any, name: str) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise CurveError(INVALID_CURVE_INPUT, "not_an_integer", {"field": name, "value": repr(v)})
    if v < 0:
        raise CurveError(INVALID_CURVE_INPUT, "negative_input", {"field": name, "value": v})
    if v > MAX_UINT256:
        raise CurveError(ARITHMETIC_OVERFLOW, "uint256_range", {"field": name})
    return v


def _check_curve(supply: Any, reserve_balance: Any, reserve_ratio: Any, amount: Any, amount_name: str) -> None:
    s = _check_input(supply, "supply")
    r = _check_input(reserve_balance, "reserve_balance")
    k = _check_input(reserve_ratio, "reserve_ratio")
    a = _check_input(amount, amount_name)

    if s == 0 or r == 0 or a == 0:
        raise CurveError(
            INVALID_CURVE_INPUT,
            "zero_input",
            {"supply": s, "reserve_balance": r, amount_name: a},
        )
    if k == 0 or k > DENOMINATOR_PPM:
        raise CurveError(INVALID_CURVE_INPUT, "bad_reserve_ratio", {"reserve_ratio": k})


def _check_result(v: int) -> int:
    if v > MAX_UINT256:
        raise CurveError(ARITHMETIC_OVERFLOW, "result_out_of_range", {})
    return v


def calculate_purchase_return(supply: int, reserve_balance: int, reserve_ratio: int, deposit_amount: int) -> int:
    """Internal tokens minted for `deposit_amount` of reserve asset."""
    _check_curve(supply, reserve_balance, reserve_ratio, deposit_amount, "deposit_amount")

    if reserve_ratio == DENOMINATOR_PPM:
        return _check_result(supply * deposit_amount // reserve_balance)

    result = fixed_power(reserve_balance + deposit_amount, reserve_balance, reserve_ratio, DENOMINATOR_PPM)
    temp = (supply * result) >> MAX_PRECISION
    return _check_result(max(0, temp - supply))


def calculate_sale_return(supply: int, reserve_balance: int, reserve_ratio: int, sell_amount: int) -> int:
    """Reserve asset returned for burning `sell_amount` internal tokens."""
    _check_curve(supply, reserve_balance, reserve_ratio, sell_amount, "sell_amount")
    if sell_amount > supply:
        raise CurveError(INSUFFICIENT_SUPPLY, "sell_exceeds_supply", {"supply": supply, "sell_amount": sell_amount})

    # selling the entire supply drains the reserve
    if sell_amount == supply:
        return reserve_balance

    if reserve_ratio == DENOMINATOR_PPM:
        return reserve_balance * sell_amount // supply

    result = fixed_power(supply, supply - sell_amount, DENOMINATOR_PPM, reserve_ratio)
    return (reserve_balance * result - (reserve_balance << MAX_PRECISION)) // result


def spot_price(supply: int, reserve_balance: int, reserve_ratio: int) -> int:
    """Marginal price of one whole internal token, in reserve units (18-decimal)."""
    if supply <= 0 or reserve_balance <= 0 or reserve_ratio <= 0:
        return 0
    return reserve_balance * ONE * DENOMINATOR_PPM // (supply * reserve_ratio)


__all__ = [
    "MAX_PRECISION",
    "FIXED_1",
    "fixed_ln",
    "fixed_exp",
    "fixed_power",
    "calculate_purchase_return",
    "calculate_sale_return",
    "spot_price",
]
