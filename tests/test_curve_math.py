from __future__ import annotations

import math

import pytest

from augcurve.runtime.curve_math import (
    FIXED_1,
    calculate_purchase_return,
    calculate_sale_return,
    fixed_exp,
    fixed_ln,
    fixed_power,
    spot_price,
)
from augcurve.runtime.errors import CurveError
from augcurve.runtime.fixed_point import ONE

KAPPA6 = 142_857
SUPPLY = 6_500 * ONE
RESERVE = 6_500 * ONE


def _purchase_ref(supply: int, reserve: int, ratio: int, deposit: int) -> float:
    return supply * math.expm1(ratio / 1e6 * math.log1p(deposit / reserve))


def _sale_ref(supply: int, reserve: int, ratio: int, sell: int) -> float:
    return -reserve * math.expm1(1e6 / ratio * math.log1p(-sell / supply))


def test_fixed_ln_and_exp_match_floats() -> None:
    assert fixed_ln(1, 1) == 0
    assert fixed_ln(2, 1) / FIXED_1 == pytest.approx(math.log(2), rel=1e-15)
    assert fixed_ln(1000, 7) / FIXED_1 == pytest.approx(math.log(1000 / 7), rel=1e-15)

    assert fixed_exp(0) == FIXED_1
    assert fixed_exp(FIXED_1) / FIXED_1 == pytest.approx(math.e, rel=1e-15)
    assert fixed_exp(10 * FIXED_1) / FIXED_1 == pytest.approx(math.exp(10), rel=1e-15)

    assert fixed_power(3, 2, 1, 2) / FIXED_1 == pytest.approx(math.sqrt(1.5), rel=1e-15)


def test_fixed_ln_of_powers_of_two_is_exact() -> None:
    assert fixed_ln(4, 1) == 2 * fixed_ln(2, 1)
    assert fixed_ln(8, 2) == fixed_ln(4, 1)


@pytest.mark.parametrize("deposit", [1, 10**12, ONE, 1_000 * ONE, 1_000_000 * ONE])
def test_purchase_return_matches_formula(deposit: int) -> None:
    got = calculate_purchase_return(SUPPLY, RESERVE, KAPPA6, deposit)
    want = _purchase_ref(SUPPLY, RESERVE, KAPPA6, deposit)
    assert got == pytest.approx(want, rel=1e-9, abs=2)


@pytest.mark.parametrize("sell", [1, ONE, 1_000 * ONE, 6_000 * ONE])
def test_sale_return_matches_formula(sell: int) -> None:
    got = calculate_sale_return(SUPPLY, RESERVE, KAPPA6, sell)
    want = _sale_ref(SUPPLY, RESERVE, KAPPA6, sell)
    assert got == pytest.approx(want, rel=1e-9, abs=2)


def test_purchase_return_is_monotone_in_deposit() -> None:
    prev = 0
    for d in [ONE, 2 * ONE, 5 * ONE, 50 * ONE, 500 * ONE, 5_000 * ONE]:
        cur = calculate_purchase_return(SUPPLY, RESERVE, KAPPA6, d)
        assert cur > prev
        prev = cur


def test_round_trip_never_profits() -> None:
    for d in [ONE, 123 * ONE + 7, 10_000 * ONE]:
        minted = calculate_purchase_return(SUPPLY, RESERVE, KAPPA6, d)
        back = calculate_sale_return(SUPPLY + minted, RESERVE + d, KAPPA6, minted)
        assert back <= d
        assert back == pytest.approx(d, rel=1e-9)


def test_linear_special_case() -> None:
    assert calculate_purchase_return(1_000, 500, 1_000_000, 50) == 100
    assert calculate_sale_return(1_000, 500, 1_000_000, 100) == 50


def test_selling_entire_supply_returns_entire_reserve() -> None:
    assert calculate_sale_return(SUPPLY, RESERVE, KAPPA6, SUPPLY) == RESERVE


def test_degenerate_inputs_are_rejected() -> None:
    for args in [(0, RESERVE, KAPPA6, ONE), (SUPPLY, 0, KAPPA6, ONE), (SUPPLY, RESERVE, KAPPA6, 0)]:
        with pytest.raises(CurveError) as e:
            calculate_purchase_return(*args)
        assert e.value.code == "InvalidCurveInput"

    for ratio in (0, 1_000_001):
        with pytest.raises(CurveError) as e:
            calculate_sale_return(SUPPLY, RESERVE, ratio, ONE)
        assert e.value.reason == "bad_reserve_ratio"

    with pytest.raises(CurveError) as e:
        calculate_sale_return(SUPPLY, RESERVE, KAPPA6, SUPPLY + 1)
    assert e.value.code == "InsufficientSupply"

    with pytest.raises(CurveError) as e:
        calculate_purchase_return(SUPPLY, RESERVE, KAPPA6, -5)
    assert e.value.code == "InvalidCurveInput"


def test_spot_price() -> None:
    # reserve / (supply * ratio) with supply == reserve and kappa ~ 6 -> ~7 per token
    p = spot_price(SUPPLY, RESERVE, KAPPA6)
    assert p == pytest.approx(7 * ONE, rel=1e-5)
    assert spot_price(0, RESERVE, KAPPA6) == 0
