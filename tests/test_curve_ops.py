from __future__ import annotations

import math
from dataclasses import replace

import pytest

from augcurve.assets.ledger import InMemoryAssetLedger
from augcurve.runtime import views
from augcurve.runtime.curve_math import calculate_purchase_return, calculate_sale_return
from augcurve.runtime.errors import CurveError
from augcurve.runtime.executor import TokenExecutor
from augcurve.runtime.fixed_point import ONE
from augcurve.runtime.state_invariants import check_invariants


def test_mint_before_hatch_is_rejected(executor, fund) -> None:
    fund("@buyer", 100 * ONE)
    with pytest.raises(CurveError) as e:
        executor.mint("@buyer", 100 * ONE)
    assert e.value.code == "NotHatchedYet"

    with pytest.raises(CurveError) as e:
        executor.burn("@buyer", ONE)
    assert e.value.code == "NotHatchedYet"


def test_mint_prices_against_post_deposit_reserve(hatched, ledger, fund, cfg) -> None:
    fund("@buyer", 1_000 * ONE)

    quote = views.quote_mint(hatched.read_state(), 1_000 * ONE)
    out = hatched.mint("@buyer", 1_000 * ONE)

    # supply 6500, reserve 6500 + 1000 deposited
    expected = calculate_purchase_return(6_500 * ONE, 7_500 * ONE, cfg.reserve_ratio, 1_000 * ONE)
    assert out["minted"] == expected == quote["minted"]
    assert expected == pytest.approx(6_500 * ONE * math.expm1(0.142857 * math.log1p(1_000 / 7_500)), rel=1e-9)
    assert expected < calculate_purchase_return(6_500 * ONE, 6_500 * ONE, cfg.reserve_ratio, 1_000 * ONE)

    st = hatched.read_state()
    assert views.balance_of(st, "@buyer") == expected
    assert views.total_supply(st) == 6_500 * ONE + expected
    assert views.pool_balance(st) == 7_500 * ONE
    assert ledger.balance_of("@token") == 7_500 * ONE
    assert ledger.balance_of("@buyer") == 0
    assert check_invariants(st) == []


def test_price_rises_after_mint_and_falls_after_burn(hatched, fund) -> None:
    p0 = views.curve_price(hatched.read_state())

    fund("@buyer", 2_000 * ONE)
    minted = hatched.mint("@buyer", 2_000 * ONE)["minted"]
    p1 = views.curve_price(hatched.read_state())
    assert p1 > p0

    hatched.burn("@buyer", minted // 2)
    p2 = views.curve_price(hatched.read_state())
    assert p0 < p2 < p1


def test_burn_splits_friction_to_pool(hatched, ledger, fund, cfg) -> None:
    fund("@buyer", 1_000 * ONE)
    minted = hatched.mint("@buyer", 1_000 * ONE)["minted"]
    pool_before = ledger.balance_of(cfg.funding_pool)

    st = hatched.read_state()
    gross = calculate_sale_return(views.total_supply(st), views.pool_balance(st), cfg.reserve_ratio, minted)
    fee = gross * cfg.friction // 1_000_000

    out = hatched.burn("@buyer", minted)
    assert out["gross_return"] == gross
    assert out["friction_fee"] == fee
    assert out["net_return"] == gross - fee

    # round trip never pays out more than was deposited
    assert gross <= 1_000 * ONE
    assert out["net_return"] < 1_000 * ONE
    assert ledger.balance_of("@buyer") == gross - fee
    assert ledger.balance_of(cfg.funding_pool) == pool_before + fee

    st = hatched.read_state()
    assert views.balance_of(st, "@buyer") == 0
    assert views.total_supply(st) == 6_500 * ONE
    assert views.pool_balance(st) == 7_500 * ONE - gross
    assert ledger.balance_of("@token") == views.pool_balance(st)
    assert check_invariants(st) == []


def test_burn_friction_goes_to_configured_fee_recipient(cfg, clock) -> None:
    cfg = replace(cfg, fee_recipient="@treasury")
    ledger = InMemoryAssetLedger(cfg.external_asset)
    ex = TokenExecutor(config=cfg, ledger=ledger, clock=clock)
    for account, amount in (("@alice", 10_000 * ONE), ("@buyer", 1_000 * ONE)):
        ledger.mint(account, amount)
        ledger.approve(account, cfg.token_address, amount)

    ex.contribute("@alice", 10_000 * ONE)
    minted = ex.mint("@buyer", 1_000 * ONE)["minted"]
    out = ex.burn("@buyer", minted)

    assert out["friction_fee"] > 0
    assert out["fee_recipient"] == "@treasury"
    assert ledger.balance_of("@treasury") == out["friction_fee"]
    # the hatch split still seeds the funding pool
    assert ledger.balance_of(cfg.funding_pool) == 3_500 * ONE
    assert ledger.balance_of(cfg.token_address) == views.pool_balance(ex.read_state())

def test_burn_more_than_balance_is_rejected(hatched, fund) -> None:
    fund("@buyer", 10 * ONE)
    minted = hatched.mint("@buyer", 10 * ONE)["minted"]

    with pytest.raises(CurveError) as e:
        hatched.burn("@buyer", minted + 1)
    assert e.value.code == "InsufficientBalance"


def test_zero_amounts_are_invalid_curve_input(hatched, fund) -> None:
    fund("@buyer", ONE)
    with pytest.raises(CurveError) as e:
        hatched.mint("@buyer", 0)
    assert e.value.code == "InvalidCurveInput"


def test_slippage_guards(hatched, ledger, fund) -> None:
    fund("@buyer", 100 * ONE)
    st = hatched.read_state()
    quoted = views.quote_mint(st, 100 * ONE)["minted"]

    with pytest.raises(CurveError) as e:
        hatched.mint("@buyer", 100 * ONE, min_return=quoted + 1)
    assert e.value.code == "SlippageExceeded"
    assert ledger.balance_of("@buyer") == 100 * ONE

    minted = hatched.mint("@buyer", 100 * ONE, min_return=quoted)["minted"]
    q = views.quote_burn(hatched.read_state(), minted)

    with pytest.raises(CurveError) as e:
        hatched.burn("@buyer", minted, min_return=q["net_return"] + 1)
    assert e.value.code == "SlippageExceeded"

    out = hatched.burn("@buyer", minted, min_return=q["net_return"])
    assert out["net_return"] == q["net_return"]


def test_mint_without_allowance_rolls_back(hatched, ledger) -> None:
    ledger.mint("@buyer", 50 * ONE)
    before = hatched.read_state()

    with pytest.raises(CurveError) as e:
        hatched.mint("@buyer", 50 * ONE)
    assert e.value.code == "TransferFailed"
    assert hatched.read_state() == before


def test_second_identical_purchase_mints_less(hatched, fund) -> None:
    fund("@buyer", 1_000 * ONE)
    first = hatched.mint("@buyer", 500 * ONE)["minted"]
    second = hatched.mint("@buyer", 500 * ONE)["minted"]
    assert 0 < second < first


def test_second_identical_sale_pays_less(hatched, fund) -> None:
    fund("@buyer", 2_000 * ONE)
    minted = hatched.mint("@buyer", 2_000 * ONE)["minted"]
    lot = minted // 3

    first = hatched.burn("@buyer", lot)
    second = hatched.burn("@buyer", lot)
    assert 0 < second["gross_return"] < first["gross_return"]
    assert second["net_return"] < first["net_return"]


def test_mint_with_2000_after_even_hatch(hatched, fund, cfg) -> None:
    fund("@buyer", 2_000 * ONE)
    minted = hatched.mint("@buyer", 2_000 * ONE)["minted"]
    assert minted == calculate_purchase_return(6_500 * ONE, 8_500 * ONE, cfg.reserve_ratio, 2_000 * ONE)
    assert minted == pytest.approx(6_500 * ONE * math.expm1(0.142857 * math.log1p(2_000 / 8_500)), rel=1e-9)
