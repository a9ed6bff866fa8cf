from __future__ import annotations

from dataclasses import replace

import pytest

from augcurve.assets.funding_pool import FundingPool
from augcurve.runtime import views
from augcurve.runtime.errors import CurveError
from augcurve.runtime.executor import TokenExecutor
from augcurve.runtime.fixed_point import ONE
from augcurve.runtime.state_invariants import check_invariants

ISSUER = "@issuer"


def test_claim_before_any_allocation_unlocks_nothing(hatched) -> None:
    out = hatched.claim("@alice")
    assert out["unlocked"] == 0
    assert views.balance_of(hatched.read_state(), "@alice") == 0


def test_allocation_unlocks_pro_rata(hatched, pool, ledger) -> None:
    pool.allocate_funds(ISSUER, "@studio", 2_500 * ONE)
    assert ledger.balance_of("@studio") == 2_500 * ONE

    st = hatched.read_state()
    assert st["vesting"]["cumulative_allocated"] == 2_500 * ONE
    assert st["vesting"]["total_allocated_ratio"] == 250_000
    assert st["vesting"]["first_allocation_ts"] is not None

    assert hatched.claim("@alice")["unlocked"] == 1_250 * ONE
    assert hatched.claim("@alice")["unlocked"] == 0

    pool.allocate_funds(ISSUER, "@studio", 1_000 * ONE)
    assert hatched.claim("@alice")["unlocked"] == 500 * ONE
    assert hatched.claim("@bob")["unlocked"] == 1_750 * ONE

    st = hatched.read_state()
    assert views.balance_of(st, "@alice") == 1_750 * ONE
    assert views.initial_contributions(st, "@alice") == (5_000 * ONE, 3_250 * ONE)
    assert views.total_supply(st) == 6_500 * ONE + 3_500 * ONE
    assert check_invariants(st) == []


def test_unlock_ratio_caps_at_full(cfg, ledger, clock, fund) -> None:
    """An attacker churning the curve enriches the pool past the raise; hatchers
    can still never unlock more than they locked."""
    ex = TokenExecutor(config=cfg, ledger=ledger, clock=clock)
    pool = FundingPool(address=cfg.funding_pool, owner=ISSUER, ledger=ledger)
    pool.add_listener(ex.notify_allocation)

    fund("@hatcher", 10_000 * ONE)
    ex.contribute("@hatcher", 10_000 * ONE)

    fund("@buyer", 1_000_000 * ONE)
    ex.mint("@buyer", 1_000_000 * ONE)
    ex.burn("@buyer", views.balance_of(ex.read_state(), "@buyer"))

    balance = pool.balance()
    assert balance > 10_000 * ONE
    pool.allocate_funds(ISSUER, "@issuer", balance)

    st = ex.read_state()
    assert st["vesting"]["total_allocated_ratio"] == 1_000_000
    locked = views.initial_contributions(st, "@hatcher")[1]

    ex.claim("@hatcher")
    st = ex.read_state()
    assert views.balance_of(st, "@hatcher") == locked == 10_000 * ONE
    assert views.initial_contributions(st, "@hatcher")[1] == 0
    assert ex.claim("@hatcher")["unlocked"] == 0


def test_vesting_delay_blocks_claims(cfg, ledger, clock, fund) -> None:
    cfg = replace(cfg, vesting_duration_s=3_600)
    ex = TokenExecutor(config=cfg, ledger=ledger, clock=clock)
    pool = FundingPool(address=cfg.funding_pool, owner=ISSUER, ledger=ledger)
    pool.add_listener(ex.notify_allocation)

    fund("@alice", 10_000 * ONE)
    ex.contribute("@alice", 10_000 * ONE)
    pool.allocate_funds(ISSUER, "@studio", 1_000 * ONE)

    clock.advance(1_800)
    with pytest.raises(CurveError) as e:
        ex.claim("@alice")
    assert e.value.code == "VestingNotElapsed"

    # a later notice does not restart the clock
    pool.allocate_funds(ISSUER, "@studio", 1_000 * ONE)

    clock.advance(1_800)
    assert ex.claim("@alice")["unlocked"] == 2_000 * ONE
    assert views.vesting_status(ex.read_state())["notifications"] == 2


def test_only_the_funding_pool_may_notify(hatched) -> None:
    with pytest.raises(CurveError) as e:
        hatched.notify_allocation("@alice", 1_000 * ONE)
    assert e.value.code == "NotFundingPool"

    with pytest.raises(CurveError) as e:
        hatched.notify_allocation("@funding_pool", 0)
    assert e.value.code == "InvalidAmount"


def test_notify_before_hatch_is_rejected(executor) -> None:
    with pytest.raises(CurveError) as e:
        executor.notify_allocation("@funding_pool", ONE)
    assert e.value.code == "NotHatchedYet"


def test_claim_errors(executor, hatched) -> None:
    with pytest.raises(CurveError) as e:
        hatched.claim("@carol")
    assert e.value.code == "NoContribution"


def test_claim_before_hatch_is_rejected(executor, fund) -> None:
    fund("@alice", 100 * ONE)
    executor.contribute("@alice", 100 * ONE)
    with pytest.raises(CurveError) as e:
        executor.claim("@alice")
    assert e.value.code == "NotHatchedYet"


def test_only_owner_allocates_and_failed_notice_is_reported(executor, pool, ledger) -> None:
    with pytest.raises(CurveError) as e:
        pool.allocate_funds("@mallory", "@mallory", ONE)
    assert e.value.code == "forbidden"

    # pool has no funds before the hatch completes
    with pytest.raises(CurveError) as e:
        pool.allocate_funds(ISSUER, "@studio", ONE)
    assert e.value.code == "TransferFailed"

    # funds sent straight to the pool can be paid out, but the token rejects
    # the notice while the hatch is open
    ledger.mint("@funding_pool", ONE)
    with pytest.raises(CurveError) as e:
        pool.allocate_funds(ISSUER, "@studio", ONE)
    assert e.value.code == "NotHatchedYet"
    assert ledger.balance_of("@studio") == ONE
