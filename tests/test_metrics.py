from __future__ import annotations

import pytest

from augcurve.runtime import metrics, views
from augcurve.runtime.errors import CurveError
from augcurve.runtime.fixed_point import ONE

ISSUER = "@issuer"


def test_undeclared_metrics_are_refused() -> None:
    with pytest.raises(ValueError):
        metrics.inc_counter("tx_made_up_total")
    with pytest.raises(ValueError):
        metrics.set_gauge("made_up", 1)


def test_every_exported_gauge_has_help_text(hatched) -> None:
    text = metrics.format_prometheus()
    for name in metrics.snapshot()["gauges"]:
        assert f"# HELP augcurve_{name} {metrics.GAUGES[name]}\n" in text
        assert f"# TYPE augcurve_{name} gauge\n" in text


def test_state_gauges_follow_curve_and_vesting(hatched, pool, fund) -> None:
    gauges = metrics.snapshot()["gauges"]
    assert gauges["spot_price_micro"] == views.curve_price(hatched.read_state()) * 1_000_000 // ONE
    assert gauges["spot_price_micro"] > 1_000_000
    assert gauges["total_supply_tokens"] == 6_500
    assert gauges["raised_external_tokens"] == 10_000

    pool.allocate_funds(ISSUER, "@studio", 2_500 * ONE)
    assert metrics.snapshot()["gauges"]["allocated_ratio_ppm"] == 250_000
    assert metrics.counter_total("pool_allocations_total") == 1
    assert metrics.counter_total("tx_applied_total", tx_type="ALLOCATION_NOTIFY") == 1


def test_rejected_notice_is_counted(executor, pool, ledger) -> None:
    ledger.mint("@funding_pool", ONE)
    with pytest.raises(CurveError):
        pool.allocate_funds(ISSUER, "@studio", ONE)

    assert metrics.counter_total("pool_allocations_total") == 1
    assert metrics.counter_total("pool_notify_failures_total") == 1
    assert metrics.counter_total("tx_rejected_total", code="NotHatchedYet") == 1


def test_reset_clears_everything(hatched) -> None:
    metrics.reset()
    snap = metrics.snapshot()
    assert snap["counters"] == {}
    assert snap["gauges"] == {}
