from __future__ import annotations

import logging

import pytest

from augcurve.assets.ledger import InMemoryAssetLedger
from augcurve.runtime import metrics, views
from augcurve.runtime.domain_apply import apply_tx_atomic
from augcurve.runtime.errors import ApplyError, CurveError
from augcurve.runtime.executor import ExecutorError, TokenExecutor
from augcurve.runtime.fixed_point import ONE
from augcurve.runtime.state_invariants import construct


def test_reentrant_call_from_transfer_hook_is_rejected(executor, ledger, fund) -> None:
    fund("@alice", 1_000 * ONE)
    fund("@mallory", 1_000 * ONE)

    seen = []

    def hook(t) -> None:
        seen.append(t)
        # tries to sneak a second contribution in while the first is settling
        executor.contribute("@mallory", 1_000 * ONE)

    ledger.add_hook(hook)
    before = executor.read_state()

    with pytest.raises(CurveError) as e:
        executor.contribute("@alice", 1_000 * ONE)
    assert e.value.code == "ReentrantCall"
    assert len(seen) == 1

    assert executor.read_state() == before
    assert ledger.balance_of("@alice") == 1_000 * ONE
    assert ledger.balance_of("@mallory") == 1_000 * ONE
    assert ledger.balance_of("@token") == 0


def test_unknown_operation_and_missing_signer(executor) -> None:
    with pytest.raises(CurveError) as e:
        executor.submit("SELF_DESTRUCT", "@alice")
    assert e.value.code == "UnknownOperation"

    with pytest.raises(CurveError) as e:
        executor.submit("CLAIM_TOKENS", "  ")
    assert e.value.code == "InvalidTx"
    assert e.value.reason == "missing_signer"

    assert executor.read_state()["seq"] == 0


def test_apply_tx_atomic_leaves_state_untouched_on_error(cfg, clock) -> None:
    st = construct(cfg, clock.now)
    before = repr(st)

    with pytest.raises(ApplyError):
        apply_tx_atomic(st, {"tx_type": "CURVE_MINT", "signer": "@buyer", "payload": {"deposit": ONE}, "ts": clock.now})
    assert repr(st) == before

    out = apply_tx_atomic(
        st,
        {"tx_type": "HATCH_CONTRIBUTE", "signer": "@alice", "payload": {"amount": 10 * ONE}, "ts": clock.now},
    )
    assert out["seq"] == 1
    assert st["seq"] == 1
    assert st["hatch"]["raised_external"] == 10 * ONE
    # the pull is described, not executed
    assert out["transfers"][0]["src"] == "@alice"
    assert out["transfers"][0]["spender"] == "@token"


def test_state_is_construct_time_stamped(executor, clock, cfg) -> None:
    st = executor.read_state()
    assert st["hatch"]["created_ts"] == clock.now
    assert st["hatch"]["deadline_ts"] == clock.now + cfg.hatch_duration_s
    assert st["config"] == cfg.to_json()


def test_ledger_for_another_asset_is_refused(cfg) -> None:
    with pytest.raises(ExecutorError):
        TokenExecutor(config=cfg, ledger=InMemoryAssetLedger("OTHER"))


def test_counters_gauges_and_event_log(hatched, fund, caplog) -> None:
    snap = metrics.snapshot()
    assert snap["counters"]['tx_applied_total{tx_type="HATCH_CONTRIBUTE"}'] == 2
    assert metrics.counter_total("tx_applied_total") == 2
    assert snap["gauges"]["hatched"] == 1
    assert snap["gauges"]["reserve_balance_tokens"] == 6_500
    assert snap["gauges"]["hatchers"] == 2
    assert snap["gauges"]["allocated_ratio_ppm"] == 0

    with caplog.at_level(logging.INFO, logger="augcurve.executor"):
        with pytest.raises(CurveError):
            hatched.mint("@nobody", ONE)

    assert metrics.counter_total("tx_rejected_total", tx_type="CURVE_MINT", code="TransferFailed") == 1
    assert any('"event":"tx_rejected"' in r.getMessage() for r in caplog.records)

    text = metrics.format_prometheus()
    assert "# TYPE augcurve_tx_applied_total counter\n" in text
    assert 'augcurve_tx_applied_total{tx_type="HATCH_CONTRIBUTE"} 2\n' in text
    assert 'augcurve_tx_rejected_total{code="TransferFailed",tx_type="CURVE_MINT"} 1\n' in text
    assert "augcurve_seq 2\n" in text


def test_read_state_is_a_copy(hatched) -> None:
    st = hatched.read_state()
    st["token"]["balances"]["@alice"] = 10**30
    assert views.balance_of(hatched.read_state(), "@alice") == 0
