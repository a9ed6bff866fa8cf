from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "augcurve" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from augcurve.assets.funding_pool import FundingPool  # noqa: E402
from augcurve.assets.ledger import InMemoryAssetLedger  # noqa: E402
from augcurve.runtime import metrics  # noqa: E402
from augcurve.runtime.executor import TokenExecutor  # noqa: E402
from augcurve.runtime.fixed_point import ONE  # noqa: E402
from augcurve.runtime.token_config import TokenConfig, default_token_config  # noqa: E402

T0 = 1_700_000_000
ISSUER = "@issuer"


class FakeClock:
    """Manually advanced wall clock (seconds)."""

    def __init__(self, now: int = T0) -> None:
        self.now = int(now)

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, seconds: int) -> None:
        self.now += int(seconds)


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cfg() -> TokenConfig:
    # 10k raise, 35% theta, 2% friction, kappa ~ 6, p0 = 1, no vesting delay
    return replace(default_token_config(), min_contribution=1 * ONE)


@pytest.fixture
def ledger(cfg: TokenConfig) -> InMemoryAssetLedger:
    return InMemoryAssetLedger(cfg.external_asset)


@pytest.fixture
def executor(cfg: TokenConfig, ledger: InMemoryAssetLedger, clock: FakeClock) -> TokenExecutor:
    return TokenExecutor(config=cfg, ledger=ledger, clock=clock)


@pytest.fixture
def pool(cfg: TokenConfig, ledger: InMemoryAssetLedger, executor: TokenExecutor) -> FundingPool:
    p = FundingPool(address=cfg.funding_pool, owner=ISSUER, ledger=ledger)
    p.add_listener(executor.notify_allocation)
    return p


@pytest.fixture
def hatched(executor: TokenExecutor, fund) -> TokenExecutor:
    """Executor whose hatch was completed by @alice and @bob (5000 each)."""
    fund("@alice", 5_000 * ONE)
    fund("@bob", 5_000 * ONE)
    executor.contribute("@alice", 5_000 * ONE)
    executor.contribute("@bob", 5_000 * ONE)
    return executor


@pytest.fixture
def fund(ledger: InMemoryAssetLedger, cfg: TokenConfig):
    """fund(account, amount): give reserve asset and approve the custody to pull it."""

    def _fund(account: str, amount: int) -> None:
        ledger.mint(account, amount)
        spender = cfg.token_address
        ledger.approve(account, spender, ledger.allowance(account, spender) + amount)

    return _fund
