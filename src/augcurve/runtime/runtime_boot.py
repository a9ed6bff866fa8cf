# src/augcurve/runtime/runtime_boot.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from augcurve.assets.funding_pool import FundingPool
from augcurve.assets.ledger import InMemoryAssetLedger
from augcurve.runtime.executor import TokenExecutor
from augcurve.runtime.token_config import TokenConfig, load_token_config


@dataclass
class TokenRuntime:
    """Everything the API serves: the token executor and its collaborators."""

    executor: TokenExecutor
    ledger: InMemoryAssetLedger
    pool: FundingPool


def build_runtime(cfg: Optional[TokenConfig] = None) -> TokenRuntime:
    """
    Wire a token executor to an in-memory reserve asset ledger and a funding
    pool whose allocation notices drive the vesting ledger.

    Environment:
      AUGCURVE_TOKEN_CONFIG_PATH  token config JSON (see load_token_config)
      AUGCURVE_DB_PATH            optional sqlite snapshot/journal path
      AUGCURVE_POOL_OWNER         account allowed to allocate pool funds
    """
    c = cfg or load_token_config()
    ledger = InMemoryAssetLedger(c.external_asset)

    db_path = (os.environ.get("AUGCURVE_DB_PATH") or "").strip()
    if db_path:
        ex = TokenExecutor.with_sqlite(db_path=db_path, config=c, ledger=ledger)
    else:
        ex = TokenExecutor(config=c, ledger=ledger)

    owner = (os.environ.get("AUGCURVE_POOL_OWNER") or "@issuer").strip()
    pool = FundingPool(address=c.funding_pool, owner=owner, ledger=ledger)
    pool.add_listener(ex.notify_allocation)

    return TokenRuntime(executor=ex, ledger=ledger, pool=pool)
