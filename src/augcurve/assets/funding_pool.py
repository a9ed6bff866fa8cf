# src/augcurve/assets/funding_pool.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

from augcurve.assets.ledger import AssetLedger, Transfer
from augcurve.runtime import metrics
from augcurve.runtime.errors import INVALID_AMOUNT, CurveError
from augcurve.runtime.event_log import log_event

Json = Dict[str, Any]

# (pool_address, withdrawn_amount) -> None
AllocationListener = Callable[[str, int], Any]

_log = logging.getLogger("augcurve.funding_pool")


class FundingPool:
    """Custodian of diverted proceeds (hatch theta split, burn friction).

    Only the owner may allocate funds. After the asset transfer has settled,
    every registered listener receives an allocation notice. A token executor
    subscribes with `pool.add_listener(executor.notify_allocation)`.

    A listener that rejects the notice does not undo the payout: the error is
    logged and re-raised to the caller.
    """

    def __init__(self, *, address: str, owner: str, ledger: AssetLedger) -> None:
        self.address = str(address)
        self.owner = str(owner)
        self._ledger = ledger
        self._listeners: List[AllocationListener] = []

    def add_listener(self, fn: AllocationListener) -> None:
        self._listeners.append(fn)

    def balance(self) -> int:
        return self._ledger.balance_of(self.address)

    def allocate_funds(self, caller: str, beneficiary: str, amount: int) -> Json:
        if str(caller) != self.owner:
            raise CurveError("forbidden", "not_pool_owner", {"caller": caller})
        amt = int(amount)
        if amt <= 0:
            raise CurveError(INVALID_AMOUNT, "zero_amount", {"field": "amount"})

        self._ledger.execute([Transfer(self._ledger.asset, self.address, str(beneficiary), amt)])
        metrics.inc_counter("pool_allocations_total")
        log_event(_log, "pool_allocated", pool=self.address, beneficiary=str(beneficiary), amount=amt)

        notified = 0
        for fn in list(self._listeners):
            try:
                fn(self.address, amt)
            except Exception as e:
                metrics.inc_counter("pool_notify_failures_total")
                log_event(
                    _log,
                    "pool_notify_failed",
                    pool=self.address,
                    amount=amt,
                    error=str(e),
                )
                raise
            notified += 1

        return {"ok": True, "beneficiary": str(beneficiary), "amount": amt, "notified": notified}
