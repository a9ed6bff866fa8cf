from __future__ import annotations

import copy
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from augcurve.assets.ledger import AssetLedger, Transfer
from augcurve.runtime import metrics
from augcurve.runtime.domain_apply import ApplyError, apply_tx_atomic
from augcurve.runtime.errors import REENTRANT_CALL, CurveError
from augcurve.runtime.event_log import log_event
from augcurve.runtime.sqlite_db import SqliteDB, SqliteLedgerStore
from augcurve.runtime.state_invariants import construct
from augcurve.runtime.token_config import TokenConfig
from augcurve.runtime.tx_envelope import TxEnvelope

Json = Dict[str, Any]
Clock = Callable[[], float]

_log = logging.getLogger("augcurve.executor")


class ExecutorError(RuntimeError):
    pass


class TokenExecutor:
    """Serializes calls against one token state and its external asset ledger.

    A call is: read the clock once, apply the envelope to a working copy of the
    state, execute the resulting asset transfers as one all-or-nothing batch,
    then publish the working copy (and persist it when a store is attached).
    If the batch fails nothing is published and the asset ledger is unchanged.

    Calls made from inside an in-flight call on the same thread (for example
    from an asset ledger transfer hook) are rejected with ReentrantCall. Calls
    from other threads wait for the lock.
    """

    def __init__(
        self,
        *,
        config: TokenConfig,
        ledger: AssetLedger,
        clock: Clock = time.time,
        store: Optional[SqliteLedgerStore] = None,
    ) -> None:
        if ledger.asset != config.external_asset:
            raise ExecutorError(f"asset mismatch: ledger={ledger.asset!r} config={config.external_asset!r}")

        self.config = config
        self._ledger = ledger
        self._clock = clock
        self._store = store
        self._lock = threading.Lock()
        self._owner: Optional[int] = None

        if store is not None and store.exists():
            self.state = store.read()
            if self.state.get("config") != config.to_json():
                raise ExecutorError("persisted token config differs from the configured one. Refuse to start.")
        else:
            self.state = construct(config, self._now())
            if store is not None:
                store.write(self.state)

        metrics.observe_token_state(self.state)

    @classmethod
    def with_sqlite(cls, *, db_path: str, config: TokenConfig, ledger: AssetLedger, clock: Clock = time.time) -> "TokenExecutor":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        store = SqliteLedgerStore(db=SqliteDB(path=db_path))
        return cls(config=config, ledger=ledger, clock=clock, store=store)

    def _now(self) -> int:
        return int(self._clock())

    # ----------------------------
    # Public accessors
    # ----------------------------

    @property
    def ledger(self) -> AssetLedger:
        return self._ledger

    @property
    def address(self) -> str:
        return self.config.token_address

    @property
    def seq(self) -> int:
        return int(self.state.get("seq", 0))

    def read_state(self) -> Json:
        # published states are never mutated in place, only replaced
        return copy.deepcopy(self.state)

    # ----------------------------
    # Submission
    # ----------------------------

    def submit(self, tx_type: str, signer: str, payload: Optional[Json] = None) -> Json:
        me = threading.get_ident()
        if self._owner == me:
            raise CurveError(REENTRANT_CALL, "call_in_flight", {"tx_type": str(tx_type).upper()})

        with self._lock:
            self._owner = me
            try:
                return self._submit_locked(tx_type, signer, payload or {})
            finally:
                self._owner = None

    def _submit_locked(self, tx_type: str, signer: str, payload: Json) -> Json:
        env = TxEnvelope(tx_type=str(tx_type).strip().upper(), signer=str(signer).strip(), payload=dict(payload), ts=self._now())
        working = copy.deepcopy(self.state)

        try:
            meta = apply_tx_atomic(working, env) or {}
            transfers = [Transfer.from_json(t) for t in meta.get("transfers") or []]
            if transfers:
                self._ledger.execute(transfers)
        except ApplyError as e:
            metrics.inc_counter("tx_rejected_total", tx_type=env.tx_type, code=e.code)
            log_event(
                _log,
                "tx_rejected",
                tx_type=env.tx_type,
                signer=env.signer,
                code=e.code,
                reason=e.reason,
            )
            raise

        # The asset batch has settled; the in-memory state must follow it even
        # if persisting the snapshot fails below.
        self.state = working
        if self._store is not None:
            self._store.commit(working, env.to_json(), meta)

        metrics.inc_counter("tx_applied_total", tx_type=env.tx_type)
        metrics.observe_token_state(working)
        log_event(
            _log,
            "tx_applied",
            tx_type=env.tx_type,
            signer=env.signer,
            seq=meta.get("seq"),
            transfers=len(meta.get("transfers") or []),
        )
        return meta

    # ----------------------------
    # Operations
    # ----------------------------

    def contribute(self, hatcher: str, amount: int) -> Json:
        return self.submit("HATCH_CONTRIBUTE", hatcher, {"amount": amount})

    def refund(self, hatcher: str) -> Json:
        return self.submit("HATCH_REFUND", hatcher)

    def mint(self, buyer: str, deposit: int, min_return: int = 0) -> Json:
        return self.submit("CURVE_MINT", buyer, {"deposit": deposit, "min_return": min_return})

    def burn(self, seller: str, amount: int, min_return: int = 0) -> Json:
        return self.submit("CURVE_BURN", seller, {"amount": amount, "min_return": min_return})

    def notify_allocation(self, caller: str, withdrawn: int) -> Json:
        return self.submit("ALLOCATION_NOTIFY", caller, {"amount": withdrawn})

    def claim(self, hatcher: str) -> Json:
        return self.submit("CLAIM_TOKENS", hatcher)

    def transfer(self, sender: str, to: str, amount: int) -> Json:
        return self.submit("TOKEN_TRANSFER", sender, {"to": to, "amount": amount})

    # ----------------------------
    # Journal
    # ----------------------------

    def read_ops(self, *, since_seq: int = 0, limit: Optional[int] = None) -> List[Json]:
        if self._store is None:
            return []
        return self._store.read_ops(since_seq=since_seq, limit=limit)
