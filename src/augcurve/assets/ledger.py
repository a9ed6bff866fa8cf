# src/augcurve/assets/ledger.py
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from augcurve.runtime.errors import TRANSFER_FAILED, CurveError
from augcurve.runtime.fixed_point import MAX_UINT256

Json = Dict[str, Any]


@dataclass(frozen=True)
class Transfer:
    """One movement of the external asset.

    With `spender` set it is a transfer_from: `spender` moves `src`'s funds and
    consumes `src`'s allowance to `spender`.
    """

    asset: str
    src: str
    dst: str
    amount: int
    spender: Optional[str] = None

    @staticmethod
    def from_json(j: Any) -> "Transfer":
        if isinstance(j, Transfer):
            return j
        return Transfer(
            asset=str(j.get("asset", "")),
            src=str(j.get("src", "")),
            dst=str(j.get("dst", "")),
            amount=int(j.get("amount", 0)),
            spender=(None if j.get("spender") is None else str(j.get("spender"))),
        )

    def to_json(self) -> Json:
        return {
            "asset": self.asset,
            "src": self.src,
            "dst": self.dst,
            "amount": self.amount,
            "spender": self.spender,
        }


class AssetLedger(Protocol):
    """External fungible asset as seen by the token core."""

    asset: str

    def balance_of(self, account: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def approve(self, owner: str, spender: str, amount: int) -> None: ...

    def execute(self, transfers: Iterable[Transfer]) -> None: ...


TransferHook = Callable[[Transfer], None]


class InMemoryAssetLedger:
    """ERC20-like ledger for one asset, with an all-or-nothing batch primitive.

    `execute` validates every transfer against a scratch copy of balances and
    allowances, runs the transfer hooks, then commits. Any failure (including a
    hook raising) leaves the ledger untouched.

    Hooks run on the calling thread while the batch is pending: they may read
    the ledger (they see the balances from before the batch) and may even move
    funds themselves. A batch whose ledger changed under its hooks is
    validated again before it commits.
    """

    def __init__(self, asset: str) -> None:
        self.asset = str(asset)
        self._lock = threading.RLock()
        self._version = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._hooks: List[TransferHook] = []

    # ----------------------------
    # Reads
    # ----------------------------

    def balance_of(self, account: str) -> int:
        with self._lock:
            return int(self._balances.get(str(account), 0))

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock:
            return int(self._allowances.get((str(owner), str(spender)), 0))

    def total_supply(self) -> int:
        with self._lock:
            return sum(self._balances.values())

    def snapshot(self) -> Json:
        with self._lock:
            return {
                "asset": self.asset,
                "balances": dict(self._balances),
                "allowances": {f"{o}->{s}": v for (o, s), v in sorted(self._allowances.items())},
            }

    # ----------------------------
    # Writes
    # ----------------------------

    def add_hook(self, hook: TransferHook) -> None:
        self._hooks.append(hook)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        a = int(amount)
        if a < 0 or a > MAX_UINT256:
            raise CurveError(TRANSFER_FAILED, "bad_allowance", {"owner": owner, "spender": spender, "amount": a})
        with self._lock:
            self._allowances[(str(owner), str(spender))] = a
            self._version += 1

    def mint(self, account: str, amount: int) -> None:
        """Credit `account` out of thin air (dev faucet and tests)."""
        a = int(amount)
        if a <= 0:
            raise CurveError(TRANSFER_FAILED, "bad_amount", {"account": account, "amount": a})
        with self._lock:
            self._balances[str(account)] = int(self._balances.get(str(account), 0)) + a
            self._version += 1

    def transfer(self, src: str, dst: str, amount: int) -> None:
        self.execute([Transfer(self.asset, str(src), str(dst), int(amount))])

    def transfer_from(self, spender: str, src: str, dst: str, amount: int) -> None:
        self.execute([Transfer(self.asset, str(src), str(dst), int(amount), spender=str(spender))])

    def execute(self, transfers: Iterable[Transfer]) -> None:
        batch = [Transfer.from_json(t) for t in transfers]
        with self._lock:
            version = self._version
            balances, allowances = self._staged(batch)

            for t in batch:
                for hook in list(self._hooks):
                    hook(t)

            if self._version != version:
                # a hook moved funds; the batch must still fit what is left
                balances, allowances = self._staged(batch)

            self._balances = balances
            self._allowances = allowances
            self._version += 1

    def _staged(self, batch: List[Transfer]) -> Tuple[Dict[str, int], Dict[Tuple[str, str], int]]:
        balances = dict(self._balances)
        allowances = dict(self._allowances)
        for i, t in enumerate(batch):
            self._stage(balances, allowances, t, i)
        return balances, allowances

    def _stage(self, balances: Dict[str, int], allowances: Dict[Tuple[str, str], int], t: Transfer, i: int) -> None:
        details = {"index": i, **t.to_json()}

        if t.asset != self.asset:
            raise CurveError(TRANSFER_FAILED, "unknown_asset", details)
        if t.amount <= 0:
            raise CurveError(TRANSFER_FAILED, "bad_amount", details)
        if not t.src or not t.dst:
            raise CurveError(TRANSFER_FAILED, "missing_account", details)

        if t.spender is not None and t.spender != t.src:
            key = (t.src, t.spender)
            allowed = int(allowances.get(key, 0))
            if allowed < t.amount:
                raise CurveError(TRANSFER_FAILED, "insufficient_allowance", {**details, "allowance": allowed})
            allowances[key] = allowed - t.amount

        have = int(balances.get(t.src, 0))
        if have < t.amount:
            raise CurveError(TRANSFER_FAILED, "insufficient_funds", {**details, "balance": have})
        balances[t.src] = have - t.amount
        balances[t.dst] = int(balances.get(t.dst, 0)) + t.amount


__all__ = ["AssetLedger", "InMemoryAssetLedger", "Transfer", "TransferHook"]
