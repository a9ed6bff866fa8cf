from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ApplyError(Exception):
    """Canonical error type for apply and dispatch failures."""

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


@dataclass
class CurveError(ApplyError):
    """
    Token domain errors. `code` carries the error kind (e.g. "HatchExpired"),
    `reason` a snake_case detail. A CurveError always means the call was rejected
    with no state change.
    """

    code: str
    reason: str
    details: Any | None = None


# Error kinds
CONTRIBUTION_TOO_SMALL = "ContributionTooSmall"
HATCH_EXPIRED = "HatchExpired"
HATCH_NOT_EXPIRED = "HatchNotExpired"
ALREADY_HATCHED = "AlreadyHatched"
NOT_HATCHED_YET = "NotHatchedYet"
TRANSFER_FAILED = "TransferFailed"
INVALID_CURVE_INPUT = "InvalidCurveInput"
INSUFFICIENT_SUPPLY = "InsufficientSupply"
INSUFFICIENT_BALANCE = "InsufficientBalance"
VESTING_NOT_ELAPSED = "VestingNotElapsed"
NOT_FUNDING_POOL = "NotFundingPool"
NO_CONTRIBUTION = "NoContribution"
NOTHING_TO_REFUND = "NothingToRefund"
INVALID_AMOUNT = "InvalidAmount"
SLIPPAGE_EXCEEDED = "SlippageExceeded"
ARITHMETIC_OVERFLOW = "ArithmeticOverflow"
REENTRANT_CALL = "ReentrantCall"
UNKNOWN_OPERATION = "UnknownOperation"
INVALID_TX = "InvalidTx"

ERROR_KINDS = frozenset(
    {
        CONTRIBUTION_TOO_SMALL,
        HATCH_EXPIRED,
        HATCH_NOT_EXPIRED,
        ALREADY_HATCHED,
        NOT_HATCHED_YET,
        TRANSFER_FAILED,
        INVALID_CURVE_INPUT,
        INSUFFICIENT_SUPPLY,
        INSUFFICIENT_BALANCE,
        VESTING_NOT_ELAPSED,
        NOT_FUNDING_POOL,
        NO_CONTRIBUTION,
        NOTHING_TO_REFUND,
        INVALID_AMOUNT,
        SLIPPAGE_EXCEEDED,
        ARITHMETIC_OVERFLOW,
        REENTRANT_CALL,
        UNKNOWN_OPERATION,
        INVALID_TX,
    }
)

__all__ = ["ApplyError", "CurveError", "ERROR_KINDS"]
