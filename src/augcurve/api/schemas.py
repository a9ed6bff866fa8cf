from __future__ import annotations

"""Pydantic request schemas for the public API.

Amounts are integers in the smallest unit (18 decimals). They may be sent as
JSON numbers or as base-10 strings, since many JSON clients cannot represent
integers above 2**53 exactly.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field

Amount = Union[int, str]


class ContributeRequest(BaseModel):
    signer: str = Field(..., description="Hatcher account, e.g. @alice")
    amount: Amount = Field(..., description="Reserve asset offered (capped at the remaining raise)")


class SignerRequest(BaseModel):
    signer: str = Field(..., description="Calling account")


class MintRequest(BaseModel):
    signer: str = Field(..., description="Buyer account")
    deposit: Amount = Field(..., description="Reserve asset deposited")
    min_return: Amount = Field(default=0, description="Reject if fewer tokens would be minted")


class BurnRequest(BaseModel):
    signer: str = Field(..., description="Seller account")
    amount: Amount = Field(..., description="Tokens to burn")
    min_return: Amount = Field(default=0, description="Reject if the net payout would be smaller")


class TransferRequest(BaseModel):
    signer: str = Field(..., description="Sender account")
    to: str = Field(..., description="Recipient account")
    amount: Amount


class AllocateRequest(BaseModel):
    caller: str = Field(..., description="Funding pool owner")
    beneficiary: str
    amount: Amount


class FaucetRequest(BaseModel):
    account: str
    amount: Amount


class ApproveRequest(BaseModel):
    owner: str
    amount: Amount
    spender: Optional[str] = Field(default=None, description="Defaults to the token custody account")
