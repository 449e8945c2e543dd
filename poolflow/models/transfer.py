# models/transfer.py
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

SortOrder = Literal["newest_first", "oldest_first"]


class Transfer(BaseModel):
    """
    A single ERC-20 transfer, normalised by a provider.

    Serialises to the Etherscan-style record the dashboard tables already
    understand (`from`, `to`, `timeStamp`, `tokenDecimal`). `value` is in
    token units, not raw base units. Providers lower-case both addresses.
    """

    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str | None = Field(None, alias="hash")
    from_address: str = Field(..., alias="from")
    to_address: str = Field(..., alias="to")
    value: float = Field(..., ge=0)
    timestamp: int = Field(..., alias="timeStamp", description="Block time, unix seconds")
    token_decimals: int = Field(18, alias="tokenDecimal")
    token_symbol: str | None = Field(None, alias="tokenSymbol")


class TransferPage(BaseModel):
    """
    What a transfer provider hands back for one token.

    `sort_order` is part of the contract: flow velocity compares the first
    and second hundred records, so it is only meaningful newest-first.
    """

    transfers: list[Transfer] = Field(default_factory=list)
    source: str = "none"
    sort_order: SortOrder = "newest_first"
