# models/holders.py
from __future__ import annotations

from typing import Literal

from pydantic import Field

from models.flow import CamelModel


class HolderSnapshot(CamelModel):
    timestamp: int  # start of the UTC day, unix milliseconds
    unique_holders: int = Field(..., ge=0)
    new_holders: int = Field(..., ge=0)
    exited_holders: int = Field(..., ge=0)


class HolderChange(CamelModel):
    value: int
    percentage: float


class HolderHistoryResponse(CamelModel):
    """
    Response body for GET /api/pools/{pool_id}/holder-history
    """

    token_address: str
    current: int = 0
    change_7d: HolderChange | None = Field(None, alias="change7d")
    change_30d: HolderChange | None = Field(None, alias="change30d")
    change_all_time: HolderChange | None = None
    snapshots: list[HolderSnapshot] = Field(default_factory=list)
    data_source: Literal["authentic_transfers"] = "authentic_transfers"
    source: str = "none"
