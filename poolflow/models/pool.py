# models/pool.py
from __future__ import annotations

from typing import Any

from pydantic import Field

from models.flow import CamelModel


class Pool(CamelModel):
    """
    The slice of a yield pool record the flow endpoints need.

    `raw_data` is whatever the upstream scraper stored; the underlying token
    usually sits in `underlyingToken` or `underlyingTokens[0]`.
    """

    id: str
    token_pair: str
    chain: str = "ethereum"
    platform: str | None = None
    is_visible: bool = True
    is_active: bool = True
    raw_data: dict[str, Any] = Field(default_factory=dict)
