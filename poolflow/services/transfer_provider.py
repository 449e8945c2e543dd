# services/transfer_provider.py
from __future__ import annotations

from typing import Protocol

from models.transfer import SortOrder, TransferPage


class TransferProviderError(Exception):
    """Raised when the transfer source cannot satisfy a request (upstream issue)."""


class TransferDataProvider(Protocol):
    """
    Abstraction around the source of ERC-20 transfer history.

    Routes only talk to this interface. Implementations must honour
    `sort_order`; callers ask for `newest_first`.
    """

    name: str

    async def get_transfers(
        self,
        token_address: str,
        days: int,
        max_count: int,
        sort_order: SortOrder = "newest_first",
    ) -> TransferPage:
        ...


class UnavailableTransferProvider:
    """
    Used when no transfer source is configured.

    Returns an empty page so the dashboard gets a zeroed, well-formed
    analysis instead of an error.
    """

    name = "unavailable"

    async def get_transfers(
        self,
        token_address: str,
        days: int,
        max_count: int,
        sort_order: SortOrder = "newest_first",
    ) -> TransferPage:
        return TransferPage(transfers=[], source=self.name, sort_order=sort_order)
