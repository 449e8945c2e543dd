# services/mock_transfer_provider.py
from __future__ import annotations

import time

from models.transfer import ZERO_ADDRESS, SortOrder, Transfer, TransferPage

# stETH token and Morpho steakUSDC vault, both in the bundled protocol table
_LIDO = "0xae7ab96520de3a18e5e111b5eaab095312d7fe84"
_MORPHO = "0x334f5d28a71432f8fc21c7b2b6f5dbbcd8b32a7b"


def _user(i: int) -> str:
    return f"0x{(0xA11CE000 + i):040x}"


class MockTransferProvider:
    """
    Deterministic synthetic transfers.

    Good enough to:
    - unblock frontend integration
    - exercise every flow direction (mint, burn, deposit, withdraw, neutral)
    """

    name = "mock"

    def __init__(self, count: int = 500, spacing_seconds: int = 45 * 60) -> None:
        self._count = count
        self._spacing = spacing_seconds

    async def get_transfers(
        self,
        token_address: str,
        days: int,
        max_count: int,
        sort_order: SortOrder = "newest_first",
    ) -> TransferPage:
        now = int(time.time())
        cutoff = now - days * 24 * 60 * 60
        transfers: list[Transfer] = []

        for i in range(min(self._count, max_count)):
            ts = now - i * self._spacing
            if ts < cutoff:
                break

            user = _user(i % 12)
            kind = i % 7
            if kind == 0:
                src, dst = ZERO_ADDRESS, user
            elif kind == 1:
                src, dst = user, ZERO_ADDRESS
            elif kind == 2:
                src, dst = user, _LIDO
            elif kind == 3:
                src, dst = _MORPHO, user
            else:
                src, dst = user, _user((i + 5) % 12)

            value = 50_000.0 if i % 50 == 0 else 100.0 + (i % 13) * 25.0
            transfers.append(
                Transfer(
                    tx_hash=f"0x{i:064x}",
                    from_address=src,
                    to_address=dst,
                    value=value,
                    timestamp=ts,
                    token_decimals=18,
                    token_symbol="MOCK",
                )
            )

        if sort_order == "oldest_first":
            transfers.reverse()
        return TransferPage(transfers=transfers, source=self.name, sort_order=sort_order)
