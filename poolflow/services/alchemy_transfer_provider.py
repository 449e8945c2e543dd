# services/alchemy_transfer_provider.py
from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any

from clients.alchemy_client import AlchemyClient
from models.transfer import ZERO_ADDRESS, SortOrder, Transfer, TransferPage
from services.protocol_registry import normalize_address
from services.transfer_provider import TransferProviderError

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000


def _parse_timestamp(raw: str) -> int:
    # Alchemy sends e.g. "2024-05-01T12:00:11.000Z"
    return int(datetime.fromisoformat(raw.replace("Z", "+00:00")).timestamp())


def _parse_decimals(raw: Any, default: int = 18) -> int:
    if raw is None:
        return default
    if isinstance(raw, str):
        return int(raw, 16) if raw.startswith("0x") else int(raw)
    return int(raw)


def parse_asset_transfer(item: dict[str, Any]) -> Transfer:
    """Turn one `alchemy_getAssetTransfers` record into a Transfer."""
    raw_contract = item.get("rawContract") or {}
    decimals = _parse_decimals(raw_contract.get("decimal"))

    value = item.get("value")
    if value is None:
        # Alchemy leaves `value` empty when it cannot scale the amount itself
        raw_value = raw_contract.get("value") or "0x0"
        value = int(raw_value, 16) / (10**decimals)

    ts_raw = (item.get("metadata") or {}).get("blockTimestamp")
    if not ts_raw:
        raise ValueError("Missing metadata.blockTimestamp")

    return Transfer(
        tx_hash=item.get("hash"),
        from_address=normalize_address(item.get("from")) or ZERO_ADDRESS,
        to_address=normalize_address(item.get("to")) or ZERO_ADDRESS,
        value=float(value),
        timestamp=_parse_timestamp(ts_raw),
        token_decimals=decimals,
        token_symbol=item.get("asset"),
    )


class AlchemyTransferProvider:
    """
    Pulls ERC-20 transfer history from Alchemy's transfers API.

    Pages newest-first until `max_count` records or the `days` cutoff.
    """

    name = "alchemy"

    def __init__(self, client: AlchemyClient | None = None) -> None:
        self._client = client or AlchemyClient()

    async def get_transfers(
        self,
        token_address: str,
        days: int,
        max_count: int,
        sort_order: SortOrder = "newest_first",
    ) -> TransferPage:
        cutoff = int(time.time()) - days * 24 * 60 * 60
        transfers: list[Transfer] = []
        page_key: str | None = None
        pages = 0

        while len(transfers) < max_count:
            params: dict[str, Any] = {
                "fromBlock": "0x0",
                "toBlock": "latest",
                "contractAddresses": [token_address],
                "category": ["erc20"],
                "withMetadata": True,
                "excludeZeroValue": True,
                "maxCount": hex(min(PAGE_SIZE, max_count - len(transfers))),
                "order": "desc",
            }
            if page_key:
                params["pageKey"] = page_key

            result = await self._client.request("alchemy_getAssetTransfers", [params])
            if not isinstance(result, dict):
                raise TransferProviderError("Unexpected response format from alchemy_getAssetTransfers")
            pages += 1

            reached_cutoff = False
            for item in result.get("transfers") or []:
                try:
                    transfer = parse_asset_transfer(item)
                except (KeyError, TypeError, ValueError) as exc:
                    raise TransferProviderError(f"Failed to parse Alchemy transfer: {exc}") from exc
                if transfer.timestamp < cutoff:
                    reached_cutoff = True
                    break
                transfers.append(transfer)

            page_key = result.get("pageKey")
            if reached_cutoff or not page_key:
                break

        transfers = transfers[:max_count]
        logger.info(
            f"[Alchemy] {token_address}: {len(transfers)} transfers in {pages} page(s) "
            f"(last {days}d, cap {max_count})"
        )

        if sort_order == "oldest_first":
            transfers.reverse()
        return TransferPage(transfers=transfers, source=self.name, sort_order=sort_order)

    async def aclose(self) -> None:
        await self._client.aclose()
