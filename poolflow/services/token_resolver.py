# services/token_resolver.py
from __future__ import annotations

import logging
from typing import Sequence

from models.pool import Pool
from models.transfer import ZERO_ADDRESS, Transfer

logger = logging.getLogger(__name__)

# token pair -> contract to analyse when the scraped raw data is missing or wrong
TOKEN_PAIR_OVERRIDES: dict[str, str] = {
    "STETH": "0xae7ab96520de3a18e5e111b5eaab095312d7fe84",
    "STEAKUSDC": "0xbeef01735c132ada46aa9aa4c54623caa92a64cb",  # vault contract
    "WETH": "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2",
}

# vault tokens always use the vault contract, whatever raw data says
_FORCED_OVERRIDES = {"STEAKUSDC"}

KNOWN_SYMBOLS: dict[str, str] = {
    "0xae7ab96520de3a18e5e111b5eaab095312d7fe84": "stETH",
    "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": "USDC",
    "0xdac17f958d2ee523a2206206994597c13d831ec7": "USDT",
    "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599": "WBTC",
    "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2": "WETH",
}


def _usable(address: object) -> bool:
    return isinstance(address, str) and bool(address) and address.lower() != ZERO_ADDRESS


def resolve_token_address(pool: Pool) -> str | None:
    """Contract whose transfers describe this pool's flows, or None."""
    raw = pool.raw_data or {}
    token = raw.get("underlyingToken")
    if not token:
        tokens = raw.get("underlyingTokens")
        # only a list counts; indexing a bare string yields "0"
        token = tokens[0] if isinstance(tokens, list) and tokens else None

    pair = pool.token_pair.upper()
    if pair in _FORCED_OVERRIDES:
        token = TOKEN_PAIR_OVERRIDES[pair]
        logger.debug(f"[Tokens] {pool.id}: using vault contract {token}")
    elif not _usable(token) and pair in TOKEN_PAIR_OVERRIDES:
        token = TOKEN_PAIR_OVERRIDES[pair]
        logger.debug(f"[Tokens] {pool.id}: mapped {pair} to {token}")

    if not _usable(token):
        return None
    return token


def resolve_token_symbol(token_address: str, pool: Pool, transfers: Sequence[Transfer] = ()) -> str:
    mapped = KNOWN_SYMBOLS.get(token_address.lower())
    if mapped:
        return mapped

    head = pool.token_pair.split("/")[0].strip() if pool.token_pair else ""
    if head:
        return head

    if transfers and transfers[0].token_symbol:
        return transfers[0].token_symbol
    return "TOKEN"
