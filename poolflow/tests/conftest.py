"""
Shared fixtures for the flow analysis tests.

Run: python -m pytest poolflow/tests -v
"""

import pytest

from models.transfer import ZERO_ADDRESS, Transfer
from services.protocol_registry import ProtocolAddressTable

NOW = 1_700_000_000
HOUR = 3600
DAY = 24 * HOUR

LIDO = "0xae7ab96520de3a18e5e111b5eaab095312d7fe84"
MORPHO = "0x334f5d28a71432f8fc21c7b2b6f5dbbcd8b32a7b"
ALICE = "0x" + "a" * 40
BOB = "0x" + "b" * 40
CAROL = "0x" + "c" * 40
ZERO = ZERO_ADDRESS


@pytest.fixture
def table():
    return ProtocolAddressTable.from_mapping({"lido": [LIDO], "morpho": [MORPHO]})


@pytest.fixture
def make_transfer():
    def _make(src, dst, value, timestamp=NOW, symbol="TKN"):
        return Transfer(
            from_address=src,
            to_address=dst,
            value=value,
            timestamp=timestamp,
            token_decimals=18,
            token_symbol=symbol,
        )

    return _make
