import asyncio
import json

import pytest

from conftest import LIDO, MORPHO
from core.config import DATA_DIR
from models.pool import Pool
from models.transfer import ZERO_ADDRESS, Transfer
from services.pool_repository import JsonPoolRepository
from services.protocol_registry import ProtocolAddressTable
from services.token_resolver import TOKEN_PAIR_OVERRIDES, resolve_token_address, resolve_token_symbol


class TestProtocolAddressTable:

    def test_keys_are_lowercase(self):
        table = ProtocolAddressTable.from_mapping({"lido": [LIDO.upper().replace("0X", "0x")]})
        assert table.is_protocol(LIDO)
        assert table.protocol_for(LIDO) == "lido"
        assert LIDO in table

    def test_skips_malformed_entries(self):
        table = ProtocolAddressTable.from_mapping(
            {"morpho": [MORPHO, "0xa44febf3-34f6-4cd5-8ab1-f246ebe49f9e"]}
        )
        assert len(table) == 1

    def test_rejects_address_in_two_protocols(self):
        with pytest.raises(ValueError):
            ProtocolAddressTable.from_mapping({"lido": [LIDO], "morpho": [LIDO]})

    def test_unknown_address_is_not_protocol(self):
        table = ProtocolAddressTable.from_mapping({"lido": [LIDO]})
        assert not table.is_protocol("0x" + "1" * 40)
        assert table.protocol_for("0x" + "1" * 40) is None

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "protocols.json"
        path.write_text(json.dumps({"aave": ["0x" + "9" * 40]}))
        table = ProtocolAddressTable.load(path)
        assert table.protocols() == {"aave"}

    def test_bundled_table(self):
        table = ProtocolAddressTable.load(DATA_DIR / "protocol_addresses.json")
        assert table.protocols() == {"lido", "morpho"}
        assert table.is_protocol(LIDO)


class TestTokenResolution:

    def test_underlying_token(self):
        pool = Pool(id="p", token_pair="USDC", raw_data={"underlyingToken": "0x" + "1" * 40})
        assert resolve_token_address(pool) == "0x" + "1" * 40

    def test_first_underlying_token(self):
        pool = Pool(id="p", token_pair="USDC", raw_data={"underlyingTokens": ["0x" + "2" * 40, "0x" + "3" * 40]})
        assert resolve_token_address(pool) == "0x" + "2" * 40

    def test_vault_pair_always_uses_vault_contract(self):
        pool = Pool(id="p", token_pair="steakUSDC", raw_data={"underlyingToken": "0x" + "4" * 40})
        assert resolve_token_address(pool) == TOKEN_PAIR_OVERRIDES["STEAKUSDC"]

    def test_zero_address_falls_back_to_override(self):
        pool = Pool(id="p", token_pair="WETH", raw_data={"underlyingToken": ZERO_ADDRESS})
        assert resolve_token_address(pool) == TOKEN_PAIR_OVERRIDES["WETH"]

    def test_unresolvable(self):
        assert resolve_token_address(Pool(id="p", token_pair="FOO", raw_data={"underlyingToken": ZERO_ADDRESS})) is None
        assert resolve_token_address(Pool(id="p", token_pair="FOO")) is None

    def test_non_string_token_is_unresolvable(self):
        assert resolve_token_address(Pool(id="p", token_pair="FOO", raw_data={"underlyingToken": 123})) is None

    def test_non_string_token_falls_back_to_override(self):
        pool = Pool(id="p", token_pair="WETH", raw_data={"underlyingToken": 123})
        assert resolve_token_address(pool) == TOKEN_PAIR_OVERRIDES["WETH"]

    def test_underlying_tokens_must_be_a_list(self):
        pool = Pool(id="p", token_pair="FOO", raw_data={"underlyingTokens": LIDO})
        assert resolve_token_address(pool) is None

    def test_symbols(self):
        pool = Pool(id="p", token_pair="ABC/ETH")
        assert resolve_token_symbol(LIDO, pool) == "stETH"
        assert resolve_token_symbol("0x" + "5" * 40, pool) == "ABC"

        unnamed = Pool(id="p", token_pair="")
        transfer = Transfer(from_address=LIDO, to_address=MORPHO, value=1, timestamp=1, token_symbol="XYZ")
        assert resolve_token_symbol("0x" + "5" * 40, unnamed, [transfer]) == "XYZ"
        assert resolve_token_symbol("0x" + "5" * 40, unnamed) == "TOKEN"


class TestJsonPoolRepository:

    def test_bundled_pools(self):
        repo = JsonPoolRepository(DATA_DIR / "pools.json")
        pool = asyncio.run(repo.get_pool("lido-steth"))
        assert pool.token_pair == "STETH"
        assert pool.is_visible
        assert asyncio.run(repo.get_pool("hidden-usdt")).is_visible is False
        assert asyncio.run(repo.get_pool("missing")) is None

    def test_missing_file_means_no_pools(self, tmp_path):
        repo = JsonPoolRepository(tmp_path / "nope.json")
        assert asyncio.run(repo.get_pool("anything")) is None
