"""
Alchemy client + transfer provider against a mocked JSON-RPC endpoint.
"""

import asyncio
import json
import time
from datetime import datetime, timezone

import httpx
import pytest

from clients.alchemy_client import AlchemyClient
from services.alchemy_transfer_provider import AlchemyTransferProvider, parse_asset_transfer
from services.mock_transfer_provider import MockTransferProvider
from services.transfer_provider import TransferProviderError, UnavailableTransferProvider

TOKEN = "0xae7ab96520de3a18e5e111b5eaab095312d7fe84"
URL = "https://eth-mainnet.example/v2/test-key"


def iso(ts):
    return datetime.fromtimestamp(ts, timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def asset_transfer(ts, value=1.5, src="0xAAAAaaaaAAAAaaaaAAAAaaaaAAAAaaaaAAAAaaaa", dst="0x" + "b" * 40):
    return {
        "blockNum": "0x10",
        "hash": f"0x{ts:064x}",
        "from": src,
        "to": dst,
        "value": value,
        "asset": "stETH",
        "category": "erc20",
        "rawContract": {"value": "0x0", "address": TOKEN, "decimal": "0x12"},
        "metadata": {"blockTimestamp": iso(ts)},
    }


def rpc_result(transfers, page_key=None):
    result = {"transfers": transfers}
    if page_key:
        result["pageKey"] = page_key
    return {"jsonrpc": "2.0", "id": 1, "result": result}


def make_provider(handler, max_retries=2):
    client = AlchemyClient(
        URL,
        transport=httpx.MockTransport(handler),
        max_retries=max_retries,
        retry_base_seconds=0,
    )
    return AlchemyTransferProvider(client)


def fetch(provider, days=90, max_count=15_000, sort_order="newest_first"):
    return asyncio.run(provider.get_transfers(TOKEN, days=days, max_count=max_count, sort_order=sort_order))


class TestAlchemyTransferProvider:

    def test_pages_until_no_page_key(self):
        now = int(time.time())
        seen = []

        def handler(request):
            params = json.loads(request.content)["params"][0]
            seen.append(params)
            if "pageKey" not in params:
                return httpx.Response(200, json=rpc_result([asset_transfer(now - 60), asset_transfer(now - 120)], "p2"))
            return httpx.Response(200, json=rpc_result([asset_transfer(now - 180)]))

        page = fetch(make_provider(handler))

        assert len(page.transfers) == 3
        assert page.source == "alchemy"
        assert page.sort_order == "newest_first"
        assert [t.timestamp for t in page.transfers] == [now - 60, now - 120, now - 180]
        assert seen[0]["order"] == "desc"
        assert seen[0]["category"] == ["erc20"]
        assert seen[0]["withMetadata"] is True
        assert seen[1]["pageKey"] == "p2"

    def test_addresses_are_lowercased(self):
        now = int(time.time())

        def handler(request):
            return httpx.Response(200, json=rpc_result([asset_transfer(now - 60)]))

        transfer = fetch(make_provider(handler)).transfers[0]
        assert transfer.from_address == "0x" + "a" * 40
        assert transfer.token_decimals == 18
        assert transfer.token_symbol == "stETH"

    def test_stops_at_lookback_cutoff(self):
        now = int(time.time())
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(
                200,
                json=rpc_result([asset_transfer(now - 60), asset_transfer(now - 3 * 86400)], "more"),
            )

        page = fetch(make_provider(handler), days=1)
        assert len(page.transfers) == 1
        assert len(calls) == 1

    def test_respects_max_count(self):
        now = int(time.time())
        seen = []

        def handler(request):
            seen.append(json.loads(request.content)["params"][0]["maxCount"])
            return httpx.Response(200, json=rpc_result([asset_transfer(now - 60), asset_transfer(now - 61)], "more"))

        page = fetch(make_provider(handler), max_count=2)
        assert seen == ["0x2"]
        assert len(page.transfers) == 2

    def test_oldest_first_reverses(self):
        now = int(time.time())

        def handler(request):
            return httpx.Response(200, json=rpc_result([asset_transfer(now - 60), asset_transfer(now - 120)]))

        page = fetch(make_provider(handler), sort_order="oldest_first")
        assert [t.timestamp for t in page.transfers] == [now - 120, now - 60]

    def test_retries_server_errors(self):
        now = int(time.time())
        calls = []

        def handler(request):
            calls.append(1)
            if len(calls) == 1:
                return httpx.Response(503, text="busy")
            return httpx.Response(200, json=rpc_result([asset_transfer(now - 60)]))

        page = fetch(make_provider(handler))
        assert len(calls) == 2
        assert len(page.transfers) == 1

    def test_gives_up_after_max_retries(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(429, text="slow down")

        with pytest.raises(TransferProviderError):
            fetch(make_provider(handler, max_retries=2))
        assert len(calls) == 3

    def test_rpc_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "bad"}})

        with pytest.raises(TransferProviderError, match="-32602"):
            fetch(make_provider(handler))
        assert len(calls) == 1

    def test_malformed_record_raises(self):
        def handler(request):
            bad = asset_transfer(int(time.time()))
            bad["metadata"] = {}
            return httpx.Response(200, json=rpc_result([bad]))

        with pytest.raises(TransferProviderError):
            fetch(make_provider(handler))

    def test_missing_value_uses_raw_contract(self):
        item = asset_transfer(1_700_000_000, value=None)
        item["rawContract"] = {"value": "0xf4240", "decimal": "0x6"}
        transfer = parse_asset_transfer(item)
        assert transfer.value == 1.0
        assert transfer.token_decimals == 6
        assert transfer.timestamp == 1_700_000_000

    def test_aclose_closes_http_client(self):
        client = AlchemyClient(URL, transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        provider = AlchemyTransferProvider(client)
        asyncio.run(provider.aclose())
        assert client._client.is_closed

    def test_client_needs_an_endpoint(self, monkeypatch):
        from core.config import Settings

        monkeypatch.setattr("clients.alchemy_client.get_settings", lambda: Settings(_env_file=None))
        monkeypatch.delenv("ALCHEMY_RPC_URL", raising=False)
        monkeypatch.delenv("ALCHEMY_API_KEY", raising=False)
        with pytest.raises(RuntimeError):
            AlchemyClient()


class TestOtherProviders:

    def test_unavailable_provider_is_empty(self):
        page = asyncio.run(UnavailableTransferProvider().get_transfers(TOKEN, days=90, max_count=100))
        assert page.transfers == []
        assert page.source == "unavailable"

    def test_mock_provider_is_newest_first(self):
        page = asyncio.run(MockTransferProvider(count=50).get_transfers(TOKEN, days=90, max_count=40))
        stamps = [t.timestamp for t in page.transfers]
        assert len(stamps) == 40
        assert stamps == sorted(stamps, reverse=True)
        assert page.source == "mock"
