# api/deps.py
from __future__ import annotations

import logging
from functools import lru_cache

from core.config import get_settings
from services.alchemy_transfer_provider import AlchemyTransferProvider
from services.flow_analysis import FlowAnalysisConfig
from services.mock_transfer_provider import MockTransferProvider
from services.pool_repository import JsonPoolRepository, PoolRepository
from services.protocol_registry import ProtocolAddressTable
from services.transfer_provider import TransferDataProvider, UnavailableTransferProvider

logger = logging.getLogger(__name__)


@lru_cache
def get_transfer_provider() -> TransferDataProvider:
    settings = get_settings()
    if settings.TRANSFER_PROVIDER == "mock":
        return MockTransferProvider()
    if settings.TRANSFER_PROVIDER == "alchemy" or settings.alchemy_url:
        return AlchemyTransferProvider()
    logger.warning("[Deps] Alchemy not configured, transfer analysis will report no data")
    return UnavailableTransferProvider()


@lru_cache
def get_protocol_table() -> ProtocolAddressTable:
    return ProtocolAddressTable.load(get_settings().PROTOCOL_ADDRESSES_FILE)


@lru_cache
def get_pool_repository() -> PoolRepository:
    return JsonPoolRepository(get_settings().POOLS_FILE)


def get_flow_config() -> FlowAnalysisConfig:
    return FlowAnalysisConfig.from_settings(get_settings())
