# api/routes/token_transfers.py
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.deps import get_flow_config, get_pool_repository, get_protocol_table, get_transfer_provider
from api.routes.pool_lookup import require_pool_token
from core.config import Settings, get_settings
from models.flow import TokenTransfersResponse
from services.flow_analysis import FlowAnalysisConfig, analyze_transfers
from services.pool_repository import PoolRepository
from services.protocol_registry import ProtocolAddressTable
from services.token_resolver import resolve_token_symbol
from services.transfer_provider import TransferDataProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["token-flows"])

DISPLAY_TRANSFERS = 50


@router.get(
    "/pools/{pool_id}/token-transfers",
    response_model=TokenTransfersResponse,
    summary="Token flow analysis for a pool's underlying token",
)
async def get_token_transfers(
    pool_id: str,
    page: Annotated[int, Query(ge=1, description="Kept for client compatibility")] = 1,
    limit: Annotated[int, Query(ge=1, description="Transfers to echo back (max 50 shown)")] = 100,
    pools: PoolRepository = Depends(get_pool_repository),
    provider: TransferDataProvider = Depends(get_transfer_provider),
    table: ProtocolAddressTable = Depends(get_protocol_table),
    config: FlowAnalysisConfig = Depends(get_flow_config),
    settings: Settings = Depends(get_settings),
) -> TokenTransfersResponse:
    """
    Classify, window and summarise the token's recent transfers.

    No data upstream is not an error: the response is zeroed but keeps
    every field the dashboard charts read.
    """
    pool, token_address = await require_pool_token(pools, pool_id)

    try:
        result = await provider.get_transfers(
            token_address=token_address,
            days=settings.TRANSFER_LOOKBACK_DAYS,
            max_count=settings.TRANSFER_MAX_COUNT,
            sort_order="newest_first",
        )
        transfers = result.transfers
        analysis, quality = analyze_transfers(
            transfers,
            table,
            source=result.source,
            sort_order=result.sort_order,
            config=config,
        )
    except Exception as exc:
        logger.exception(f"[TokenTransfers] Failed for pool {pool_id} ({token_address})")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch token transfers",
        ) from exc

    message = None
    if not transfers:
        if result.source == "unavailable":
            message = "No transfer data source available. Transfer analysis requires Alchemy API configuration."
        else:
            message = "No transfers found for this token in the lookback window."
        logger.info(f"[TokenTransfers] {pool_id}: no transfers ({result.source})")

    return TokenTransfersResponse(
        token_address=token_address,
        token_symbol=resolve_token_symbol(token_address, pool, transfers),
        transfers=transfers[: min(limit, DISPLAY_TRANSFERS)],
        data_quality=quality,
        flow_analysis=analysis,
        message=message,
    )
