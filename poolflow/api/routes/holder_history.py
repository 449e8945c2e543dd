# api/routes/holder_history.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.deps import get_pool_repository, get_transfer_provider
from api.routes.pool_lookup import require_pool_token
from core.config import Settings, get_settings
from models.holders import HolderHistoryResponse
from services.holder_history import analyze_holder_history
from services.pool_repository import PoolRepository
from services.transfer_provider import TransferDataProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["holders"])


@router.get(
    "/pools/{pool_id}/holder-history",
    response_model=HolderHistoryResponse,
    summary="Daily holder counts rebuilt from transfer history",
)
async def get_holder_history(
    pool_id: str,
    pools: PoolRepository = Depends(get_pool_repository),
    provider: TransferDataProvider = Depends(get_transfer_provider),
    settings: Settings = Depends(get_settings),
) -> HolderHistoryResponse:
    _, token_address = await require_pool_token(pools, pool_id)

    try:
        result = await provider.get_transfers(
            token_address=token_address,
            days=settings.TRANSFER_LOOKBACK_DAYS,
            max_count=settings.TRANSFER_MAX_COUNT,
        )
        return analyze_holder_history(token_address, result.transfers, source=result.source)
    except Exception as exc:
        logger.exception(f"[HolderHistory] Failed for pool {pool_id} ({token_address})")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to analyze holder history",
        ) from exc
