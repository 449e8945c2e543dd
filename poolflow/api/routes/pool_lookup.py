# api/routes/pool_lookup.py
from __future__ import annotations

from fastapi import HTTPException, status

from models.pool import Pool
from services.pool_repository import PoolRepository
from services.token_resolver import resolve_token_address


async def require_pool_token(pools: PoolRepository, pool_id: str) -> tuple[Pool, str]:
    """Visible pool plus its underlying token address, or 404."""
    pool = await pools.get_pool(pool_id)
    # hidden pools are indistinguishable from missing ones
    if pool is None or not pool.is_visible:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pool not found")

    token_address = resolve_token_address(pool)
    if token_address is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No valid underlying token found for this pool",
        )
    return pool, token_address
