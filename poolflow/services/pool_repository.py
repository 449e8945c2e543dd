# services/pool_repository.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Protocol

from models.pool import Pool

logger = logging.getLogger(__name__)


class PoolRepository(Protocol):
    """Read-only pool lookup used by the flow endpoints."""

    async def get_pool(self, pool_id: str) -> Pool | None:
        ...


class JsonPoolRepository:
    """
    Pools from a JSON file: a list of pool objects (camelCase keys).

    The file is read once, on first lookup.
    """

    def __init__(self, path: Path | str | None = None, pools: Iterable[Pool] | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._pools: dict[str, Pool] | None = None
        if pools is not None:
            self._pools = {p.id: p for p in pools}

    @classmethod
    def from_pools(cls, pools: Iterable[Pool]) -> "JsonPoolRepository":
        return cls(pools=pools)

    def _load(self) -> dict[str, Pool]:
        if self._pools is not None:
            return self._pools
        if self._path is None or not self._path.exists():
            logger.warning(f"[Pools] Pool file not found: {self._path}")
            self._pools = {}
            return self._pools

        with open(self._path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, list):
            raise ValueError(f"{self._path}: expected a list of pools")

        self._pools = {}
        for item in raw:
            pool = Pool.model_validate(item)
            self._pools[pool.id] = pool
        logger.info(f"[Pools] Loaded {len(self._pools)} pools from {self._path}")
        return self._pools

    async def get_pool(self, pool_id: str) -> Pool | None:
        return self._load().get(pool_id)
