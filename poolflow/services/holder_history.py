# services/holder_history.py
"""
Holder-count timeline rebuilt from a transfer sample.

Balances start at zero when the sample starts, so counts describe holders
active within the sample window, not the token's full holder base.
"""
from __future__ import annotations

import time
from itertools import groupby
from typing import Sequence

from models.holders import HolderChange, HolderHistoryResponse, HolderSnapshot
from models.transfer import ZERO_ADDRESS, Transfer
from services.protocol_registry import normalize_address

DAY = 24 * 60 * 60
MAX_SNAPSHOT_DISTANCE = 2 * DAY
ALL_TIME_DAYS = 90


def reconstruct_holder_timeline(transfers: Sequence[Transfer]) -> list[HolderSnapshot]:
    """One snapshot per UTC day that saw at least one transfer."""
    ordered = sorted(transfers, key=lambda t: t.timestamp)
    balances: dict[str, float] = {}
    snapshots: list[HolderSnapshot] = []

    for day_start, day in groupby(ordered, key=lambda t: t.timestamp // DAY * DAY):
        before = {addr for addr, bal in balances.items() if bal > 0}

        for t in day:
            src = normalize_address(t.from_address)
            dst = normalize_address(t.to_address)
            if src != ZERO_ADDRESS:
                balances[src] = max(0.0, balances.get(src, 0.0) - t.value)
            if dst != ZERO_ADDRESS:
                balances[dst] = balances.get(dst, 0.0) + t.value

        after = {addr for addr, bal in balances.items() if bal > 0}
        snapshots.append(
            HolderSnapshot(
                timestamp=day_start * 1000,
                unique_holders=len(after),
                new_holders=len(after - before),
                exited_holders=len(before - after),
            )
        )

    return snapshots


def holder_change(
    snapshots: Sequence[HolderSnapshot], days_back: int, current: int, now: float | None = None
) -> HolderChange | None:
    """Change against the snapshot closest to `days_back` ago, if one is within 2 days."""
    if not snapshots:
        return None
    now = time.time() if now is None else now
    target_ms = (now - days_back * DAY) * 1000

    closest = min(snapshots, key=lambda s: abs(target_ms - s.timestamp))
    if abs(target_ms - closest.timestamp) > MAX_SNAPSHOT_DISTANCE * 1000:
        return None

    value = current - closest.unique_holders
    percentage = (value / closest.unique_holders) * 100 if closest.unique_holders > 0 else 0.0
    return HolderChange(value=value, percentage=percentage)


def analyze_holder_history(
    token_address: str,
    transfers: Sequence[Transfer],
    source: str = "none",
    now: float | None = None,
) -> HolderHistoryResponse:
    snapshots = reconstruct_holder_timeline(transfers)
    if not snapshots:
        return HolderHistoryResponse(token_address=token_address, source=source)

    current = snapshots[-1].unique_holders
    return HolderHistoryResponse(
        token_address=token_address,
        current=current,
        change_7d=holder_change(snapshots, 7, current, now),
        change_30d=holder_change(snapshots, 30, current, now),
        change_all_time=holder_change(snapshots, ALL_TIME_DAYS, current, now),
        snapshots=snapshots,
        source=source,
    )
