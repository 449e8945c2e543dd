# services/flow_analysis.py
"""
Token flow analysis over a fetched ERC-20 transfer sample.

Everything here is a pure function of its inputs: a list of transfers
(newest first), a protocol address table and a clock. State lives in
function-scoped dicts and sets that are thrown away once the response
models are built.

Flow direction:
- mint (from zero address) -> inflow
- burn (to zero address) -> outflow
- user -> protocol -> inflow, protocol -> user -> outflow
- anything else is neutral; it still counts as address activity and chart
  volume but never as inflow/outflow or txCount

Windows (24h, 7d, 30d, all) overlap: a transfer from the last hour is
counted in all four.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from core.config import Settings
from models.flow import (
    PERIOD_NAMES,
    AdvancedAnalysis,
    ChartData,
    ChartPoint,
    DataQuality,
    FlowAnalysis,
    FlowPeriods,
    FlowStatistics,
    FlowVelocity,
    Insights,
    MarketPhase,
    PeriodMetrics,
    PeriodName,
    PeriodQuality,
    SmartMoney,
    SmartMoneyRecord,
    VolumeDistribution,
    WhaleActivity,
    WhaleRecord,
)
from models.transfer import ZERO_ADDRESS, SortOrder, Transfer
from services.protocol_registry import FlowDirection, ProtocolAddressTable, normalize_address

logger = logging.getLogger(__name__)

HOUR = 60 * 60
DAY = 24 * HOUR
HOUR_MS = HOUR * 1000
DAY_MS = DAY * 1000

# window length in seconds; None = since epoch
PERIOD_SPANS: dict[PeriodName, int | None] = {
    "24h": DAY,
    "7d": 7 * DAY,
    "30d": 30 * DAY,
    "all": None,
}
_PERIOD_LABELS = {"24h": "24 hours", "7d": "7 days", "30d": "30 days"}

VELOCITY_WINDOW = 100
ACCELERATING_RATIO = 1.2
DECELERATING_RATIO = 0.8

TOP_WHALES = 10
TOP_WHALES_SHOWN = 5
TOP_SMART_MONEY = 5
STRONG_SMART_MONEY_COUNT = 3

HOURLY_BUCKETS = 24
DAILY_BUCKETS = 30

EXCELLENT_COVERAGE_HOURS = 30 * 24


@dataclass(frozen=True)
class FlowAnalysisConfig:
    whale_multiplier: float = 10.0
    smart_money_min_tx: int = 5
    limited_coverage_hours: int = 24
    good_coverage_hours: int = 7 * 24

    @classmethod
    def from_settings(cls, settings: Settings) -> "FlowAnalysisConfig":
        return cls(
            whale_multiplier=settings.WHALE_MULTIPLIER,
            smart_money_min_tx=settings.SMART_MONEY_MIN_TX,
            limited_coverage_hours=settings.COVERAGE_LIMITED_HOURS,
            good_coverage_hours=settings.COVERAGE_GOOD_HOURS,
        )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Classification:
    is_inflow: bool
    is_outflow: bool

    @property
    def direction(self) -> FlowDirection:
        if self.is_inflow:
            return FlowDirection.INFLOW
        if self.is_outflow:
            return FlowDirection.OUTFLOW
        return FlowDirection.NEUTRAL


_INFLOW = Classification(is_inflow=True, is_outflow=False)
_OUTFLOW = Classification(is_inflow=False, is_outflow=True)
_NEUTRAL = Classification(is_inflow=False, is_outflow=False)


def classify(transfer: Transfer, table: ProtocolAddressTable) -> Classification:
    from_addr = normalize_address(transfer.from_address)
    to_addr = normalize_address(transfer.to_address)

    if from_addr == ZERO_ADDRESS:
        return _INFLOW
    if to_addr == ZERO_ADDRESS:
        return _OUTFLOW

    from_protocol = table.is_protocol(from_addr)
    to_protocol = table.is_protocol(to_addr)
    if to_protocol and not from_protocol:
        return _INFLOW
    if from_protocol and not to_protocol:
        return _OUTFLOW
    # user <-> user, and protocol <-> protocol rebalancing
    return _NEUTRAL


@dataclass(frozen=True)
class _Row:
    timestamp: int
    value: float
    from_addr: str
    to_addr: str
    flow: Classification


def _classified(transfers: Iterable[Transfer], table: ProtocolAddressTable) -> list[_Row]:
    rows: list[_Row] = []
    for t in transfers:
        if t.value == 0:
            continue
        rows.append(
            _Row(
                timestamp=t.timestamp,
                value=t.value,
                from_addr=normalize_address(t.from_address),
                to_addr=normalize_address(t.to_address),
                flow=classify(t, table),
            )
        )
    return rows


# ---------------------------------------------------------------------------
# Period aggregation
# ---------------------------------------------------------------------------


@dataclass
class PeriodAccumulator:
    inflow: float = 0.0
    outflow: float = 0.0
    tx_count: int = 0
    addresses: set[str] = field(default_factory=set)

    @property
    def net_flow(self) -> float:
        return self.inflow - self.outflow

    @property
    def avg_transfer_size(self) -> float:
        if self.tx_count == 0:
            return 0.0
        return (self.inflow + self.outflow) / self.tx_count


def period_boundaries(now: float | None = None) -> dict[PeriodName, int]:
    """Window start (unix seconds) for each period name."""
    now = time.time() if now is None else now
    return {
        name: (int(now) - span if span is not None else 0)
        for name, span in PERIOD_SPANS.items()
    }


def _aggregate_rows(
    rows: Sequence[_Row], boundaries: Mapping[PeriodName, int]
) -> dict[PeriodName, PeriodAccumulator]:
    metrics: dict[PeriodName, PeriodAccumulator] = {name: PeriodAccumulator() for name in boundaries}
    for row in rows:
        for name, start in boundaries.items():
            if row.timestamp < start:
                continue
            m = metrics[name]
            if row.flow.is_inflow:
                m.inflow += row.value
                m.tx_count += 1
            elif row.flow.is_outflow:
                m.outflow += row.value
                m.tx_count += 1
            m.addresses.add(row.from_addr)
            m.addresses.add(row.to_addr)
    return metrics


def aggregate(
    transfers: Iterable[Transfer],
    boundaries: Mapping[PeriodName, int],
    table: ProtocolAddressTable,
) -> dict[PeriodName, PeriodAccumulator]:
    """Accumulate inflow/outflow/txCount/addresses per (overlapping) window."""
    return _aggregate_rows(_classified(transfers, table), boundaries)


# ---------------------------------------------------------------------------
# Coverage / data quality
# ---------------------------------------------------------------------------


def assess_coverage(
    transfers: Sequence[Transfer],
    source: str,
    config: FlowAnalysisConfig = FlowAnalysisConfig(),
) -> DataQuality:
    """Describe how much wall-clock time the sample spans."""
    if not transfers:
        return DataQuality(
            coverage="none",
            coverage_hours=0,
            timespan="0 hours",
            source=source,
            warning="No transfer data available for this token.",
        )

    stamps = [t.timestamp for t in transfers]
    hours = round((max(stamps) - min(stamps)) / HOUR)
    days = round(hours / 24)

    if hours < config.limited_coverage_hours:
        coverage = "limited"
        warning = (
            f"High-volume token: only {hours}h of recent data available. "
            "7d/30d metrics cover the same transfers as 24h."
        )
    elif hours < config.good_coverage_hours:
        coverage = "partial"
        warning = f"Partial historical coverage ({days}d). Some time periods may show similar values."
    elif hours < EXCELLENT_COVERAGE_HOURS:
        coverage = "good"
        warning = None
    else:
        coverage = "excellent"
        warning = None

    return DataQuality(
        coverage=coverage,
        coverage_hours=hours,
        timespan=f"{days} days" if days >= 1 else f"{hours} hours",
        source=source,
        warning=warning,
    )


def period_quality(period: PeriodName, quality: DataQuality) -> tuple[PeriodQuality, str | None]:
    span = PERIOD_SPANS[period]
    if span is None:
        return "good", None

    span_hours = span // HOUR
    hours = quality.coverage_hours
    if hours >= span_hours:
        return "good", None

    if quality.coverage in ("limited", "none"):
        if period == "24h":
            return "limited_coverage", f"Partial 24h coverage ({hours}h of 24h)"
        return "insufficient_timespan", f"Requires {_PERIOD_LABELS[period]} of data, only {hours}h available"

    days = round(hours / 24)
    return "limited_coverage", f"Partial {period} coverage ({days}d of {span_hours // 24}d)"


def _period_metrics(acc: PeriodAccumulator, period: PeriodName, quality: DataQuality) -> PeriodMetrics:
    data_quality, note = period_quality(period, quality)
    return PeriodMetrics(
        inflow=acc.inflow,
        outflow=acc.outflow,
        net_flow=acc.net_flow,
        tx_count=acc.tx_count,
        unique_addresses=len(acc.addresses),
        avg_transfer_size=acc.avg_transfer_size,
        data_quality=data_quality,
        note=note,
    )


# ---------------------------------------------------------------------------
# Whales, smart money, velocity, phase
# ---------------------------------------------------------------------------


@dataclass
class AddressActivity:
    inflow: float = 0.0
    outflow: float = 0.0
    tx_count: int = 0

    @property
    def total_volume(self) -> float:
        return self.inflow + self.outflow

    @property
    def net_flow(self) -> float:
        return self.inflow - self.outflow


def _address_activity(rows: Sequence[_Row]) -> dict[str, AddressActivity]:
    activity: dict[str, AddressActivity] = {}
    for row in rows:
        sender = activity.setdefault(row.from_addr, AddressActivity())
        receiver = activity.setdefault(row.to_addr, AddressActivity())
        sender.outflow += row.value
        sender.tx_count += 1
        receiver.inflow += row.value
        receiver.tx_count += 1
    return activity


def abbreviate(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def whale_threshold(median_size: float, multiplier: float = 10.0) -> float:
    return median_size * multiplier


def detect_whales(activity: Mapping[str, AddressActivity], threshold: float) -> list[WhaleRecord]:
    """Top addresses whose combined in+out volume exceeds `threshold`."""
    whales = [
        WhaleRecord(
            address=abbreviate(address),
            total_volume=a.total_volume,
            net_flow=a.net_flow,
            tx_count=a.tx_count,
            type="accumulator" if a.inflow > a.outflow else "distributor",
        )
        for address, a in activity.items()
        if a.total_volume > threshold
    ]
    whales.sort(key=lambda w: w.total_volume, reverse=True)
    return whales[:TOP_WHALES]


def detect_smart_money(
    activity: Mapping[str, AddressActivity], min_tx: int = 5
) -> list[SmartMoneyRecord]:
    """Busy addresses that ended up net receivers."""
    movers = [
        SmartMoneyRecord(
            address=abbreviate(address),
            profitability=a.net_flow,
            tx_count=a.tx_count,
            avg_tx_size=a.total_volume / a.tx_count,
        )
        for address, a in activity.items()
        if a.tx_count >= min_tx and a.net_flow > 0
    ]
    movers.sort(key=lambda m: m.profitability, reverse=True)
    return movers[:TOP_SMART_MONEY]


def flow_velocity(transfers: Sequence[Transfer], sort_order: SortOrder = "newest_first") -> FlowVelocity:
    """
    Compare volume of the latest 100 transfers with the 100 before them.

    Only meaningful on a newest-first sample.
    """
    if sort_order != "newest_first":
        raise ValueError("flow velocity needs transfers ordered newest first")

    recent = sum(t.value for t in transfers[:VELOCITY_WINDOW])
    previous = sum(t.value for t in transfers[VELOCITY_WINDOW : 2 * VELOCITY_WINDOW])

    if recent > previous * ACCELERATING_RATIO:
        trend = "accelerating"
    elif recent < previous * DECELERATING_RATIO:
        trend = "decelerating"
    else:
        trend = "stable"

    return FlowVelocity(
        trend=trend,
        recent_volume=recent,
        previous_volume=previous,
        change_percent=((recent - previous) / previous) * 100 if previous > 0 else 0.0,
    )


def market_phase(last_24h: PeriodMetrics, last_7d: PeriodMetrics) -> MarketPhase:
    if last_24h.net_flow > 0 and last_7d.net_flow > 0:
        phase = "accumulation"
    elif last_24h.net_flow < 0 and last_7d.net_flow < 0:
        phase = "distribution"
    else:
        phase = "transition"

    volume = last_24h.inflow + last_24h.outflow
    confidence = abs(last_24h.net_flow) / volume if volume > 0 else 0.0
    return MarketPhase(current=phase, confidence=confidence)


# ---------------------------------------------------------------------------
# Chart series
# ---------------------------------------------------------------------------


def _bin(rows: Sequence[_Row], width_ms: int, keep: int) -> list[ChartPoint]:
    buckets: dict[int, ChartPoint] = {}
    for row in rows:
        start = (row.timestamp * 1000 // width_ms) * width_ms
        point = buckets.get(start)
        if point is None:
            point = buckets[start] = ChartPoint(timestamp=start)
        if row.flow.is_inflow:
            point.inflow += row.value
        elif row.flow.is_outflow:
            point.outflow += row.value
        point.volume += row.value
        point.tx_count += 1

    series = sorted(buckets.values(), key=lambda p: p.timestamp)[-keep:]
    for point in series:
        point.net_flow = point.inflow - point.outflow
    return series


def bin_chart(transfers: Iterable[Transfer], table: ProtocolAddressTable) -> ChartData:
    """Hourly (last 24 buckets) and daily (last 30 buckets) flow series."""
    return _chart_from_rows(_classified(transfers, table))


def _chart_from_rows(rows: Sequence[_Row]) -> ChartData:
    return ChartData(
        hourly=_bin(rows, HOUR_MS, HOURLY_BUCKETS),
        daily=_bin(rows, DAY_MS, DAILY_BUCKETS),
    )


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def _volume_distribution(sizes: Sequence[float], median_size: float) -> VolumeDistribution:
    small_cap = median_size * 0.5
    large_floor = median_size * 2
    dist = VolumeDistribution()
    for size in sizes:
        if size < small_cap:
            dist.small += 1
        elif size < large_floor:
            dist.medium += 1
        else:
            dist.large += 1
    return dist


def analyze_transfers(
    transfers: Sequence[Transfer],
    table: ProtocolAddressTable,
    *,
    now: float | None = None,
    source: str = "none",
    sort_order: SortOrder = "newest_first",
    config: FlowAnalysisConfig = FlowAnalysisConfig(),
) -> tuple[FlowAnalysis, DataQuality]:
    """
    Build the full flow analysis for one transfer sample.

    An empty sample yields a fully shaped, all-zero analysis.
    """
    rows = _classified(transfers, table)
    accumulators = _aggregate_rows(rows, period_boundaries(now))
    quality = assess_coverage(transfers, source, config)

    periods = FlowPeriods(
        **{name: _period_metrics(accumulators[name], name, quality) for name in PERIOD_NAMES}
    )
    last_24h = periods.get("24h")
    last_7d = periods.get("7d")
    last_30d = periods.get("30d")

    sizes = [row.value for row in rows]
    median_size = median(sizes)
    threshold = whale_threshold(median_size, config.whale_multiplier)
    activity = _address_activity(rows)

    whales = detect_whales(activity, threshold)
    smart = detect_smart_money(activity, config.smart_money_min_tx)
    velocity = flow_velocity(transfers, sort_order)
    phase = market_phase(last_24h, last_7d)
    smart_signal = "strong" if len(smart) > STRONG_SMART_MONEY_COUNT else "weak"

    if last_24h.net_flow > 0:
        trend = "bullish"
    elif last_24h.net_flow < 0:
        trend = "bearish"
    else:
        trend = "neutral"

    analysis = FlowAnalysis(
        periods=periods,
        advanced=AdvancedAnalysis(
            whale_activity=WhaleActivity(
                detected=bool(whales),
                count=len(whales),
                threshold=threshold,
                top_whales=whales[:TOP_WHALES_SHOWN],
                total_whale_volume=sum(w.total_volume for w in whales),
            ),
            smart_money=SmartMoney(movements=smart, signal=smart_signal),
            flow_velocity=velocity,
            market_phase=phase,
        ),
        chart_data=_chart_from_rows(rows),
        insights=Insights(
            trend=trend,
            momentum=velocity.trend,
            phase=phase.current,
            whale_activity="high" if whales else "low",
            smart_money_signal=smart_signal,
            volume_profile={
                "24h": last_24h.inflow + last_24h.outflow,
                "7d": last_7d.inflow + last_7d.outflow,
                "30d": last_30d.inflow + last_30d.outflow,
            },
        ),
        statistics=FlowStatistics(
            median_transfer_size=median_size,
            total_addresses=len(activity),
            active_addresses_24h=last_24h.unique_addresses,
            volume_distribution=_volume_distribution(sizes, median_size),
        ),
    )

    logger.debug(
        f"[FlowAnalysis] {len(rows)} transfers, {len(whales)} whales, "
        f"coverage={quality.coverage} ({quality.coverage_hours}h)"
    )
    return analysis, quality
