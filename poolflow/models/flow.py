# models/flow.py
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from models.transfer import Transfer

PeriodName = Literal["24h", "7d", "30d", "all"]
PeriodQuality = Literal["good", "limited_coverage", "insufficient_timespan"]
CoverageLabel = Literal["excellent", "good", "partial", "limited", "none"]
VelocityTrend = Literal["accelerating", "decelerating", "stable"]
Phase = Literal["accumulation", "distribution", "transition"]

PERIOD_NAMES: tuple[PeriodName, ...] = ("24h", "7d", "30d", "all")


class CamelModel(BaseModel):
    """Base for everything the dashboard reads: camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PeriodMetrics(CamelModel):
    inflow: float = 0.0
    outflow: float = 0.0
    net_flow: float = 0.0
    tx_count: int = Field(0, ge=0)
    unique_addresses: int = Field(0, ge=0)
    avg_transfer_size: float = 0.0
    data_quality: PeriodQuality = "good"
    note: str | None = None

    # older chart components read these names
    @computed_field(alias="totalInflow")
    @property
    def total_inflow(self) -> float:
        return self.inflow

    @computed_field(alias="totalOutflow")
    @property
    def total_outflow(self) -> float:
        return self.outflow


class FlowPeriods(BaseModel):
    """The four overlapping windows. Every key is always present."""

    model_config = ConfigDict(populate_by_name=True)

    last_24h: PeriodMetrics = Field(default_factory=PeriodMetrics, alias="24h")
    last_7d: PeriodMetrics = Field(default_factory=PeriodMetrics, alias="7d")
    last_30d: PeriodMetrics = Field(default_factory=PeriodMetrics, alias="30d")
    all_time: PeriodMetrics = Field(default_factory=PeriodMetrics, alias="all")

    def get(self, period: PeriodName) -> PeriodMetrics:
        return {
            "24h": self.last_24h,
            "7d": self.last_7d,
            "30d": self.last_30d,
            "all": self.all_time,
        }[period]


class WhaleRecord(CamelModel):
    address: str  # abbreviated, 0x1234...abcd
    total_volume: float
    net_flow: float
    tx_count: int
    type: Literal["accumulator", "distributor"]


class WhaleActivity(CamelModel):
    detected: bool = False
    count: int = 0
    threshold: float = 0.0
    top_whales: list[WhaleRecord] = Field(default_factory=list)
    total_whale_volume: float = 0.0


class SmartMoneyRecord(CamelModel):
    address: str
    profitability: float
    tx_count: int
    avg_tx_size: float


class SmartMoney(CamelModel):
    movements: list[SmartMoneyRecord] = Field(default_factory=list)
    signal: Literal["strong", "weak"] = "weak"


class FlowVelocity(CamelModel):
    trend: VelocityTrend = "stable"
    recent_volume: float = 0.0
    previous_volume: float = 0.0
    change_percent: float = 0.0


class MarketPhase(CamelModel):
    current: Phase = "transition"
    confidence: float = 0.0


class AdvancedAnalysis(CamelModel):
    whale_activity: WhaleActivity = Field(default_factory=WhaleActivity)
    smart_money: SmartMoney = Field(default_factory=SmartMoney)
    flow_velocity: FlowVelocity = Field(default_factory=FlowVelocity)
    market_phase: MarketPhase = Field(default_factory=MarketPhase)


class ChartPoint(CamelModel):
    timestamp: int  # bucket start, unix milliseconds
    inflow: float = 0.0
    outflow: float = 0.0
    net_flow: float = 0.0
    volume: float = 0.0
    tx_count: int = 0


class ChartData(CamelModel):
    hourly: list[ChartPoint] = Field(default_factory=list)
    daily: list[ChartPoint] = Field(default_factory=list)


class Insights(CamelModel):
    trend: Literal["bullish", "bearish", "neutral"] = "neutral"
    momentum: VelocityTrend = "stable"
    phase: Phase = "transition"
    whale_activity: Literal["high", "low"] = "low"
    smart_money_signal: Literal["strong", "weak"] = "weak"
    volume_profile: dict[str, float] = Field(
        default_factory=lambda: {"24h": 0.0, "7d": 0.0, "30d": 0.0}
    )


class VolumeDistribution(CamelModel):
    small: int = 0
    medium: int = 0
    large: int = 0


class FlowStatistics(CamelModel):
    median_transfer_size: float = 0.0
    total_addresses: int = 0
    active_addresses_24h: int = Field(0, alias="activeAddresses24h")
    volume_distribution: VolumeDistribution = Field(default_factory=VolumeDistribution)


class FlowAnalysis(CamelModel):
    periods: FlowPeriods = Field(default_factory=FlowPeriods)
    advanced: AdvancedAnalysis = Field(default_factory=AdvancedAnalysis)
    chart_data: ChartData = Field(default_factory=ChartData)
    insights: Insights = Field(default_factory=Insights)
    statistics: FlowStatistics = Field(default_factory=FlowStatistics)


class DataQuality(CamelModel):
    """How much wall-clock history the fetched sample actually spans."""

    coverage: CoverageLabel = "none"
    coverage_hours: int = 0
    timespan: str = "0 hours"
    source: str = "none"
    warning: str | None = None


class TokenTransfersResponse(CamelModel):
    """
    Response body for GET /api/pools/{pool_id}/token-transfers
    """

    token_address: str
    token_symbol: str
    transfers: list[Transfer] = Field(default_factory=list)
    data_quality: DataQuality = Field(default_factory=DataQuality)
    flow_analysis: FlowAnalysis = Field(default_factory=FlowAnalysis)
    message: str | None = None
