# core/config.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

ALCHEMY_MAINNET_URL = "https://eth-mainnet.g.alchemy.com/v2/{api_key}"


class Settings(BaseSettings):
    # general
    ENV: Literal["local", "dev", "staging", "prod"] = "local"
    APP_NAME: str = "poolflow"

    # transfer provider selection: "auto" uses Alchemy when credentials exist,
    # otherwise reports no data instead of failing
    TRANSFER_PROVIDER: Literal["auto", "alchemy", "mock"] = "auto"

    # Alchemy JSON-RPC
    ALCHEMY_RPC_URL: AnyHttpUrl | None = None
    ALCHEMY_API_KEY: str | None = None
    ALCHEMY_TIMEOUT_SECONDS: float = 20.0
    ALCHEMY_MAX_RETRIES: int = 3
    ALCHEMY_RETRY_BASE_SECONDS: float = 0.25

    # transfer sample size
    TRANSFER_LOOKBACK_DAYS: int = 90
    TRANSFER_MAX_COUNT: int = 15_000

    # static data
    PROTOCOL_ADDRESSES_FILE: Path = DATA_DIR / "protocol_addresses.json"
    POOLS_FILE: Path = DATA_DIR / "pools.json"

    # heuristics
    WHALE_MULTIPLIER: float = 10.0
    SMART_MONEY_MIN_TX: int = 5

    # coverage thresholds used to caveat 24h / 7d / 30d windows
    COVERAGE_LIMITED_HOURS: int = 24
    COVERAGE_GOOD_HOURS: int = 7 * 24

    # logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def alchemy_url(self) -> str | None:
        if self.ALCHEMY_RPC_URL:
            return str(self.ALCHEMY_RPC_URL)
        if self.ALCHEMY_API_KEY:
            return ALCHEMY_MAINNET_URL.format(api_key=self.ALCHEMY_API_KEY)
        return None


@lru_cache
def get_settings() -> Settings:
    return Settings()
