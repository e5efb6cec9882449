"""
Market-data settings using Pydantic for environment-based configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MarketDataSettings(BaseSettings):
    """Upstream market-data API configuration."""

    markets_api_url: str = Field(
        default="https://api.coingecko.com/api/v3/coins/markets",
        description="Endpoint returning the market-cap ordered asset list",
    )

    coin_api_url: str = Field(
        default="https://api.coingecko.com/api/v3/coins",
        description="Base URL for single asset detail and price history",
    )

    request_timeout: float | None = Field(
        default=None,
        description="Total request timeout in seconds, unset means no timeout",
    )

    series_days: int = Field(
        default=7, description="Number of days of price history to request"
    )

    default_result_limit: int = Field(
        default=10, description="Number of assets listed before the user picks"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Create a global instance
market_data_settings = MarketDataSettings()
