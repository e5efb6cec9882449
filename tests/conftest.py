"""
Test configuration for the crypto dash tests.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest

# Add project root to path before importing our modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Import our modules after path setup
from crypto_dash.market_data.models import AssetSummary, RequestDescriptor  # noqa: E402
from crypto_dash.market_data.settings import market_data_settings  # noqa: E402

MARKETS_URL = market_data_settings.markets_api_url
COIN_URL = market_data_settings.coin_api_url.rstrip("/")


class ScriptedFetcher:
    """Answers requests from a URL table; exceptions in the table are raised."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = responses or {}
        self.calls: list[RequestDescriptor] = []

    async def __call__(self, request: RequestDescriptor) -> Any:
        self.calls.append(request)
        outcome = self.responses[request.url]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class ControlledFetcher:
    """Leaves every request pending until the test resolves its future."""

    def __init__(self) -> None:
        self.calls: list[RequestDescriptor] = []
        self.pending: list[asyncio.Future] = []

    async def __call__(self, request: RequestDescriptor) -> Any:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(request)
        self.pending.append(future)
        return await future


async def settle() -> None:
    """Let freshly created tasks run up to their first suspension point."""
    for _ in range(3):
        await asyncio.sleep(0)


@pytest.fixture
def raw_markets() -> list[dict[str, Any]]:
    """Two list records as returned by the markets endpoint."""
    return [
        {
            "id": "bitcoin",
            "symbol": "btc",
            "name": "Bitcoin",
            "image": "https://assets.example/bitcoin.png",
            "current_price": 50000,
            "market_cap": 900000000000,
            "price_change_percentage_24h": 2.5,
        },
        {
            "id": "ether",
            "symbol": "eth",
            "name": "Ethereum",
            "image": "https://assets.example/ether.png",
            "current_price": 3000,
            "market_cap": 400000000000,
            "price_change_percentage_24h": -1.2,
        },
    ]


@pytest.fixture
def summaries() -> list[AssetSummary]:
    """A decoded market list with distinct prices, caps and changes."""
    rows = [
        ("bitcoin", "btc", "Bitcoin", 50000.0, 900e9, 2.5),
        ("ethereum", "eth", "Ethereum", 3000.0, 400e9, -1.2),
        ("tether", "usdt", "Tether", 1.0, 110e9, 0.01),
        ("solana", "sol", "Solana", 150.0, 70e9, 5.4),
        ("dogecoin", "doge", "Dogecoin", 0.12, 17e9, -3.3),
    ]
    return [
        AssetSummary(
            id=id_,
            symbol=symbol,
            name=name,
            current_price=price,
            market_cap=cap,
            price_change_pct_24h=change,
        )
        for id_, symbol, name, price, cap, change in rows
    ]


@pytest.fixture
def raw_detail() -> dict[str, Any]:
    """A trimmed coin detail payload in the upstream shape."""
    return {
        "id": "bitcoin",
        "symbol": "btc",
        "name": "Bitcoin",
        "market_cap_rank": 1,
        "categories": ["Cryptocurrency", "Layer 1 (L1)", None, ""],
        "description": {
            "en": "Bitcoin is the first decentralized cryptocurrency. It was "
            "created in 2009 by Satoshi Nakamoto."
        },
        "image": {"large": "https://assets.example/bitcoin_large.png"},
        "links": {
            "homepage": ["http://www.bitcoin.org", "", ""],
            "blockchain_site": ["", "https://mempool.space/", "https://blockchair.com/"],
        },
        "market_data": {
            "current_price": {"usd": 50000, "eur": 46000},
            "market_cap": {"usd": 900000000000},
            "high_24h": {"usd": 51000},
            "low_24h": {"usd": 49000},
            "price_change_24h": 1250.5,
            "price_change_percentage_24h": 2.5,
            "circulating_supply": 19500000.0,
            "total_supply": 21000000.0,
            "ath": {"usd": 73738},
            "ath_date": {"usd": "2024-03-14T07:10:36.635Z"},
            "atl": {"usd": 67.81},
            "atl_date": {"usd": "2013-07-06T00:00:00.000Z"},
        },
        "last_updated": "2024-05-01T12:00:00.000Z",
    }


@pytest.fixture
def raw_chart() -> dict[str, Any]:
    return {
        "prices": [
            [1714521600000, 60000.5],
            [1714525200000, 60120.0],
            [1714528800000, 59980.25],
        ]
    }


@pytest.fixture
def scripted_fetcher(raw_markets, raw_detail, raw_chart) -> ScriptedFetcher:
    """Fetcher serving the sample payloads for bitcoin."""
    return ScriptedFetcher(
        {
            MARKETS_URL: raw_markets,
            f"{COIN_URL}/bitcoin": raw_detail,
            f"{COIN_URL}/bitcoin/market_chart": raw_chart,
        }
    )


@pytest.fixture
def controlled_fetcher() -> ControlledFetcher:
    return ControlledFetcher()
