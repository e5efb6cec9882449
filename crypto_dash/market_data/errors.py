"""
Error taxonomy for the market-data pipeline.
"""


class MarketDataError(Exception):
    """Base class for market-data pipeline errors."""


class TransportError(MarketDataError):
    """No response was received (network, DNS, timeout)."""


class HttpStatusError(MarketDataError):
    """A response was received with a status outside the 2xx range."""

    def __init__(self, status: int, url: str):
        super().__init__(f"Unexpected HTTP status {status} from {url}")
        self.status = status
        self.url = url


class MalformedPayloadError(MarketDataError):
    """The response parsed but does not have the expected shape."""


class InvalidOptionError(MarketDataError, ValueError):
    """A caller supplied an option outside the supported set."""
