"""
HTTP transport for the upstream market-data API.
"""

import asyncio
import logging
from typing import Any

import aiohttp

from .errors import HttpStatusError, MalformedPayloadError, TransportError
from .models import RequestDescriptor
from .settings import market_data_settings

logger = logging.getLogger(__name__)


class MarketDataClient:
    """Issues GET requests and returns decoded JSON bodies."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the client with an optional total timeout in seconds."""
        self.timeout = (
            market_data_settings.request_timeout if timeout is None else timeout
        )

    async def fetch_json(self, request: RequestDescriptor) -> Any:
        """
        Perform one GET request and decode the JSON body.

        Args:
            request: The endpoint and query parameters to fetch

        Returns:
            The decoded JSON payload

        Raises:
            TransportError: If no response could be obtained
            HttpStatusError: If the response status is outside the 2xx range
            MalformedPayloadError: If the body is not valid JSON
        """
        try:
            async with (
                aiohttp.ClientSession() as session,
                session.get(
                    request.url,
                    params=request.params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response,
            ):
                if not 200 <= response.status < 300:
                    raise HttpStatusError(response.status, request.url)
                data = await response.json(content_type=None)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error fetching {request.url}: {e!r}")
            raise TransportError(f"Request to {request.url} failed") from e
        except ValueError as e:
            raise MalformedPayloadError(
                f"Response from {request.url} is not valid JSON"
            ) from e

        logger.debug(f"Fetched {request.url} with params {request.params}")
        return data
