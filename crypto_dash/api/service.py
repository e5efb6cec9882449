"""FastAPI application serving the dashboard's market data."""

import logging
from typing import Annotated, Any, Final

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Path, Query, Request
from fastapi.responses import JSONResponse

from ..market_data.fetch import Failed, FetchState, Idle, Pending, Succeeded
from ..market_data.models import AssetDetail, SortKey
from ..market_data.session import MarketDataSession
from .models import CoinListResponse, ErrorResponse, PriceSeriesResponse
from .settings import api_settings
from .validators import validate_limit

MAX_FILTER_LENGTH: Final[int] = 100

ERROR_FETCH_FAILED: Final[str] = "fetch_failed"
ERROR_SUPERSEDED: Final[str] = "superseded"
ERROR_INTERNAL_ERROR: Final[str] = "internal_error"
ERROR_NOT_FOUND: Final[str] = "not_found"

logger = logging.getLogger(__name__)

_session: MarketDataSession | None = None


def get_market_session() -> MarketDataSession:
    """
    Dependency function to provide the dashboard's session.

    Returns:
        MarketDataSession: The process-wide session, created on first use
    """
    global _session
    if _session is None:
        _session = MarketDataSession()
    return _session


CoinId = Annotated[
    str,
    Path(
        min_length=1,
        max_length=100,
        pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$",
        description="Asset id",
        examples=["bitcoin", "ethereum", "usd-coin"],
    ),
]


app = FastAPI(
    title="Crypto Dash API",
    description="Market list, asset detail and price history for the crypto dashboard",
    version="1.0.0",
)


def _status(state: FetchState) -> tuple[str, str | None]:
    match state:
        case Idle():
            return "idle", None
        case Pending():
            return "pending", None
        case Succeeded():
            return "succeeded", None
        case Failed(message=message):
            return "failed", message
        case _:
            raise TypeError(f"Unknown fetch state: {state!r}")


def _resolve(state: FetchState | None) -> Any:
    """
    Return the value of this request's own succeeded state.

    ``None`` means a newer request for the same slot replaced this one; the
    slot may already hold that request's result for another asset.
    """
    match state:
        case Succeeded(value=value):
            return value
        case Failed(message=message):
            raise HTTPException(
                status_code=502,
                detail=ErrorResponse(
                    error=ERROR_FETCH_FAILED, message=message
                ).model_dump(),
            )
        case _:
            raise HTTPException(
                status_code=409,
                detail=ErrorResponse(
                    error=ERROR_SUPERSEDED,
                    message="Request was superseded by a newer one",
                ).model_dump(),
            )


@app.get("/", response_model=dict[str, str])
async def root() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        dict[str, str]: Health status information
    """
    return {"message": "Crypto Dash API is running", "status": "healthy"}


@app.get("/coins", response_model=CoinListResponse)
async def list_coins(
    session: Annotated[MarketDataSession, Depends(get_market_session)],
    limit: Annotated[
        int | None, Query(description="Number of assets: 5, 10, 20, 50 or 100")
    ] = None,
    sort: Annotated[SortKey | None, Query(description="Local ordering")] = None,
    filter_text: Annotated[
        str | None,
        Query(
            alias="filter",
            max_length=MAX_FILTER_LENGTH,
            description="Case-insensitive name or symbol filter",
        ),
    ] = None,
) -> CoinListResponse:
    """
    Return the filtered and sorted market list.

    A new ``limit`` triggers one upstream fetch; ``sort`` and ``filter`` are
    applied locally to the stored list. A failed fetch keeps the previously
    fetched coins and reports the failure in ``status`` and ``message``.

    Raises:
        HTTPException: 422 for an unsupported limit, 500 for internal errors
    """
    if limit is not None:
        limit = validate_limit(limit)

    try:
        if sort is not None:
            session.set_sort_key(sort)
        if filter_text is not None:
            session.set_filter_text(filter_text)
        if limit is not None:
            await session.set_result_limit(limit)
        elif isinstance(session.list_state, Idle):
            await session.load()

        status, message = _status(session.list_state)
        view = session.view()
        return CoinListResponse(
            status=status,
            message=message,
            limit=session.options.result_limit,
            sort=session.options.sort_key,
            filter=session.options.filter_text,
            coins=list(view.summaries),
            is_empty=view.is_empty,
            dropped_records=session.store.dropped_count,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error listing coins: {e}")
        raise HTTPException(
            status_code=500,
            detail=ErrorResponse(
                error=ERROR_INTERNAL_ERROR,
                message="An unexpected error occurred while listing coins",
            ).model_dump(),
        ) from e


@app.get("/coins/{coin_id}", response_model=AssetDetail)
async def coin_detail(
    coin_id: CoinId,
    session: Annotated[MarketDataSession, Depends(get_market_session)],
) -> AssetDetail:
    """Fetch and return one asset's normalized detail.

    Raises:
        HTTPException: 502 when the upstream fetch failed, 409 when a newer
            detail request replaced this one
    """
    state = await session.load_detail(coin_id)
    return _resolve(state)


@app.get("/coins/{coin_id}/market_chart", response_model=PriceSeriesResponse)
async def coin_market_chart(
    coin_id: CoinId,
    session: Annotated[MarketDataSession, Depends(get_market_session)],
) -> PriceSeriesResponse:
    """Fetch and return the last week of prices for one asset."""
    state = await session.load_series(coin_id)
    points = _resolve(state)
    return PriceSeriesResponse(coin_id=coin_id, prices=list(points))


@app.exception_handler(404)
async def not_found_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle 404 errors.

    Returns:
        JSONResponse: Error response in JSON format
    """
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(
            error=ERROR_NOT_FOUND, message="Endpoint not found"
        ).model_dump(),
    )


@app.exception_handler(500)
async def internal_error_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle internal server errors.

    Args:
        exc: The exception that was raised

    Returns:
        JSONResponse: Error response in JSON format
    """
    logger.error(f"Internal server error: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ERROR_INTERNAL_ERROR, message="An internal server error occurred"
        ).model_dump(),
    )


async def main() -> None:
    """Main entry point for the API server."""
    config = uvicorn.Config(
        app,
        host=api_settings.api_host,
        port=api_settings.api_port,
        log_level=api_settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
