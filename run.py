"""
Main entrypoint for the Crypto Dash application.
Usage: python run.py [api|snapshot]
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

USAGE = """Usage: python run.py [api|snapshot]
  api       - Start the dashboard API
  snapshot  - Fetch the market list once and log it"""


def setup_logging() -> None:
    """
    Set up consistent logging configuration for the application.
    Uses environment variables for configuration.
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_format = os.getenv(
        "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    log_file = os.getenv("LOG_FILE", "crypto_dash.log")
    log_to_file = os.getenv("LOG_TO_FILE", "true").lower() == "true"

    numeric_level = getattr(logging, log_level, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )


logger = logging.getLogger(__name__)


async def snapshot() -> None:
    """Fetch the default market list once and log the view."""
    from crypto_dash.market_data.detail import format_amount
    from crypto_dash.market_data.fetch import Failed
    from crypto_dash.market_data.session import MarketDataSession

    session = MarketDataSession()
    state = await session.load()
    if isinstance(state, Failed):
        logger.error(state.message)
        return

    for rank, coin in enumerate(session.view().summaries, start=1):
        logger.info(
            f"{rank:>3}. {coin.name} ({coin.symbol.upper()}) "
            f"${format_amount(coin.current_price)} "
            f"cap ${format_amount(coin.market_cap)}"
        )


async def main():
    if len(sys.argv) != 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1].lower()

    setup_logging()

    if command == "api":
        from crypto_dash.api.service import main as run_service

        logger.info("Starting dashboard API...")
    elif command == "snapshot":
        run_service = snapshot
    else:
        print(f"Unknown command: {command}")
        print(USAGE)
        sys.exit(1)
    await run_service()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(0)
    except Exception as e:
        print(f"Application failed: {e}")
        sys.exit(1)
