"""Main entry point for the MarketGazer dashboard."""

import argparse
import sys

from loguru import logger

from marketgazer.config import config, validate_config
from marketgazer.utils.logger import setup_logger


def serve(host: str, port: int, debug: bool = False):
    """Run the dashboard API with the Flask development server."""
    from marketgazer.dashboard_app import create_app

    logger.info("=" * 60)
    logger.info("📈 MARKETGAZER STARTING")
    logger.info("=" * 60)

    if not config.gemini.api_key:
        logger.warning("GEMINI_API_KEY not set. AI predictions and summaries will fail.")

    app = create_app()
    logger.info(f"📊 Open http://{host}:{port} in your browser")
    app.run(host=host, port=port, debug=debug)


def check() -> bool:
    """Validate configuration and test the model connection.

    Returns:
        True if everything is ready
    """
    if not validate_config():
        return False

    from marketgazer.llm.analyst import StockAnalyst
    return StockAnalyst().test_connection()


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="MarketGazer stock dashboard")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the web API")
    serve_parser.add_argument("--host", default=config.web.host, help="Interface to bind")
    serve_parser.add_argument("--port", type=int, default=config.web.port, help="Port to listen on")
    serve_parser.add_argument("--debug", action="store_true", default=config.web.debug, help="Enable Flask debug mode")

    subparsers.add_parser("check", help="Validate configuration and test API connections")

    args = parser.parse_args(argv)

    setup_logger()

    if args.command == "serve":
        serve(args.host, args.port, args.debug)
        return 0

    if args.command == "check":
        if check():
            logger.info("✅ All connections successful!")
            return 0
        logger.error("Connection test failed. Check your .env file.")
        return 1

    return 2


if __name__ == "__main__":
    sys.exit(main())
