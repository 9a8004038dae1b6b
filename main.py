"""
Booking bot entry point.

Serves the WhatsApp webhook and admin API with uvicorn, or runs the
offline console demo for development.

Usage:
    Webhook server: python main.py serve [--host 0.0.0.0] [--port 3000]
    Console mode:   python main.py console [--scenario booking]
"""

import argparse
import logging
import os
import sys
from typing import Optional

logger = logging.getLogger(__name__)


def _run_server(host: str, port: int) -> None:
    """Start the FastAPI app under uvicorn."""
    import uvicorn

    from booking_bot.api import create_app
    from booking_bot.config import settings

    logger.info("Starting webhook server on %s:%d", host, port)
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())


def _run_console_mode(argv: list[str]) -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import main as console_main

    console_main(argv)


def main(argv: Optional[list[str]] = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "console":
        _run_console_mode(argv[1:])
        return

    parser = argparse.ArgumentParser(description="WhatsApp carpet-cleaning booking bot")
    parser.add_argument("command", nargs="?", default="serve", choices=["serve"])
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "3000")))
    args = parser.parse_args(argv)
    _run_server(args.host, args.port)


if __name__ == "__main__":
    main()
