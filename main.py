"""
Lead orchestrator entry point.

Serves the WhatsApp webhook and debug API with uvicorn, or runs the offline
console demo for development.

Usage:
    Webhook server: python main.py serve
    Console mode:   python main.py console [--scenario price|visit|outage]
"""

import logging
import sys

from lead_orchestrator.config import settings

logger = logging.getLogger(__name__)


def _run_server() -> None:
    """Start the FastAPI app (requires OpenAI and Twilio credentials to be useful)."""
    import uvicorn

    from lead_orchestrator.api import create_app

    app = create_app()
    logger.info("Listening on port %d", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


def _run_console_mode(argv: list[str]) -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import main as console_main

    console_main(argv)


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode(sys.argv[2:])
    else:
        _run_server()
