"""gmailbridge entry point.

Subcommands:
  serve      Run the HTTP server (default).
  authorize  Complete the Gmail consent once from the terminal and store the token.
  logout     Delete the cached token.
"""

import argparse
import asyncio
import logging
import sys

from gmailbridge import __version__
from gmailbridge.config import Settings, get_settings
from gmailbridge.errors import GmailBridgeError
from gmailbridge.integrations.consent import ConsolePrompt
from gmailbridge.integrations.flow import AuthorizationFlow
from gmailbridge.integrations.token_store import TokenCache
from gmailbridge.logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _authorize(settings: Settings) -> None:
    flow = AuthorizationFlow(settings, prompt=ConsolePrompt())
    client = await flow.authorize()
    logger.info("Authorized; token scopes: %s", " ".join(client.token.scopes))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="gmailbridge",
        description="HTTP bridge for a handful of Gmail operations",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "authorize", "logout"],
        help="What to do (default: serve)",
    )
    parser.add_argument("--host", type=str, default=None, help="Host to bind")
    parser.add_argument("--port", type=int, default=None, help="Port to bind")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    settings = get_settings()
    overrides = {
        k: v
        for k, v in (("host", args.host), ("port", args.port), ("log_level", args.log_level))
        if v is not None
    }
    if overrides:
        settings = settings.model_copy(update=overrides)

    setup_logging(level=settings.log_level)

    try:
        if args.command == "authorize":
            asyncio.run(_authorize(settings))
        elif args.command == "logout":
            if TokenCache(settings.token_file).delete():
                logger.info("Logged out")
            else:
                logger.info("No cached token at %s", settings.token_file)
        else:
            from gmailbridge.api.serve import run_server

            run_server(settings)
    except GmailBridgeError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
