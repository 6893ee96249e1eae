"""Command-line interface for webterminal.

Provides the main entry point for running the terminal server and a
small client for inspecting a running server's session history.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="webterminal",
        description="Browser terminal server with per-session sandboxes",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/webterminal.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the terminal server")
    serve_parser.add_argument("--host", type=str, default=None, help="Override server.host")
    serve_parser.add_argument("--port", type=int, default=None, help="Override server.port")

    history_parser = subparsers.add_parser(
        "history", help="Print a session's command history from a running server",
    )
    history_parser.add_argument("session_id", help="Session to inspect")
    history_parser.add_argument(
        "--url", type=str, default="http://localhost:5000",
        help="Base URL of the running server",
    )
    history_parser.add_argument("--limit", type=int, default=50)
    history_parser.add_argument(
        "--failed", action="store_true", help="Only show commands that did not exit 0",
    )

    return parser.parse_args(argv)


async def _print_history(settings, args) -> int:
    """Fetch and print command history over the REST API."""
    import httpx

    from webterminal.domain.models import CommandRecord

    path = f"{settings.server.api_prefix}/sessions/{args.session_id}/commands"
    async with httpx.AsyncClient(base_url=args.url.rstrip("/"), timeout=10.0) as client:
        try:
            resp = await client.get(path, params={"limit": args.limit})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Failed to fetch history: %s", e)
            return 1

    records = [CommandRecord.model_validate(item) for item in resp.json()]
    if args.failed:
        records = [r for r in records if not r.status.succeeded]
    if not records:
        print(f"No commands recorded for session {args.session_id}")
        return 0
    for record in records:
        print(f"[{record.timestamp:%Y-%m-%d %H:%M:%S}] (exit {record.status}) $ {record.command}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the webterminal CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from webterminal.config.settings import load_settings
    from webterminal.utils.logging import setup_logging

    settings = load_settings(args.config)
    setup_logging(settings.logging, verbose=args.verbose)

    if args.command == "serve":
        from webterminal.endpoint.server import create_app
        import uvicorn

        host = args.host or settings.server.host
        port = args.port or settings.server.port
        logger.info("Starting terminal server on %s:%d", host, port)
        app = create_app(settings)
        uvicorn.run(app, host=host, port=port)

    elif args.command == "history":
        sys.exit(asyncio.run(_print_history(settings, args)))


if __name__ == "__main__":
    main()
