"""Command-line interface for termbridge.

Provides the main entry point for serving the endpoint, running a
single request in-process, or checking what the normalizer does to a
command line.
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
        prog="termbridge",
        description="Remote command, REPL and package tool execution engine",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/termbridge.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the JSON-RPC endpoint server")
    serve_parser.add_argument("--host", type=str, default=None, help="Override endpoint.host")
    serve_parser.add_argument("--port", type=int, default=None, help="Override endpoint.port")

    call_parser = subparsers.add_parser("call", help="Run one request in-process")
    call_parser.add_argument("method", help="Method name, e.g. 'python', 'pip', 'list'")
    call_parser.add_argument("params", nargs="*", help="Request parameters")
    call_parser.add_argument(
        "--identity", type=str, default=None,
        help="Caller identity used for the REPL session",
    )

    normalize_parser = subparsers.add_parser(
        "normalize", help="Print the normalized form of a command line",
    )
    normalize_parser.add_argument("text", help="Raw command line")

    return parser.parse_args(argv)


async def _call(settings, args) -> int:
    """Run a single gateway request and print its transcript as it arrives."""
    from termbridge.endpoint.gateway import build_gateway
    from termbridge.normalizer.policy import CommandRejected

    gateway = build_gateway(settings)
    try:
        result = await gateway.call(args.method, args.params, args.identity, on_line=print)
    except CommandRejected as e:
        print(f"Rejected: {e}", file=sys.stderr)
        return 2
    return result.exit_code


def _normalize(settings, text: str) -> None:
    from termbridge.normalizer.command import CommandNormalizer

    normalizer = CommandNormalizer.from_config(settings.normalizer)
    command = normalizer.normalize(text)
    print(f"command: {command.text}")
    print(f"verb:    {command.verb}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the termbridge CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from termbridge.config.settings import load_settings
    from termbridge.utils.logging import setup_logging

    settings = load_settings(args.config)
    if args.verbose:
        settings.logging.level = "DEBUG"
    setup_logging(settings.logging)

    if args.command == "serve":
        from termbridge.endpoint.server import create_app
        import uvicorn

        ep = settings.endpoint
        if args.host:
            ep.host = args.host
        if args.port:
            ep.port = args.port
        logger.info("Starting endpoint server")
        uvicorn.run(create_app(settings), host=ep.host, port=ep.port)
    elif args.command == "call":
        exit_code = asyncio.run(_call(settings, args))
        if exit_code:
            sys.exit(exit_code)
    elif args.command == "normalize":
        _normalize(settings, args.text)


if __name__ == "__main__":
    main()
