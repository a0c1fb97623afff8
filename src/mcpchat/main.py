"""
mcpchat - interactive command-line entry point.

Connects to an MCP server (a ``.py``/``.js`` script or an SSE URL), then reads
queries from stdin until the user types ``quit``.

Examples:
    mcpchat ./my-server.py
    mcpchat http://localhost:8931/sse
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from mcpchat.app import ChatApplication, ChatResponse
from mcpchat.config import SUPPORTED_PROVIDERS, Settings, get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    level = "DEBUG" if settings.debug else settings.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)


def render_response(response: ChatResponse) -> str:
    lines = [response.text]
    if response.saved_path is not None:
        lines.append(f"[screenshot saved to {response.saved_path}]")
    elif response.image_data is not None:
        lines.append("[response contained an image that could not be saved]")
    return "\n".join(lines)


async def chat_loop(app: ChatApplication) -> None:
    """Read queries from stdin and print the responses."""
    logger.info("MCP Client Started!")
    logger.info("Type your queries or 'quit' to exit.")

    while True:
        try:
            message = await asyncio.to_thread(input, "\nQuery: ")
        except EOFError:
            break
        message = message.strip()
        if message.lower() == "quit":
            break
        if not message:
            continue

        try:
            response = await app.answer(message)
        except Exception as exc:
            logger.error("Error processing query: %s", exc)
            print(f"\nError: {exc}")
            continue
        print("\n" + render_response(response))


async def main(target: str, settings: Settings) -> int:
    """Initialise, connect, chat, and always clean up.

    Returns:
        Process exit code: 0 on a normal exit, 1 when startup fails.
        Failed queries are reported and do not end the session.
    """
    app = ChatApplication(settings)
    try:
        app.initialize()
        await app.connect(target)
        await chat_loop(app)
    except Exception as exc:
        logger.error("Application failed: %s", exc)
        return 1
    finally:
        await app.cleanup()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpchat",
        description="Chat with an LLM that can call tools on an MCP server",
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="Path to a .py/.js server script, or an http(s) SSE URL",
    )
    parser.add_argument(
        "--provider",
        choices=SUPPORTED_PROVIDERS,
        default=None,
        help="Override AI_PROVIDER",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def cli_main(argv: list[str] | None = None) -> None:
    """Entry point for the ``mcpchat`` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.target:
        parser.print_help()
        print("\nExamples:")
        print("  mcpchat ./my-server.py")
        print("  mcpchat http://localhost:8931/sse")
        return

    settings = get_settings()
    if args.provider:
        settings.ai_provider = args.provider
    if args.debug:
        settings.debug = True

    configure_logging(settings)
    try:
        code = asyncio.run(main(args.target, settings))
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    cli_main()
