"""folder-publisher as an MCP server over stdio.

Exposes ``data_extract``, ``data_check`` and ``data_list`` so an agent
can vendor data packages into a project and verify them later.  stdout
belongs to the JSON-RPC stream; logs go to a file.
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from dotenv import load_dotenv
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..logger import DEFAULT_MCP_LOG_FILE, setup_logging
from .tools import ALL_SPECS, ToolRegistry, build_error_response

logger = logging.getLogger(__name__)

SERVER_NAME = "folder-publisher"

server = Server(SERVER_NAME)

# Set by main() for the lifetime of the stdio session
_registry: ToolRegistry | None = None


def get_registry() -> ToolRegistry:
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized; start the server with main()")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Dispatch a tools/call request; unknown names become an error result."""
    try:
        return await get_registry().call_tool(name, arguments)
    except ValueError as e:
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


def _initialization_options() -> InitializationOptions:
    return InitializationOptions(
        server_name=SERVER_NAME,
        server_version=__version__,
        capabilities=server.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={},
        ),
    )


async def main(log_file: str | None = None, debug: bool = False):
    """Serve MCP requests on stdin/stdout until the client disconnects.

    Logging is set up before the transport opens so nothing is ever
    printed onto the protocol stream.
    """
    setup_logging(mode="mcp", debug=debug, log_file=log_file)

    set_registry(ToolRegistry(ALL_SPECS))
    logger.info(
        "%s %s serving %d tools",
        SERVER_NAME,
        __version__,
        get_registry().tool_count(),
    )

    try:
        async with mcp.server.stdio.stdio_server() as (reader, writer):
            await server.run(reader, writer, _initialization_options())
    finally:
        set_registry(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="folder-publisher-mcp",
        description="Serve folder-publisher extract/check/list as MCP tools over stdio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configure it as a stdio MCP server in your client, e.g.:

  {"command": "folder-publisher-mcp", "args": ["--log-file", "/tmp/fp-mcp.log"]}

Tool defaults are read from .folder_publisher/config.yml in the project
directory passed as "cwd", and from FOLDER_PUBLISHER_* environment variables.
        """,
    )
    parser.add_argument(
        "--log-file",
        default=DEFAULT_MCP_LOG_FILE,
        help=f"Log file path (default: {DEFAULT_MCP_LOG_FILE})",
    )
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")
    parser.add_argument(
        "--version",
        action="version",
        version=f"folder-publisher-mcp version {__version__}",
    )
    return parser


def run() -> None:
    """Console-script entry point."""
    args = build_parser().parse_args()
    load_dotenv()

    try:
        asyncio.run(main(log_file=args.log_file, debug=args.debug))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
