"""Tool dispatch for the MCP server.

Each tool is a ``ToolSpec``: the ``types.Tool`` advertised to clients
plus the coroutine that serves it.  ``ToolRegistry`` looks specs up by
name and turns handler exceptions into ``isError`` results, so a failed
extraction reaches the agent as a readable message with a next step.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import mcp.types as types

from ...errors import FolderPublisherError
from .errors import build_error_response, translate_publisher_error

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict], Awaitable[types.CallToolResult]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """A tool definition and its handler."""

    tool: types.Tool
    handler: ToolHandler


def _failure_result(name: str, exc: Exception) -> types.CallToolResult:
    match exc:
        case FolderPublisherError():
            logger.warning("%s failed: %s", name, exc)
            return translate_publisher_error(exc)
        case ValueError():
            logger.info("%s rejected its arguments: %s", name, exc)
            return build_error_response(
                "validation_error",
                str(exc),
                "Check parameter values and retry.",
            )
        case _:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error",
                str(exc),
                "Check the server log file for details and retry.",
            )


class ToolRegistry:
    """Tools by name, in registration order.

    A later spec with the same tool name replaces the earlier one.
    """

    def __init__(self, specs: list[ToolSpec]):
        self._specs = {spec.tool.name: spec for spec in specs}

    def list_tools(self) -> list[types.Tool]:
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
    ) -> types.CallToolResult:
        """Run the handler registered for *name*.

        Publisher errors, invalid arguments (``ValueError``, including
        pydantic validation errors) and unexpected exceptions are all
        returned as error results; none propagate.

        Raises:
            ValueError: If no tool named *name* is registered.
        """
        if name not in self._specs:
            raise ValueError(f"Unknown tool: {name}")
        try:
            return await self._specs[name].handler(arguments or {})
        except Exception as exc:
            return _failure_result(name, exc)
