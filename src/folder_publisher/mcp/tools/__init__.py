"""MCP tool handlers for folder-publisher operations.

This package contains MCP tool implementations that wrap the consumer
orchestrator with async handlers and structured error responses.
"""

from .errors import build_error_response, translate_publisher_error
from .publisher import PUBLISHER_SPECS, PUBLISHER_TOOLS
from .registry import ToolRegistry, ToolSpec

ALL_SPECS: list[ToolSpec] = list(PUBLISHER_SPECS)

__all__ = [
    "build_error_response",
    "translate_publisher_error",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    # Spec lists
    "ALL_SPECS",
    "PUBLISHER_SPECS",
    "PUBLISHER_TOOLS",
]
