"""MCP tool handlers for data package extraction.

Defines three tools:

- ``data_extract`` -- install (if needed) and extract packages.
- ``data_check`` -- report drift between extracted files and packages.
- ``data_list`` -- list packages with files managed in a directory.

Arguments mirror ``ConsumerConfig``; defaults come from the hierarchical
config file and ``FOLDER_PUBLISHER_*`` environment variables.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import mcp.types as types

from ...config import load_consumer_config
from ...config_loader import load_hierarchical_config
from ...config_schema import ConsumerConfig, build_config
from ...consumer import ConsumerOrchestrator
from ...sync.reporter import (
    format_check_report,
    format_extract_report,
    format_package_list,
    result_to_json,
)
from .registry import ToolSpec

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared input schema fragments
# ---------------------------------------------------------------------------

_PACKAGES_PROP = {
    "type": "array",
    "items": {"type": "string"},
    "description": (
        "Package specs, bare names or name@constraint "
        "(e.g. 'shared-schemas@^2.0.0', '@scope/fixtures@~1.4.0')"
    ),
}
_OUTPUT_DIR_PROP = {
    "type": "string",
    "description": "Output directory, absolute or relative to cwd",
}
_CWD_PROP = {
    "type": "string",
    "description": "Project directory holding node_modules (absolute path)",
}
_FROM_PACKAGE_PROP = {
    "type": "string",
    "description": (
        "Publishable package directory or package.json, relative to cwd; "
        "its name and npmdata.additionalPackages are extracted before "
        "any listed packages"
    ),
}
# packages, from_package, or both
_PACKAGE_SOURCE_REQUIRED = [{"required": ["packages"]}, {"required": ["from_package"]}]
_FILTER_PROPS = {
    "filename_patterns": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Include globs; prefix with '!' to exclude (e.g. '**/*.md')",
    },
    "content_regexes": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Regexes; a file's text must match at least one",
    },
}


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


PUBLISHER_TOOLS: list[types.Tool] = [
    types.Tool(
        name="data_extract",
        description=(
            "Install data packages if needed and extract their files into "
            "an output directory. Extracted files are read-only and tracked "
            "so later runs update or delete them."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "packages": _PACKAGES_PROP,
                "from_package": _FROM_PACKAGE_PROP,
                "output_dir": _OUTPUT_DIR_PROP,
                "cwd": _CWD_PROP,
                "package_manager": {
                    "type": "string",
                    "enum": ["npm", "pnpm", "yarn"],
                    "description": "Package manager (default: auto-detect)",
                },
                "force": {
                    "type": "boolean",
                    "default": False,
                    "description": "Overwrite unmanaged files instead of failing",
                },
                "gitignore": {
                    "type": "boolean",
                    "default": False,
                    "description": "Maintain .gitignore next to each marker file",
                },
                "dry_run": {
                    "type": "boolean",
                    "default": False,
                    "description": "Preview changes without writing",
                },
                "upgrade": {
                    "type": "boolean",
                    "default": False,
                    "description": "Reinstall packages even if a satisfying version exists",
                },
                **_FILTER_PROPS,
            },
            "required": [],
            "anyOf": _PACKAGE_SOURCE_REQUIRED,
        },
    ),
    types.Tool(
        name="data_check",
        description=(
            "Check whether extracted files still match their installed "
            "packages. Reports missing and modified files. Never installs."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "packages": _PACKAGES_PROP,
                "from_package": _FROM_PACKAGE_PROP,
                "output_dir": _OUTPUT_DIR_PROP,
                "cwd": _CWD_PROP,
                **_FILTER_PROPS,
            },
            "required": [],
            "anyOf": _PACKAGE_SOURCE_REQUIRED,
        },
    ),
    types.Tool(
        name="data_list",
        description=(
            "List packages with files managed in an output directory, "
            "with their recorded version and files."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "output_dir": _OUTPUT_DIR_PROP,
                "cwd": _CWD_PROP,
            },
            "required": [],
        },
    ),
]


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


def _build_config(args: dict[str, Any]) -> ConsumerConfig:
    """Merge tool arguments over config-file and env defaults."""
    cwd = args.get("cwd")
    unified = build_config(load_hierarchical_config(Path(cwd) if cwd else None))
    return load_consumer_config(args, unified.consumer)


def _result(text: str, structured: Any) -> types.CallToolResult:
    if isinstance(structured, list):
        structured = {"packages": structured}
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


async def _handle_data_extract(args: dict[str, Any]) -> types.CallToolResult:
    """Handle the ``data_extract`` tool."""
    config = _build_config(args)
    result = await asyncio.to_thread(ConsumerOrchestrator(config).extract)
    return _result(
        format_extract_report(result, dry_run=config.dry_run),
        result_to_json(result),
    )


async def _handle_data_check(args: dict[str, Any]) -> types.CallToolResult:
    """Handle the ``data_check`` tool."""
    config = _build_config(args)
    result = await asyncio.to_thread(ConsumerOrchestrator(config).check)
    return _result(format_check_report(result), result_to_json(result))


async def _handle_data_list(args: dict[str, Any]) -> types.CallToolResult:
    """Handle the ``data_list`` tool."""
    config = _build_config(args)
    packages = await asyncio.to_thread(
        ConsumerOrchestrator(config).list_packages
    )
    return _result(format_package_list(packages), result_to_json(packages))


_HANDLERS = {
    "data_extract": _handle_data_extract,
    "data_check": _handle_data_check,
    "data_list": _handle_data_list,
}

PUBLISHER_SPECS: list[ToolSpec] = [
    ToolSpec(tool=tool, handler=_HANDLERS[tool.name])
    for tool in PUBLISHER_TOOLS
]
