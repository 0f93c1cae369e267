"""Error response builders for MCP tool handlers.

Structured error responses carry a corrective action so an agent can
recover from a failed extraction or check without human intervention.
"""

import mcp.types as types

from ...errors import (
    CorruptMarker,
    FileConflict,
    FolderPublisherError,
    IoFailure,
    PackageNotInstalled,
)


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_installed, file_conflict,
            corrupt_marker, io_error, validation_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("not_installed", "pkg is not installed", "Run data_extract first.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_publisher_error(
    error: FolderPublisherError,
) -> types.CallToolResult:
    """Translate a publisher exception to a structured error response."""
    match error:
        case PackageNotInstalled():
            return build_error_response(
                "not_installed",
                str(error),
                "Run data_extract (which installs packages) or install "
                f"'{error.package_name}' with the project's package manager.",
            )
        case FileConflict():
            return build_error_response(
                "file_conflict",
                str(error),
                "Move or delete the existing file, or retry with force=true "
                "to overwrite it.",
            )
        case CorruptMarker():
            return build_error_response(
                "corrupt_marker",
                str(error),
                f"Fix or delete {error.path}, then re-run data_extract.",
            )
        case IoFailure():
            return build_error_response(
                "io_error",
                str(error),
                "Check file permissions and free disk space, then retry.",
            )
        case _:
            return build_error_response(
                "server_error",
                str(error),
                "Check the server log file for details and retry.",
            )
