"""Tests for mcp/tools/errors.py -- error response builders.

Covers:
- build_error_response() structure and format
- translate_publisher_error() mapping for each error class
"""

from pathlib import Path

import mcp.types as types
import pytest

from folder_publisher.errors import (
    CorruptMarker,
    FileConflict,
    FolderPublisherError,
    IoFailure,
    PackageNotInstalled,
)
from folder_publisher.mcp.tools.errors import (
    build_error_response,
    translate_publisher_error,
)


def _get_error_text(result: types.CallToolResult) -> str:
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


# ---------------------------------------------------------------------------
# build_error_response tests
# ---------------------------------------------------------------------------


class TestBuildErrorResponse:
    """Tests for build_error_response()."""

    def test_format(self):
        result = build_error_response(
            "not_installed", "fixtures is not installed", "Run data_extract."
        )

        assert isinstance(result, types.CallToolResult)
        assert result.isError is True
        assert _get_error_text(result) == (
            "Error (not_installed): fixtures is not installed\n\n"
            "Action: Run data_extract."
        )


# ---------------------------------------------------------------------------
# translate_publisher_error tests
# ---------------------------------------------------------------------------


class TestTranslatePublisherError:
    """Each publisher error maps to its own category and corrective action."""

    @pytest.mark.parametrize(
        "error, category, action_fragment",
        [
            (PackageNotInstalled("fixtures"), "not_installed", "'fixtures'"),
            (FileConflict("data/a.json"), "file_conflict", "force=true"),
            (
                CorruptMarker(Path("data/.folder-publisher"), "bad JSON"),
                "corrupt_marker",
                "data/.folder-publisher",
            ),
            (
                IoFailure("data/a.json", "write", PermissionError("denied")),
                "io_error",
                "permissions",
            ),
            (FolderPublisherError("odd"), "server_error", "log file"),
        ],
    )
    def test_mapping(self, error, category, action_fragment):
        result = translate_publisher_error(error)
        text = _get_error_text(result)

        assert result.isError is True
        assert text.startswith(f"Error ({category}): {error}")
        action = text.split("Action: ", 1)[1]
        assert action_fragment in action
