"""Exception taxonomy for folder-publisher.

All failures raised by the core carry enough context (path, package name)
for a caller to act on them.  Nothing in the core retries.

- ``PackageNotInstalled`` -- the package could not be resolved/installed.
- ``FileConflict`` -- an unmanaged file occupies a destination path.
- ``CorruptMarker`` -- a marker file exists but cannot be parsed.
- ``IoFailure`` -- a copy, delete or chmod failed.
"""

from __future__ import annotations

from pathlib import Path


class FolderPublisherError(Exception):
    """Base class for every error raised by folder-publisher."""


class PackageNotInstalled(FolderPublisherError):
    """Raised when a package cannot be located or installed."""

    def __init__(self, package_name: str, detail: str | None = None) -> None:
        self.package_name = package_name
        self.detail = detail
        message = f"{package_name} is not installed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class FileConflict(FolderPublisherError):
    """Raised when extraction would overwrite an unmanaged file."""

    def __init__(self, path: Path | str) -> None:
        self.path = str(path)
        super().__init__(
            f"File conflict: {self.path} already exists and is not managed. "
            "Use force/allow_conflicts to overwrite it."
        )


class CorruptMarker(FolderPublisherError):
    """Raised when a marker file is present but not valid."""

    def __init__(self, path: Path | str, detail: str) -> None:
        self.path = str(path)
        self.detail = detail
        super().__init__(f"Corrupt marker file {self.path}: {detail}")


class IoFailure(FolderPublisherError):
    """Raised when a filesystem mutation fails."""

    def __init__(self, path: Path | str, operation: str, cause: OSError) -> None:
        self.path = str(path)
        self.operation = operation
        self.cause = cause
        super().__init__(f"Failed to {operation} {self.path}: {cause}")
