"""Pydantic models for the extraction and check engines.

Defines the core data contracts used across all sync modules:

- ``PackageManager``: Enum of supported package managers.
- ``FileAction``: Enum of per-file classifications.
- ``ProgressEventType`` / ``ProgressEvent``: progress stream items.
- ``ManagedFileMetadata`` / ``MarkerRecord``: on-disk marker contents.
- ``InstalledPackage`` / ``PackageSpec``: resolution boundary values.
- ``FileChanges`` / ``SourcePackageResult`` / ``ConsumerResult``: extract output.
- ``CheckDifferences`` / ``PackageCheckResult`` / ``CheckResult``: check output.
- ``ManagedPackage``: one row of the ``list`` inventory.

Result models are rebuilt fresh on every call and never persisted.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class PackageManager(str, Enum):
    """Package managers able to install data packages."""

    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"


class FileAction(str, Enum):
    """Classification of one candidate file during extraction."""

    ADD = "add"
    UPDATE = "update"
    SKIP = "skip"
    CONFLICT = "conflict"
    DELETE = "delete"


class ProgressEventType(str, Enum):
    """Types of events emitted while extracting."""

    PACKAGE_START = "package-start"
    PACKAGE_END = "package-end"
    FILE_ADDED = "file-added"
    FILE_MODIFIED = "file-modified"
    FILE_DELETED = "file-deleted"
    FILE_SKIPPED = "file-skipped"


class ProgressEvent(BaseModel):
    """One item of the progress stream.

    Attributes:
        type: Event type.
        package_name: Package the event is scoped to.
        package_version: Set on package-start/package-end events.
        file: Path relative to the output directory, for file events.
    """

    type: ProgressEventType
    package_name: str
    package_version: str | None = None
    file: str | None = None

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Marker contents
# ---------------------------------------------------------------------------


class ManagedFileMetadata(BaseModel):
    """One entry of a marker file.

    Attributes:
        path: File name relative to the marker's directory.
        package_name: Package that wrote the file.
        package_version: Version of that package at write time.
        force: True if the file replaced a pre-existing unmanaged file.
    """

    path: str
    package_name: str = Field(alias="packageName")
    package_version: str = Field(alias="packageVersion")
    force: bool = False

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class MarkerRecord(BaseModel):
    """Ordered list of managed file entries for one directory.

    ``(path, package_name)`` is unique within a record.
    """

    managed_files: list[ManagedFileMetadata] = Field(
        default_factory=list, alias="managedFiles"
    )

    model_config = ConfigDict(populate_by_name=True)

    def find(
        self, path: str, package_name: str | None = None
    ) -> ManagedFileMetadata | None:
        """Return the entry for *path*, optionally scoped to a package."""
        for entry in self.managed_files:
            if entry.path == path and (
                package_name is None or entry.package_name == package_name
            ):
                return entry
        return None


# ---------------------------------------------------------------------------
# Resolution boundary
# ---------------------------------------------------------------------------


class PackageSpec(BaseModel):
    """A requested package: bare name plus optional version constraint."""

    name: str
    constraint: str | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.constraint:
            return f"{self.name}@{self.constraint}"
        return self.name


class InstalledPackage(BaseModel):
    """An installed package as delivered by the resolver."""

    name: str
    version: str
    root_dir: Path

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Extract results
# ---------------------------------------------------------------------------


class FileChanges(BaseModel):
    """Paths (relative to the output directory) grouped by outcome."""

    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    @property
    def changed(self) -> int:
        """Number of files added, modified or deleted."""
        return len(self.added) + len(self.modified) + len(self.deleted)


class SourcePackageResult(BaseModel):
    """Extraction outcome for a single package."""

    name: str
    version: str
    changes: FileChanges = Field(default_factory=FileChanges)


class ConsumerResult(BaseModel):
    """Aggregate extraction outcome across every requested package."""

    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    source_packages: list[SourcePackageResult] = Field(default_factory=list)

    def add_package(self, result: SourcePackageResult) -> None:
        """Fold one package's changes into the aggregate lists."""
        self.source_packages.append(result)
        self.added.extend(result.changes.added)
        self.modified.extend(result.changes.modified)
        self.deleted.extend(result.changes.deleted)
        self.skipped.extend(result.changes.skipped)


# ---------------------------------------------------------------------------
# Check results
# ---------------------------------------------------------------------------


class CheckDifferences(BaseModel):
    """Drift found for one package (or aggregated).

    Attributes:
        missing: Managed paths that no longer exist on disk.
        modified: Managed paths whose bytes differ from the package source.
        extra: Package files that have not been extracted.
    """

    missing: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    extra: list[str] = Field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        """True when nothing is missing or modified."""
        return not self.missing and not self.modified


class PackageCheckResult(BaseModel):
    """Check outcome for a single package."""

    name: str
    version: str
    ok: bool
    differences: CheckDifferences = Field(default_factory=CheckDifferences)


class CheckResult(BaseModel):
    """Aggregate check outcome across every requested package."""

    ok: bool = True
    differences: CheckDifferences = Field(default_factory=CheckDifferences)
    source_packages: list[PackageCheckResult] = Field(default_factory=list)

    def add_package(self, result: PackageCheckResult) -> None:
        """Fold one package's differences into the aggregate."""
        self.source_packages.append(result)
        self.differences.missing.extend(result.differences.missing)
        self.differences.modified.extend(result.differences.modified)
        self.differences.extra.extend(result.differences.extra)
        self.ok = self.ok and result.ok


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


class ManagedPackage(BaseModel):
    """A package with files currently managed in an output directory."""

    name: str
    version: str
    files: list[str] = Field(default_factory=list)
