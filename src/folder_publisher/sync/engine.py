"""Extraction engine: copies one package's files into an output tree.

The ``SyncEngine`` ties together the filter engine, the marker store and
the file handler into a complete extraction of a single package.  It:

1. Discovers candidate files in the installed package.
2. Classifies every candidate against the destination and its marker
   (add / update / skip / conflict).
3. Fails before writing anything if an unmanaged file is in the way and
   conflicts are not allowed.
4. Applies the plan: copies bytes, marks files read-only, upserts
   marker entries (skipped entirely in dry-run mode).
5. Deletes files this package previously managed but no longer ships.
6. Optionally maintains ``.gitignore`` files next to each marker.
7. Emits progress events and returns a ``SourcePackageResult``.

Errors are not caught here: the first failure aborts the package.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from folder_publisher.errors import FileConflict
from folder_publisher.file_handler import (
    copy_read_only,
    ensure_gitignore_entries,
    files_differ,
    remove_managed_file,
)

from .events import NullProgressSink, ProgressSink
from .filters import FilterEngine
from .markers import MarkerStore
from .models import (
    FileAction,
    FileChanges,
    InstalledPackage,
    ManagedFileMetadata,
    ProgressEvent,
    ProgressEventType,
    SourcePackageResult,
)

logger = logging.getLogger(__name__)

_ACTION_EVENTS: dict[FileAction, ProgressEventType] = {
    FileAction.ADD: ProgressEventType.FILE_ADDED,
    FileAction.UPDATE: ProgressEventType.FILE_MODIFIED,
    FileAction.SKIP: ProgressEventType.FILE_SKIPPED,
    FileAction.DELETE: ProgressEventType.FILE_DELETED,
}


@dataclass(frozen=True, slots=True)
class PlannedFile:
    """Classification of one candidate file.

    Attributes:
        rel_path: Path relative to the output directory (POSIX).
        source: Absolute path inside the installed package.
        dest: Absolute destination path.
        action: ADD, UPDATE or SKIP.
        force: True when an unmanaged file is being overwritten.
        previous_owner: Package that owned the path before, if any.
        previous_version: Version recorded in the existing entry, if any.
    """

    rel_path: str
    source: Path
    dest: Path
    action: FileAction
    force: bool = False
    previous_owner: str | None = None
    previous_version: str | None = None


class SyncEngine:
    """Extract packages into an output directory.

    Args:
        store: Marker store shared by every package of one call.
        filters: Candidate selection rules.
        sink: Receiver of progress events.
    """

    def __init__(
        self,
        store: MarkerStore,
        filters: FilterEngine,
        sink: ProgressSink | None = None,
    ) -> None:
        self.store = store
        self.filters = filters
        self.sink = sink or NullProgressSink()

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def extract(
        self,
        package: InstalledPackage,
        output_dir: Path,
        *,
        force: bool = False,
        dry_run: bool = False,
        gitignore: bool = False,
    ) -> SourcePackageResult:
        """Extract *package* into *output_dir*.

        Args:
            package: Installed package (root directory and version).
            output_dir: Destination root.
            force: Overwrite unmanaged files instead of failing.
            dry_run: Classify and report without touching the disk.
            gitignore: Maintain ``.gitignore`` next to each marker.

        Returns:
            The per-package changes (what *would* change in dry-run).

        Raises:
            FileConflict: If an unmanaged file is in the way and
                *force* is false.  Nothing is written for the package.
            IoFailure: If a copy, delete or chmod fails.
            CorruptMarker: If a destination marker cannot be parsed.
        """
        logger.info(
            "Extracting %s@%s into %s%s",
            package.name,
            package.version,
            output_dir,
            " (dry run)" if dry_run else "",
        )
        self._emit(ProgressEventType.PACKAGE_START, package)

        candidates = self.filters.discover(package.root_dir)
        plan = [
            self._classify(package, output_dir, rel, force)
            for rel in candidates
        ]
        orphans = self._find_orphans(package.name, output_dir, set(candidates))

        changes = FileChanges()
        touched_dirs: set[Path] = set()
        for item in plan:
            if not dry_run:
                self._apply(package, item)
            touched_dirs.add(item.dest.parent)
            self._record(changes, item.action, item.rel_path)
            self._emit(_ACTION_EVENTS[item.action], package, item.rel_path)

        for rel_path in orphans:
            if not dry_run:
                self._delete(package.name, output_dir, rel_path)
            self._record(changes, FileAction.DELETE, rel_path)
            self._emit(ProgressEventType.FILE_DELETED, package, rel_path)

        if gitignore and not dry_run:
            for directory in sorted(touched_dirs):
                self._update_gitignore(directory)

        self._emit(ProgressEventType.PACKAGE_END, package)
        logger.info(
            "%s@%s: %d added, %d modified, %d deleted, %d unchanged",
            package.name,
            package.version,
            len(changes.added),
            len(changes.modified),
            len(changes.deleted),
            len(changes.skipped),
        )
        return SourcePackageResult(
            name=package.name, version=package.version, changes=changes
        )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _classify(
        self,
        package: InstalledPackage,
        output_dir: Path,
        rel_path: str,
        force: bool,
    ) -> PlannedFile:
        """Decide what extraction must do for one candidate file."""
        source = package.root_dir / rel_path
        dest = output_dir / rel_path
        name = PurePosixPath(rel_path).name

        # The marker is consulted even for new files so corruption surfaces early
        owner = self.store.get_entry(dest.parent, name)

        if not dest.exists() and not dest.is_symlink():
            logger.debug("add %s", rel_path)
            return PlannedFile(rel_path, source, dest, FileAction.ADD)

        if owner is not None and owner.package_name == package.name:
            action = (
                FileAction.UPDATE
                if files_differ(source, dest)
                else FileAction.SKIP
            )
            logger.debug("%s %s", action.value, rel_path)
            return PlannedFile(
                rel_path,
                source,
                dest,
                action,
                force=owner.force,
                previous_owner=owner.package_name,
                previous_version=owner.package_version,
            )

        if owner is not None:
            logger.info(
                "Taking over %s from %s@%s",
                rel_path,
                owner.package_name,
                owner.package_version,
            )
            return PlannedFile(
                rel_path,
                source,
                dest,
                FileAction.UPDATE,
                force=False,
                previous_owner=owner.package_name,
                previous_version=owner.package_version,
            )

        if not force:
            raise FileConflict(dest)

        logger.warning("Overwriting unmanaged file %s (force)", dest)
        return PlannedFile(rel_path, source, dest, FileAction.ADD, force=True)

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def _apply(self, package: InstalledPackage, item: PlannedFile) -> None:
        """Write one planned file and its marker entry."""
        entry = ManagedFileMetadata(
            path=item.dest.name,
            package_name=package.name,
            package_version=package.version,
            force=item.force,
        )

        if item.action == FileAction.SKIP:
            # Bytes already match; only refresh a stale version in the marker
            if item.previous_version != package.version:
                self.store.upsert(item.dest.parent, entry)
            return

        if (
            item.action == FileAction.UPDATE
            and item.previous_owner == package.name
            and _is_writable(item.dest)
        ):
            logger.warning(
                "Overwriting %s, which was made writable and may hold local edits",
                item.dest,
            )
        copy_read_only(item.source, item.dest)
        self.store.upsert(item.dest.parent, entry)

    def _find_orphans(
        self, package_name: str, output_dir: Path, candidates: set[str]
    ) -> list[str]:
        """Return managed paths of *package_name* absent from *candidates*."""
        orphans: list[str] = []
        for directory, record in self.store.iter_records(output_dir):
            prefix = directory.relative_to(output_dir).as_posix()
            for entry in record.managed_files:
                if entry.package_name != package_name:
                    continue
                rel_path = (
                    entry.path if prefix == "." else f"{prefix}/{entry.path}"
                )
                if rel_path not in candidates:
                    orphans.append(rel_path)
        return sorted(orphans)

    def _delete(
        self, package_name: str, output_dir: Path, rel_path: str
    ) -> None:
        """Remove an orphaned file and its marker entry."""
        dest = output_dir / rel_path
        if remove_managed_file(dest):
            logger.info("Deleted %s (no longer shipped by %s)", rel_path, package_name)
        self.store.remove(dest.parent, dest.name, package_name)

    def _update_gitignore(self, directory: Path) -> None:
        """Ensure ``.gitignore`` in *directory* lists the marker and its files."""
        record = self.store.load(directory)
        if not record.managed_files:
            return
        entries = [self.store.marker_name] + [
            e.path for e in record.managed_files
        ]
        added = ensure_gitignore_entries(directory, entries)
        if added:
            logger.debug(
                "Added %d entries to %s", len(added), directory / ".gitignore"
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _record(changes: FileChanges, action: FileAction, rel_path: str) -> None:
        match action:
            case FileAction.ADD:
                changes.added.append(rel_path)
            case FileAction.UPDATE:
                changes.modified.append(rel_path)
            case FileAction.DELETE:
                changes.deleted.append(rel_path)
            case FileAction.SKIP:
                changes.skipped.append(rel_path)
            case FileAction.CONFLICT:
                raise ValueError(f"Unresolved conflict for {rel_path}")

    def _emit(
        self,
        event_type: ProgressEventType,
        package: InstalledPackage,
        rel_path: str | None = None,
    ) -> None:
        if rel_path is None:
            event = ProgressEvent(
                type=event_type,
                package_name=package.name,
                package_version=package.version,
            )
        else:
            event = ProgressEvent(
                type=event_type, package_name=package.name, file=rel_path
            )
        self.sink.on_event(event)


def _is_writable(path: Path) -> bool:
    try:
        return bool(os.stat(path).st_mode & stat.S_IWUSR)
    except OSError:
        return False
