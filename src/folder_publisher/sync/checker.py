"""Drift detection for already-extracted packages.

``DiffChecker`` recomputes the candidate set extraction would produce and
compares it with the markers and the bytes currently on disk:

- **missing**  -- marked as managed by the package but absent on disk.
- **modified** -- managed, present, but bytes differ from the package.
- **extra**    -- shipped by the package but not managed at the destination.

Nothing is written and no progress events are emitted.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from folder_publisher.file_handler import files_differ

from .filters import FilterEngine
from .markers import MarkerStore
from .models import CheckDifferences, InstalledPackage, PackageCheckResult

logger = logging.getLogger(__name__)


class DiffChecker:
    """Compare an installed package with its extracted copy.

    Args:
        store: Marker store used to look up managed entries.
        filters: The same candidate selection rules used for extraction.
    """

    def __init__(self, store: MarkerStore, filters: FilterEngine) -> None:
        self.store = store
        self.filters = filters

    def check(
        self, package: InstalledPackage, output_dir: Path
    ) -> PackageCheckResult:
        """Report drift between *package* and *output_dir*."""
        differences = CheckDifferences()

        for rel_path in self.filters.discover(package.root_dir):
            dest = output_dir / rel_path
            entry = self.store.get_entry(
                dest.parent, PurePosixPath(rel_path).name, package.name
            )
            if entry is None:
                differences.extra.append(rel_path)
            elif not dest.is_file():
                differences.missing.append(rel_path)
            elif files_differ(package.root_dir / rel_path, dest):
                differences.modified.append(rel_path)

        ok = differences.in_sync
        logger.info(
            "Checked %s@%s: %s (%d missing, %d modified, %d extra)",
            package.name,
            package.version,
            "ok" if ok else "drift detected",
            len(differences.missing),
            len(differences.modified),
            len(differences.extra),
        )
        return PackageCheckResult(
            name=package.name,
            version=package.version,
            ok=ok,
            differences=differences,
        )
