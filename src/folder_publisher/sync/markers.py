"""Marker persistence layer.

Each directory that contains at least one managed file carries a marker
file (``.folder-publisher``) listing which files in that directory are
managed, by which package, at which version.

Key design choices:

* **Atomic writes** -- ``save()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Deterministic output** -- entries are serialised with a fixed field
  order, two-space indent and a trailing newline.
* **Per-store cache** -- records are cached per directory for the
  lifetime of the store; ``load()`` hands out deep copies so callers
  cannot mutate the cache behind the store's back.

No locking is performed: a single writer per output directory is assumed.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from folder_publisher.errors import CorruptMarker, IoFailure

from .models import ManagedFileMetadata, MarkerRecord

logger = logging.getLogger(__name__)

MARKER_FILE_NAME = ".folder-publisher"

# Never searched for markers below an output root
PRUNED_DIRS = frozenset({"node_modules"})


class MarkerStore:
    """Load, save, and query per-directory marker records."""

    def __init__(self, marker_name: str = MARKER_FILE_NAME) -> None:
        self.marker_name = marker_name
        self._cache: dict[Path, MarkerRecord] = {}

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def marker_path(self, directory: Path) -> Path:
        """Return the marker file path for *directory*."""
        return directory / self.marker_name

    def load(self, directory: Path) -> MarkerRecord:
        """Load the marker record for *directory*.

        Returns:
            The parsed record, or an empty record if no marker exists.

        Raises:
            CorruptMarker: If the marker exists but is not a valid record.
        """
        key = self._key(directory)
        if key not in self._cache:
            self._cache[key] = self._read(self.marker_path(directory))
        return self._cache[key].model_copy(deep=True)

    def save(self, directory: Path, record: MarkerRecord) -> None:
        """Persist *record* as the marker of *directory* atomically.

        Creates *directory* if it does not exist.
        """
        target = self.marker_path(directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(directory), prefix=".marker-", suffix=".tmp"
            )
        except OSError as exc:
            raise IoFailure(target, "write", exc) from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(self.serialize(record))
            os.replace(tmp_path, target)
        except OSError as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise IoFailure(target, "write", exc) from exc

        self._cache[self._key(directory)] = record.model_copy(deep=True)
        logger.debug(
            "Saved marker %s (%d entries)", target, len(record.managed_files)
        )

    @staticmethod
    def serialize(record: MarkerRecord) -> str:
        """Render *record* as pretty-printed JSON with a trailing newline."""
        data = record.model_dump(by_alias=True, mode="json")
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    # ------------------------------------------------------------------
    # Entry helpers
    # ------------------------------------------------------------------

    def upsert(self, directory: Path, entry: ManagedFileMetadata) -> None:
        """Insert or replace the entry for ``(entry.path, entry.package_name)``.

        Any entry for the same path owned by a different package is
        dropped as well, since a path has exactly one owner.  Unrelated
        entries keep their order; a replaced entry keeps its position.
        """
        record = self.load(directory)
        entries: list[ManagedFileMetadata] = []
        placed = False
        for existing in record.managed_files:
            if existing.path != entry.path:
                entries.append(existing)
            elif not placed:
                entries.append(entry)
                placed = True
        if not placed:
            entries.append(entry)
        record.managed_files = entries
        self.save(directory, record)

    def remove(
        self, directory: Path, path: str, package_name: str
    ) -> bool:
        """Drop the entry for ``(path, package_name)``.

        Returns:
            ``True`` if an entry was removed.
        """
        record = self.load(directory)
        kept = [
            e
            for e in record.managed_files
            if not (e.path == path and e.package_name == package_name)
        ]
        if len(kept) == len(record.managed_files):
            return False
        record.managed_files = kept
        self.save(directory, record)
        return True

    def get_entry(
        self,
        directory: Path,
        path: str,
        package_name: str | None = None,
    ) -> ManagedFileMetadata | None:
        """Return the entry for *path*, or ``None`` if absent."""
        return self.load(directory).find(path, package_name)

    def is_managed(
        self,
        directory: Path,
        path: str,
        package_name: str | None = None,
    ) -> bool:
        """Return ``True`` if *path* has an entry, optionally for a package."""
        return self.get_entry(directory, path, package_name) is not None

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def iter_records(
        self, root: Path
    ) -> Iterator[tuple[Path, MarkerRecord]]:
        """Yield ``(directory, record)`` for every marker under *root*.

        Directories are visited in sorted order.  ``node_modules`` and
        hidden directories below *root* are not searched: markers there
        belong to installed packages or tooling, not to this output tree.
        """
        if not root.is_dir():
            return
        for directory in self._walk_dirs(root):
            if (directory / self.marker_name).is_file():
                yield directory, self.load(directory)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _key(directory: Path) -> Path:
        return directory.resolve()

    @staticmethod
    def _walk_dirs(directory: Path) -> Iterator[Path]:
        yield directory
        for child in sorted(directory.iterdir()):
            if child.name in PRUNED_DIRS or child.name.startswith("."):
                continue
            if child.is_dir() and not child.is_symlink():
                yield from MarkerStore._walk_dirs(child)

    @staticmethod
    def _read(path: Path) -> MarkerRecord:
        if not path.exists():
            return MarkerRecord()
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CorruptMarker(path, str(exc)) from exc
        except OSError as exc:
            raise IoFailure(path, "read", exc) from exc

        if not isinstance(data, dict):
            raise CorruptMarker(
                path, f"expected an object, got {type(data).__name__}"
            )
        try:
            return MarkerRecord.model_validate(data)
        except ValidationError as exc:
            raise CorruptMarker(path, str(exc)) from exc
