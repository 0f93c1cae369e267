"""Extraction and drift-check engine.

Public API for copying the files of installed data packages into a
consumer's output tree and detecting later divergence.

Architecture
------------
Ownership is recorded **per directory**: every directory holding a
managed file carries a marker file (``.folder-publisher``) listing which
files in it are managed, by which package, at which version.  Truth is
the marker contents plus a byte-level hash comparison against the
package source; nothing else on disk is trusted.

Modules:

- ``engine``    -- ``SyncEngine``: extracts one package.
- ``checker``   -- ``DiffChecker``: reports missing/modified/extra files.
- ``markers``   -- ``MarkerStore``: load/save/query marker files.
- ``filters``   -- ``FilterEngine``: candidate file selection.
- ``events``    -- ``ProgressSink`` implementations.
- ``models``    -- enums and result/marker data contracts.
- ``reporter``  -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from folder_publisher.sync import FilterEngine, MarkerStore, SyncEngine

    engine = SyncEngine(MarkerStore(), FilterEngine(["**/*.md"]))
    result = engine.extract(installed_package, Path("docs"), dry_run=True)
    print(result.changes.added)
"""

from .checker import DiffChecker
from .engine import SyncEngine
from .events import (
    CallbackProgressSink,
    NullProgressSink,
    ProgressSink,
    RecordingProgressSink,
    StreamProgressSink,
)
from .filters import DEFAULT_EXCLUDE_PATTERNS, FilterEngine
from .markers import MARKER_FILE_NAME, MarkerStore
from .models import (
    CheckDifferences,
    CheckResult,
    ConsumerResult,
    FileAction,
    FileChanges,
    InstalledPackage,
    ManagedFileMetadata,
    ManagedPackage,
    MarkerRecord,
    PackageCheckResult,
    PackageManager,
    PackageSpec,
    ProgressEvent,
    ProgressEventType,
    SourcePackageResult,
)
from .reporter import (
    format_check_report,
    format_extract_report,
    format_package_list,
    result_to_json,
)

__all__ = [
    "DEFAULT_EXCLUDE_PATTERNS",
    "MARKER_FILE_NAME",
    "CallbackProgressSink",
    "CheckDifferences",
    "CheckResult",
    "ConsumerResult",
    "DiffChecker",
    "FileAction",
    "FileChanges",
    "FilterEngine",
    "InstalledPackage",
    "ManagedFileMetadata",
    "ManagedPackage",
    "MarkerRecord",
    "MarkerStore",
    "NullProgressSink",
    "PackageCheckResult",
    "PackageManager",
    "PackageSpec",
    "ProgressEvent",
    "ProgressEventType",
    "ProgressSink",
    "RecordingProgressSink",
    "SourcePackageResult",
    "StreamProgressSink",
    "SyncEngine",
    "format_check_report",
    "format_extract_report",
    "format_package_list",
    "result_to_json",
]
