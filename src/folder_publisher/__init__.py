"""folder-publisher: distribute data packages into a project's working tree."""

from .config_schema import ConsumerConfig
from .consumer import ConsumerOrchestrator, check, extract, list_packages
from .errors import (
    CorruptMarker,
    FileConflict,
    FolderPublisherError,
    IoFailure,
    PackageNotInstalled,
)
from .resolver import PackageResolver, parse_package_spec
from .sync.models import (
    CheckResult,
    ConsumerResult,
    ManagedFileMetadata,
    ProgressEvent,
)

__version__ = "0.4.0"

__all__ = [
    "CheckResult",
    "ConsumerConfig",
    "ConsumerOrchestrator",
    "ConsumerResult",
    "CorruptMarker",
    "FileConflict",
    "FolderPublisherError",
    "IoFailure",
    "ManagedFileMetadata",
    "PackageNotInstalled",
    "PackageResolver",
    "ProgressEvent",
    "__version__",
    "check",
    "extract",
    "list_packages",
    "parse_package_spec",
]
