"""Consumer orchestration: extract, check and list across packages.

``ConsumerOrchestrator`` drives each requested package through the
resolver and then the ``SyncEngine`` (extract) or ``DiffChecker`` (check),
folding the per-package outcomes into one aggregate result.

Packages are processed sequentially, in the order given, against one
shared ``MarkerStore``.  There is no cross-package transaction: if a
later package fails, changes already applied for earlier packages stay
on disk.
"""

from __future__ import annotations

import logging

from .config_schema import ConsumerConfig
from .resolver import PackageResolver, parse_package_spec
from .sync.checker import DiffChecker
from .sync.engine import SyncEngine
from .sync.filters import FilterEngine
from .sync.markers import MarkerStore
from .sync.models import (
    CheckResult,
    ConsumerResult,
    ManagedPackage,
    PackageSpec,
)

logger = logging.getLogger(__name__)


class ConsumerOrchestrator:
    """Run consumer operations for one configuration.

    Args:
        config: The consumer configuration.
        resolver: Package resolver; built from *config* when ``None``.
        store: Marker store; a fresh one is created when ``None``.
    """

    def __init__(
        self,
        config: ConsumerConfig,
        resolver: PackageResolver | None = None,
        store: MarkerStore | None = None,
    ) -> None:
        self.config = config
        self.resolver = resolver or PackageResolver(
            config.cwd, config.package_manager
        )
        self.store = store or MarkerStore()
        self.filters = FilterEngine(
            config.filename_patterns, config.content_regexes
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def extract(self) -> ConsumerResult:
        """Extract every configured package into the output directory."""
        specs = self._specs()
        engine = SyncEngine(self.store, self.filters, self.config.on_progress)
        output_dir = self.config.resolved_output_dir
        result = ConsumerResult()

        for spec in specs:
            package = self.resolver.resolve(
                spec, install=True, upgrade=self.config.upgrade
            )
            result.add_package(
                engine.extract(
                    package,
                    output_dir,
                    force=self.config.force,
                    dry_run=self.config.dry_run,
                    gitignore=self.config.gitignore,
                )
            )
        return result

    def check(self) -> CheckResult:
        """Check every configured package for drift.  Never installs."""
        specs = self._specs()
        checker = DiffChecker(self.store, self.filters)
        output_dir = self.config.resolved_output_dir
        result = CheckResult()

        for spec in specs:
            package = self.resolver.resolve(spec, install=False)
            result.add_package(checker.check(package, output_dir))
        return result

    def list_packages(self) -> list[ManagedPackage]:
        """Inventory the packages with files managed in the output directory.

        The version reported is the one recorded by the most recently
        visited marker entry for each package.
        """
        output_dir = self.config.resolved_output_dir
        inventory: dict[str, ManagedPackage] = {}

        for directory, record in self.store.iter_records(output_dir):
            prefix = directory.relative_to(output_dir).as_posix()
            for entry in record.managed_files:
                rel_path = (
                    entry.path if prefix == "." else f"{prefix}/{entry.path}"
                )
                item = inventory.setdefault(
                    entry.package_name,
                    ManagedPackage(
                        name=entry.package_name,
                        version=entry.package_version,
                    ),
                )
                item.version = entry.package_version
                item.files.append(rel_path)

        packages = sorted(inventory.values(), key=lambda p: p.name)
        for package in packages:
            package.files.sort()
        return packages

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _specs(self) -> list[PackageSpec]:
        if not self.config.packages:
            raise ValueError("At least one package must be specified")
        return [parse_package_spec(p) for p in self.config.packages]


# ---------------------------------------------------------------------------
# Functional API
# ---------------------------------------------------------------------------


def extract(
    config: ConsumerConfig, resolver: PackageResolver | None = None
) -> ConsumerResult:
    """Extract the configured packages.  See ``ConsumerOrchestrator.extract``."""
    return ConsumerOrchestrator(config, resolver).extract()


def check(
    config: ConsumerConfig, resolver: PackageResolver | None = None
) -> CheckResult:
    """Check the configured packages.  See ``ConsumerOrchestrator.check``."""
    return ConsumerOrchestrator(config, resolver).check()


def list_packages(config: ConsumerConfig) -> list[ManagedPackage]:
    """List managed packages.  See ``ConsumerOrchestrator.list_packages``."""
    return ConsumerOrchestrator(config).list_packages()
