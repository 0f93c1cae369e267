"""Package resolution boundary.

Locates installed data packages under ``<cwd>/node_modules`` and, when
allowed, installs them by running the project's package manager in a
subprocess.  The rest of the system only ever sees ``InstalledPackage``
values (root directory plus version).
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from collections.abc import Callable
from pathlib import Path

from folder_publisher.errors import PackageNotInstalled
from folder_publisher.semver import satisfies
from folder_publisher.sync.models import (
    InstalledPackage,
    PackageManager,
    PackageSpec,
)

logger = logging.getLogger(__name__)

INSTALL_TIMEOUT_SECONDS = 300

_LOCK_FILES: tuple[tuple[str, PackageManager], ...] = (
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("yarn.lock", PackageManager.YARN),
    ("package-lock.json", PackageManager.NPM),
)

_INSTALL_COMMANDS: dict[PackageManager, list[str]] = {
    PackageManager.PNPM: ["pnpm", "add"],
    PackageManager.YARN: ["yarn", "add"],
    PackageManager.NPM: ["npm", "install"],
}

Runner = Callable[..., subprocess.CompletedProcess]


def parse_package_spec(spec: str) -> PackageSpec:
    """Split ``name@constraint`` into a ``PackageSpec``.

    Scoped names keep their leading ``@`` (``@scope/pkg@^1.0.0``).

    Raises:
        ValueError: If the name part is empty.
    """
    text = spec.strip()
    split_at = text.find("@", 1)
    if split_at == -1:
        name, constraint = text, None
    else:
        name, constraint = text[:split_at], text[split_at + 1 :].strip()
    if not name or name == "@":
        raise ValueError(f"Invalid package spec: '{spec}'")
    return PackageSpec(name=name, constraint=constraint or None)


def collect_publisher_packages(path: Path) -> list[str]:
    """Return the package specs a publishable data package extracts.

    *path* is a ``package.json`` or the directory holding one.  The
    result is the package's own name followed by the specs listed under
    ``npmdata.additionalPackages`` (bare names or ``name@constraint``).

    Raises:
        ValueError: If the manifest is unreadable, has no name, or lists
            additional packages that are not strings.
    """
    manifest = path / "package.json" if path.is_dir() else path
    try:
        with open(manifest, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot read package manifest {manifest}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Package manifest {manifest} is not a JSON object")
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError(f"Package manifest {manifest} has no name")

    npmdata = data.get("npmdata")
    extra = npmdata.get("additionalPackages", []) if isinstance(npmdata, dict) else []
    if not isinstance(extra, list) or not all(isinstance(s, str) for s in extra):
        raise ValueError(
            f"npmdata.additionalPackages in {manifest} must be a list of strings"
        )
    logger.debug("Publisher %s bundles %d additional packages", name, len(extra))
    return [name, *extra]


def detect_package_manager(cwd: Path) -> PackageManager:
    """Guess the package manager used by the project at *cwd*.

    Lock files take priority, then the ``npm_config_user_agent``
    environment variable; npm is the fallback.
    """
    for lock_file, manager in _LOCK_FILES:
        if (cwd / lock_file).exists():
            return manager

    user_agent = os.environ.get("npm_config_user_agent", "")
    if "pnpm" in user_agent:
        return PackageManager.PNPM
    if "yarn" in user_agent:
        return PackageManager.YARN
    return PackageManager.NPM


class PackageResolver:
    """Resolve package specs to installed packages.

    Args:
        cwd: Project directory holding ``node_modules``.
        package_manager: Package manager to install with; auto-detected
            from *cwd* when ``None``.
        runner: ``subprocess.run``-compatible callable (injectable for tests).
    """

    def __init__(
        self,
        cwd: Path,
        package_manager: PackageManager | None = None,
        runner: Runner = subprocess.run,
    ) -> None:
        self.cwd = cwd
        self.package_manager = package_manager or detect_package_manager(cwd)
        self._runner = runner

    def installed(self, name: str) -> InstalledPackage | None:
        """Return the installed package *name*, or ``None`` if absent."""
        root = self.cwd / "node_modules" / name
        manifest = root / "package.json"
        if not manifest.is_file():
            return None
        try:
            with open(manifest, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable manifest %s: %s", manifest, exc)
            return None

        version = data.get("version") if isinstance(data, dict) else None
        if not isinstance(version, str) or not version:
            logger.warning("Manifest %s has no version", manifest)
            return None
        return InstalledPackage(name=name, version=version, root_dir=root)

    def install(self, spec: PackageSpec) -> None:
        """Install *spec* with the configured package manager.

        Raises:
            PackageNotInstalled: If the command cannot be run or fails.
        """
        command = _INSTALL_COMMANDS[self.package_manager] + [str(spec)]
        logger.info("Running %s in %s", " ".join(command), self.cwd)
        try:
            self._runner(
                command,
                cwd=str(self.cwd),
                capture_output=True,
                text=True,
                check=True,
                timeout=INSTALL_TIMEOUT_SECONDS,
            )
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            logger.error("Install of %s failed: %s", spec, stderr)
            raise PackageNotInstalled(
                spec.name, f"'{' '.join(command)}' failed: {stderr}"
            ) from exc
        except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
            logger.error("Could not run %s: %s", command[0], exc)
            raise PackageNotInstalled(spec.name, str(exc)) from exc

    def resolve(
        self,
        spec: PackageSpec,
        install: bool = True,
        upgrade: bool = False,
    ) -> InstalledPackage:
        """Return the installed package for *spec*, installing if needed.

        Installation happens when the package is absent, when the
        installed version fails the constraint, or when *upgrade* is set
        (only if *install* is true).

        Raises:
            PackageNotInstalled: If no satisfying installation exists.
        """
        current = self.installed(spec.name)
        needs_install = (
            upgrade
            or current is None
            or not satisfies(current.version, spec.constraint)
        )
        if install and needs_install:
            self.install(spec)
            current = self.installed(spec.name)

        if current is None:
            raise PackageNotInstalled(spec.name)
        if not satisfies(current.version, spec.constraint):
            raise PackageNotInstalled(
                spec.name,
                f"installed version {current.version} does not satisfy {spec.constraint}",
            )
        logger.debug(
            "Resolved %s to %s at %s", spec, current.version, current.root_dir
        )
        return current
