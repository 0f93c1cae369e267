"""Shared pytest fixtures for folder-publisher tests."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from folder_publisher.sync.models import InstalledPackage


def write_package(
    cwd: Path,
    name: str,
    version: str,
    files: dict[str, str | bytes],
) -> InstalledPackage:
    """Create ``<cwd>/node_modules/<name>`` with a manifest and *files*.

    Any previous contents of the package directory are replaced so a test
    can "publish" a new version in place.
    """
    root = cwd / "node_modules" / name
    if root.exists():
        for path in sorted(root.rglob("*"), reverse=True):
            if path.is_dir():
                path.rmdir()
            else:
                path.unlink()
    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(
        json.dumps({"name": name, "version": version}), encoding="utf-8"
    )
    for rel_path, content in files.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
    return InstalledPackage(name=name, version=version, root_dir=root)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Empty consumer project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def make_package(project: Path):
    """Factory fixture: ``make_package(name, version, files)``."""

    def _make(
        name: str, version: str, files: dict[str, str | bytes]
    ) -> InstalledPackage:
        return write_package(project, name, version, files)

    return _make


class FakeRunner:
    """``subprocess.run`` replacement that records install commands.

    Args:
        on_install: Optional callable invoked with the command list, used
            to simulate the package manager writing ``node_modules``.
        returncode: Exit status to report; non-zero raises
            ``CalledProcessError`` as ``check=True`` would.
    """

    def __init__(self, on_install=None, returncode: int = 0) -> None:
        self.calls: list[dict] = []
        self._on_install = on_install
        self._returncode = returncode

    def __call__(self, command, **kwargs) -> subprocess.CompletedProcess:
        self.calls.append({"command": list(command), **kwargs})
        if self._returncode != 0:
            raise subprocess.CalledProcessError(
                self._returncode, command, output="", stderr="E404 not found"
            )
        if self._on_install is not None:
            self._on_install(command)
        return subprocess.CompletedProcess(command, 0, "", "")


@pytest.fixture
def fake_runner():
    """A FakeRunner that installs nothing."""
    return FakeRunner()


@pytest.fixture
def make_runner():
    """Factory fixture: ``make_runner(on_install=None, returncode=0)``."""
    return FakeRunner
