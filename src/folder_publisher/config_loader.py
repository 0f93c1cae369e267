"""
Config file discovery and loading for folder-publisher.

A project can keep its extraction defaults (packages, output directory,
filters) in ``.folder_publisher/config.yml``; a user can keep personal
defaults in ``~/.config/folder_publisher/config.yml``.  Both files are
plain YAML with two extras:

* ``!include other.yml`` splices in another YAML file, resolved relative
  to the including file (useful for sharing pattern lists).
* ``${VAR}`` / ``${VAR:-fallback}`` is replaced with environment values
  after all files have been merged.

Usage:
    from folder_publisher.config_loader import load_hierarchical_config

    raw = load_hierarchical_config(Path("/path/to/project"))
"""

import logging
import os
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FOLDER_PUBLISHER_CONFIG"
PROJECT_CONFIG_DIR = ".folder_publisher"
USER_CONFIG_DIR = Path(".config") / "folder_publisher"

# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


# ---------------------------------------------------------------------------
# Environment references
# ---------------------------------------------------------------------------


def _expand(match: re.Match) -> str:
    current = os.environ.get(match.group("name"))
    if current:
        return current
    return match.group("fallback") or ""


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-fallback}`` references in *value*.

    An unset variable expands to the fallback, or to an empty string when
    there is none; an empty variable counts as unset.  An unterminated
    ``${`` is kept as written.
    """
    return _ENV_REF.sub(_expand, value)


def _interpolate_recursive(obj: Any) -> Any:
    match obj:
        case str():
            return interpolate_env_vars(obj)
        case dict():
            return {key: _interpolate_recursive(val) for key, val in obj.items()}
        case list():
            return [_interpolate_recursive(item) for item in obj]
        case _:
            return obj


# ---------------------------------------------------------------------------
# !include
# ---------------------------------------------------------------------------


class IncludeLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!include``.

    *chain* holds the files currently being loaded, outermost first, so an
    include cycle can be reported instead of recursing forever.  The
    registration only affects this subclass; ``yaml.safe_load`` is
    unchanged.
    """

    def __init__(self, stream, chain: tuple[Path, ...] = ()) -> None:
        super().__init__(stream)
        self.chain = chain

    def include(self, node: yaml.ScalarNode) -> Any:
        current = self.chain[-1]
        target = (current.parent / self.construct_scalar(node)).resolve()

        if target in self.chain:
            cycle = " -> ".join(str(p) for p in (*self.chain, target))
            raise ValueError(f"Circular include detected: {cycle}")
        if not target.is_file():
            raise FileNotFoundError(
                f"Include file not found: {target} (referenced from {current})"
            )
        return _load_yaml_with_includes(target, _chain=self.chain)


IncludeLoader.add_constructor("!include", IncludeLoader.include)


def _load_yaml_with_includes(path: Path, *, _chain: tuple[Path, ...] = ()) -> Any:
    """Parse one YAML file, following ``!include`` directives."""
    path = path.resolve()
    with open(path, encoding="utf-8") as fh:
        loader = IncludeLoader(fh, chain=(*_chain, path))
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery and merge
# ---------------------------------------------------------------------------


def _candidate_files(cwd: Path) -> Iterator[tuple[str, Path]]:
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        yield "explicit", Path(explicit).expanduser().resolve()
    for name in ("config.yml", "config.yaml"):
        yield "project", cwd / PROJECT_CONFIG_DIR / name
    yield "user", Path.home() / USER_CONFIG_DIR / "config.yml"


def discover_config_files(cwd: Path | None = None) -> list[Path]:
    """Return the config files that exist, highest precedence first.

    Order: the file named by ``FOLDER_PUBLISHER_CONFIG``, then
    ``.folder_publisher/config.yml`` and ``config.yaml`` under *cwd*
    (default: the working directory), then the per-user file.
    """
    found = []
    for scope, path in _candidate_files(cwd or Path.cwd()):
        if path.exists():
            logger.debug("Found %s config file %s", scope, path)
            found.append(path)
    return found


def load_hierarchical_config(cwd: Path | None = None) -> dict[str, Any]:
    """Merge every discovered config file into one raw dict.

    Files are applied from lowest to highest precedence and a later file
    replaces whole top-level sections (``consumer``, ``logging``) rather
    than merging into them.  Environment references are expanded last.
    A file whose root is not a mapping is ignored with a warning.

    Returns ``{}`` when there is no config file at all.

    Raises:
        OSError: A config or included file cannot be read.
        ValueError: An include cycle was found.
        yaml.YAMLError: A file is not valid YAML.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files(cwd)):
        try:
            data = _load_yaml_with_includes(path)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            logger.error("Cannot load config file %s: %s", path, exc)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Ignoring config file %s: top level is %s, not a mapping",
                path,
                type(data).__name__,
            )
    return _interpolate_recursive(merged)
