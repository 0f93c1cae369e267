"""Candidate file selection for package extraction.

Decides which files of an installed package are eligible for extraction.

Selection rules:

1. **Default exclusions** -- package metadata (``package.json``,
   ``bin/**``, ``README.md``, ``node_modules/**``) and marker files are
   never candidates.
2. **Filename globs** -- patterns prefixed with ``!`` exclude and always
   win over include patterns; if any include pattern is given, a path
   must match at least one of them.
3. **Content regexes** -- if given, the file's text must match at least
   one.  Files that cannot be decoded as text are rejected.

Hidden directories (name starting with ``.``) are not descended into.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from pathlib import Path, PurePosixPath

from folder_publisher.file_handler import read_file_with_encoding

from .markers import MARKER_FILE_NAME

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "package.json",
    "bin/**",
    "README.md",
    "node_modules/**",
)


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Match a POSIX relative path against a single glob *pattern*.

    - A pattern without ``/`` also matches against the file name alone
      (``*.md`` matches ``docs/guide.md``).
    - A leading ``**/`` may match zero directories (``**/*.md`` matches
      ``guide.md``).
    - A pattern naming a directory matches every path below it (``bin``
      and ``bin/**`` both match ``bin/cli.js``).
    """
    pattern = pattern.strip().removeprefix("./")
    if not pattern:
        return False
    if pattern in ("**", "*") and "/" not in rel_path:
        return True
    if fnmatch.fnmatchcase(rel_path, pattern):
        return True

    if "/" not in pattern and fnmatch.fnmatchcase(
        PurePosixPath(rel_path).name, pattern
    ):
        return True

    if pattern.startswith("**/") and matches_glob(rel_path, pattern[3:]):
        return True

    directory = pattern.removesuffix("/**").rstrip("/")
    if directory and not any(ch in directory for ch in "*?["):
        return rel_path.startswith(directory + "/")
    return False


def matches_filename_patterns(
    rel_path: str, patterns: list[str] | tuple[str, ...] | None
) -> bool:
    """Apply include/exclude glob *patterns* to *rel_path*.

    No patterns means accept everything.
    """
    if not patterns:
        return True

    includes = [p for p in patterns if not p.startswith("!")]
    excludes = [p[1:] for p in patterns if p.startswith("!")]

    for pattern in excludes:
        if matches_glob(rel_path, pattern):
            return False

    if includes:
        return any(matches_glob(rel_path, p) for p in includes)
    return True


class FilterEngine:
    """Select candidate files from a package source tree.

    Args:
        filename_patterns: Include globs and ``!``-prefixed exclude globs.
        content_regexes: Regular expressions; a file must match one.
    """

    def __init__(
        self,
        filename_patterns: list[str] | None = None,
        content_regexes: list[str] | None = None,
    ) -> None:
        self.filename_patterns = list(filename_patterns or [])
        self._content_patterns = [
            re.compile(p) for p in (content_regexes or [])
        ]

    # ------------------------------------------------------------------
    # Predicate
    # ------------------------------------------------------------------

    def is_default_excluded(self, rel_path: str) -> bool:
        """Return ``True`` if *rel_path* is package metadata or a marker."""
        if PurePosixPath(rel_path).name == MARKER_FILE_NAME:
            return True
        return any(
            matches_glob(rel_path, p) for p in DEFAULT_EXCLUDE_PATTERNS
        )

    def should_include(self, rel_path: str, abs_path: Path) -> bool:
        """Return ``True`` if the file at *abs_path* is a candidate."""
        if self.is_default_excluded(rel_path):
            return False
        if not matches_filename_patterns(rel_path, self.filename_patterns):
            return False
        return self.matches_content(abs_path)

    def matches_content(self, abs_path: Path) -> bool:
        """Return ``True`` if the file text matches any content regex."""
        if not self._content_patterns:
            return True
        try:
            content, _ = read_file_with_encoding(abs_path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "Could not read %s for content regex check, skipping: %s",
                abs_path,
                exc,
            )
            return False
        return any(p.search(content) for p in self._content_patterns)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self, source_root: Path) -> list[str]:
        """Scan *source_root* for candidate files.

        Returns:
            Sorted list of relative paths (POSIX-style forward slashes).
        """
        if not source_root.is_dir():
            return []

        candidates: list[str] = []
        for path in self._walk(source_root):
            rel = path.relative_to(source_root).as_posix()
            if self.should_include(rel, path):
                candidates.append(rel)
        return sorted(candidates)

    @staticmethod
    def _walk(directory: Path):
        for child in sorted(directory.iterdir()):
            if child.is_dir():
                if not child.name.startswith("."):
                    yield from FilterEngine._walk(child)
            elif child.is_file():
                yield child
