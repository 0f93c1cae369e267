"""File handler module: content hashing, encoding-aware reads, managed writes.

Provides the byte-level file I/O used by the sync engine and the diff
checker.  Every mutating helper wraps ``OSError`` in ``IoFailure`` so the
caller always learns which path failed.
"""

from __future__ import annotations

import hashlib
import os
import shutil
import stat
from pathlib import Path

from charset_normalizer import from_bytes

from folder_publisher.errors import IoFailure

READ_ONLY_MODE = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH
WRITABLE_MODE = READ_ONLY_MODE | stat.S_IWUSR

_HASH_CHUNK_SIZE = 1024 * 1024

# =============================================================================
# Content hashing
# =============================================================================


def file_hash(path: Path) -> str:
    """Return the SHA-256 hex digest of the raw bytes of *path*.

    Hashing is byte-exact: no line-ending or encoding normalisation is
    applied, since packages may ship binary files.
    """
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def files_differ(source: Path, dest: Path) -> bool:
    """Return ``True`` if *dest* is missing or its bytes differ from *source*."""
    if not dest.exists():
        return True
    if source.stat().st_size != dest.stat().st_size:
        return True
    return file_hash(source) != file_hash(dest)


# =============================================================================
# File Read
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).

    Raises:
        UnicodeDecodeError: If the bytes do not look like text in any
            known encoding (binary files).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        # Binary content: let strict UTF-8 decide, raising on failure
        return (raw.decode("utf-8"), "utf-8")

    encoding = result.encoding
    # Normalize ascii to utf-8 (ascii is a strict subset of utf-8)
    if encoding == "ascii":
        encoding = "utf-8"
    return (str(result), encoding)


# =============================================================================
# Managed writes
# =============================================================================


def make_writable(path: Path) -> None:
    """Give the owner write permission on *path* if it exists."""
    try:
        if path.exists():
            os.chmod(path, path.stat().st_mode | stat.S_IWUSR)
    except OSError as exc:
        raise IoFailure(path, "chmod", exc) from exc


def copy_read_only(source: Path, dest: Path) -> None:
    """Copy *source* bytes to *dest* and mark *dest* read-only.

    Parent directories are created as needed.  An existing (possibly
    read-only) destination is made writable first so it can be replaced.
    """
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IoFailure(dest.parent, "create directory", exc) from exc

    make_writable(dest)
    try:
        shutil.copyfile(source, dest)
    except OSError as exc:
        raise IoFailure(dest, "copy", exc) from exc

    try:
        os.chmod(dest, READ_ONLY_MODE)
    except OSError as exc:
        raise IoFailure(dest, "chmod", exc) from exc


def remove_managed_file(path: Path) -> bool:
    """Delete a managed (read-only) file.

    Returns:
        ``True`` if a file was removed, ``False`` if it was already gone.
    """
    if not path.exists():
        return False
    try:
        os.chmod(path, WRITABLE_MODE)
        path.unlink()
    except OSError as exc:
        raise IoFailure(path, "remove", exc) from exc
    return True


# =============================================================================
# .gitignore maintenance
# =============================================================================


def ensure_gitignore_entries(directory: Path, entries: list[str]) -> list[str]:
    """Append any of *entries* missing from ``directory/.gitignore``.

    Existing lines are preserved verbatim; entries are compared after
    stripping whitespace and a leading ``/``.  The file is append-only:
    entries for files later deleted as orphans stay listed.

    Returns:
        The entries that were appended (empty if nothing changed).
    """
    gitignore = directory / ".gitignore"
    try:
        existing_text = (
            gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
        )
    except OSError as exc:
        raise IoFailure(gitignore, "read", exc) from exc

    present = {
        line.strip().lstrip("/")
        for line in existing_text.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    }

    added: list[str] = []
    for entry in entries:
        normalised = entry.strip().lstrip("/")
        if normalised and normalised not in present:
            present.add(normalised)
            added.append(normalised)

    if not added:
        return []

    new_text = existing_text
    if new_text and not new_text.endswith("\n"):
        new_text += "\n"
    new_text += "".join(f"{entry}\n" for entry in added)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        gitignore.write_text(new_text, encoding="utf-8")
    except OSError as exc:
        raise IoFailure(gitignore, "write", exc) from exc
    return added
