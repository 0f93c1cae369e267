"""Report formatting functions.

Provides human-readable and machine-readable output for consumer calls:

- ``format_extract_report`` -- post-extract (or dry-run) summary.
- ``format_check_report`` -- drift report per package.
- ``format_package_list`` -- inventory of managed packages.
- ``result_to_json`` -- structured dict for JSON / MCP output.
"""

from __future__ import annotations

from pydantic import BaseModel

from .models import CheckResult, ConsumerResult, ManagedPackage

# ------------------------------------------------------------------
# Extract
# ------------------------------------------------------------------


def format_extract_report(result: ConsumerResult, dry_run: bool = False) -> str:
    """Format an extraction result as human-readable text.

    Per-file sections are only included when non-empty.  Unchanged files
    are summarised by count only.
    """
    lines: list[str] = []
    if dry_run:
        lines.append("DRY RUN -- No changes were made")
        lines.append("")

    for pkg in result.source_packages:
        changes = pkg.changes
        lines.append(
            f"{pkg.name}@{pkg.version}: "
            f"{len(changes.added)} added, {len(changes.modified)} modified, "
            f"{len(changes.deleted)} deleted, {len(changes.skipped)} unchanged"
        )
        for label, paths in (
            ("A", changes.added),
            ("M", changes.modified),
            ("D", changes.deleted),
        ):
            for path in paths:
                lines.append(f"  {label} {path}")
        lines.append("")

    total = len(result.added) + len(result.modified) + len(result.deleted)
    if total == 0:
        lines.append("No changes needed.")
    else:
        lines.append(
            f"Total: {len(result.added)} added, {len(result.modified)} modified, "
            f"{len(result.deleted)} deleted"
        )
    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Check
# ------------------------------------------------------------------


def format_check_report(result: CheckResult) -> str:
    """Format a check result, one section per package."""
    lines: list[str] = []
    for pkg in result.source_packages:
        status = "in sync" if pkg.ok else "OUT OF SYNC"
        lines.append(f"{pkg.name}@{pkg.version}: {status}")
        diff = pkg.differences
        for label, paths in (
            ("missing", diff.missing),
            ("modified", diff.modified),
            ("not extracted", diff.extra),
        ):
            for path in paths:
                lines.append(f"  {label}: {path}")
        lines.append("")

    if result.ok:
        lines.append("All managed files are in sync.")
    else:
        lines.append(
            f"Drift detected: {len(result.differences.missing)} missing, "
            f"{len(result.differences.modified)} modified"
        )
    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# List
# ------------------------------------------------------------------


def format_package_list(packages: list[ManagedPackage]) -> str:
    """Format the managed package inventory."""
    if not packages:
        return "No managed packages found."
    return "\n".join(
        f"{p.name}@{p.version} ({len(p.files)} files)" for p in packages
    )


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def result_to_json(
    result: BaseModel | list[ManagedPackage],
) -> dict | list:
    """Convert a result model (or package list) to JSON-serialisable data."""
    if isinstance(result, list):
        return [p.model_dump(mode="json") for p in result]
    return result.model_dump(mode="json")
