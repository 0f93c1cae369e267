"""Consumer configuration assembly.

Builds a ``ConsumerConfig`` from CLI arguments, environment variables,
``.env`` files and the YAML config file.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    FOLDER_PUBLISHER_OUTPUT_DIR: Default output directory.
    FOLDER_PUBLISHER_PACKAGE_MANAGER: npm, pnpm or yarn.
    FOLDER_PUBLISHER_FORCE: Overwrite unmanaged files (true/false).
    FOLDER_PUBLISHER_GITIGNORE: Maintain .gitignore files (true/false).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from .config_schema import ConsumerConfig, ConsumerDefaults
from .resolver import collect_publisher_packages

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "."


def get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.strip().lower() in ("true", "1", "yes", "on")


def _pick_bool(cli_value: bool | None, env_key: str, fallback: bool) -> bool:
    if cli_value:
        return True
    env_value = get_bool_env(env_key)
    if env_value is not None:
        return env_value
    return fallback


def _merge_specs(first: list[str], rest: list[str] | str) -> list[str]:
    """Concatenate spec lists, dropping blanks and repeats of an exact spec."""
    if isinstance(rest, str):
        rest = rest.split(",")
    merged: list[str] = []
    for spec in (s.strip() for s in [*first, *rest]):
        if spec and spec not in merged:
            merged.append(spec)
    return merged


def load_consumer_config(
    cli_args: dict[str, Any] | None = None,
    defaults: ConsumerDefaults | None = None,
) -> ConsumerConfig:
    """Resolve a ``ConsumerConfig`` with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` first so that
    ``.env`` values are visible through ``os.getenv()``.

    Args:
        cli_args: Values parsed from the command line (or tool arguments).
            Keys mirror ``ConsumerConfig`` fields; ``None`` means unset.
            ``from_package`` names a publishable package (its directory or
            ``package.json``, relative to ``cwd``); its name and
            ``npmdata.additionalPackages`` are placed before any explicitly
            listed packages.
        defaults: The ``consumer`` section of the YAML config file.

    Returns:
        Validated ``ConsumerConfig``.

    Raises:
        pydantic.ValidationError: If the merged values are invalid.
        ValueError: If the ``from_package`` manifest cannot be read.
    """
    cli = {k: v for k, v in (cli_args or {}).items() if v is not None}
    fb = defaults or ConsumerDefaults()

    output_dir = (
        cli.get("output_dir")
        or os.getenv("FOLDER_PUBLISHER_OUTPUT_DIR")
        or fb.output_dir
        or DEFAULT_OUTPUT_DIR
    )
    package_manager = (
        cli.get("package_manager")
        or os.getenv("FOLDER_PUBLISHER_PACKAGE_MANAGER")
        or fb.package_manager
    )

    packages = cli.get("packages") or fb.packages
    if cli.get("from_package"):
        manifest = Path(cli.get("cwd") or ".") / cli["from_package"]
        packages = _merge_specs(collect_publisher_packages(manifest), packages)

    values: dict[str, Any] = {
        "packages": packages,
        "output_dir": output_dir,
        "package_manager": package_manager,
        "force": _pick_bool(cli.get("force"), "FOLDER_PUBLISHER_FORCE", fb.force),
        "gitignore": _pick_bool(
            cli.get("gitignore"), "FOLDER_PUBLISHER_GITIGNORE", fb.gitignore
        ),
        "dry_run": bool(cli.get("dry_run", False)),
        "upgrade": bool(cli.get("upgrade", False)),
        "filename_patterns": cli.get("filename_patterns")
        or fb.filename_patterns,
        "content_regexes": cli.get("content_regexes") or fb.content_regexes,
    }
    if cli.get("cwd"):
        values["cwd"] = Path(cli["cwd"])
    if "on_progress" in cli:
        values["on_progress"] = cli["on_progress"]

    config = ConsumerConfig(**values)
    logger.debug(
        "Consumer config: packages=%s output_dir=%s manager=%s",
        config.packages,
        config.output_dir,
        config.package_manager.value if config.package_manager else "auto",
    )
    return config
