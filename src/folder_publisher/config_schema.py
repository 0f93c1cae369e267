"""Configuration schema for folder-publisher.

Defines the Pydantic models for the per-call consumer configuration and
for the hierarchical config file, which has a ``consumer`` section of
defaults and a ``logging`` section.

Usage:
    from folder_publisher.config_schema import ConsumerConfig, build_config

    config = ConsumerConfig(packages=["my-data@^1.2.0"], output_dir="data")
    unified = build_config(load_hierarchical_config())
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .sync.events import as_sink
from .sync.models import PackageManager

# ---------------------------------------------------------------------------
# Per-call configuration
# ---------------------------------------------------------------------------


class ConsumerConfig(BaseModel):
    """Configuration for one ``extract`` / ``check`` / ``list`` call.

    Attributes:
        packages: Package specs, bare names or ``name@constraint``.
        output_dir: Directory files are extracted into.
        package_manager: Package manager; auto-detected when ``None``.
        force: Overwrite unmanaged files instead of failing
            (``allow_conflicts`` is accepted as an alias).
        cwd: Project directory holding ``node_modules``.
        gitignore: Maintain ``.gitignore`` files next to each marker.
        dry_run: Report changes without writing anything.
        upgrade: Reinstall packages even if a satisfying version exists.
        filename_patterns: Include globs and ``!``-prefixed exclude globs.
        content_regexes: Regexes a file's text must match (any of).
        on_progress: ``ProgressSink`` (or callable) receiving events.
    """

    packages: list[str] = Field(default_factory=list)
    output_dir: Path
    package_manager: PackageManager | None = None
    force: bool = Field(
        default=False,
        validation_alias=AliasChoices("force", "allow_conflicts"),
    )
    cwd: Path = Field(default_factory=Path.cwd)
    gitignore: bool = False
    dry_run: bool = False
    upgrade: bool = False
    filename_patterns: list[str] = Field(default_factory=list)
    content_regexes: list[str] = Field(default_factory=list)
    on_progress: Any = Field(default=None, exclude=True)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @field_validator("output_dir", mode="before")
    @classmethod
    def _output_dir_not_empty(cls, value: Any) -> Any:
        if value is None or not str(value).strip():
            raise ValueError("output_dir cannot be empty")
        return value

    @field_validator("packages", "filename_patterns", mode="before")
    @classmethod
    def _split_strings(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list):
            return [str(v).strip() for v in value if str(v).strip()]
        return value

    @field_validator("content_regexes", mode="before")
    @classmethod
    def _regexes_compile(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        for pattern in value or []:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(
                    f"Invalid content regex '{pattern}': {exc}"
                ) from exc
        return value

    @field_validator("on_progress")
    @classmethod
    def _coerce_sink(cls, value: Any) -> Any:
        if value is None:
            return None
        try:
            return as_sink(value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    @property
    def allow_conflicts(self) -> bool:
        """Alias of ``force``."""
        return self.force

    @property
    def resolved_output_dir(self) -> Path:
        """``output_dir`` made absolute relative to ``cwd``."""
        if self.output_dir.is_absolute():
            return self.output_dir
        return self.cwd / self.output_dir


# ---------------------------------------------------------------------------
# Config file sections
# ---------------------------------------------------------------------------


class ConsumerDefaults(BaseModel):
    """Defaults for consumer calls read from the config file.

    All fields are optional so CLI flags and env vars can supply them.
    """

    packages: list[str] = Field(default_factory=list)
    output_dir: str | None = Field(
        default=None, description="Default extraction directory"
    )
    package_manager: PackageManager | None = Field(
        default=None, description="npm, pnpm or yarn"
    )
    force: bool = Field(default=False, description="Overwrite unmanaged files")
    gitignore: bool = Field(
        default=False, description="Maintain .gitignore next to markers"
    )
    filename_patterns: list[str] = Field(default_factory=list)
    content_regexes: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="WARNING", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: str = Field(default="text", pattern="^(text|json)$")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level configuration file contents.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    consumer: ConsumerDefaults = Field(default_factory=ConsumerDefaults)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
