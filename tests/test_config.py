"""Tests for folder_publisher.config -- consumer config assembly.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models). This tests the precedence
between CLI/tool arguments, FOLDER_PUBLISHER_* env vars and file defaults.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from folder_publisher.config import get_bool_env, load_consumer_config
from folder_publisher.config_schema import ConsumerDefaults
from folder_publisher.sync.models import PackageManager

_ENV_KEYS = (
    "FOLDER_PUBLISHER_OUTPUT_DIR",
    "FOLDER_PUBLISHER_PACKAGE_MANAGER",
    "FOLDER_PUBLISHER_FORCE",
    "FOLDER_PUBLISHER_GITIGNORE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


# -------------------------------------------------------------------------
# get_bool_env()
# -------------------------------------------------------------------------


class TestGetBoolEnv:
    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "yes", " on "])
    def test_truthy(self, monkeypatch, raw):
        monkeypatch.setenv("FP_FLAG", raw)
        assert get_bool_env("FP_FLAG") is True

    @pytest.mark.parametrize("raw", ["false", "0", "no", "off", ""])
    def test_falsy(self, monkeypatch, raw):
        monkeypatch.setenv("FP_FLAG", raw)
        assert get_bool_env("FP_FLAG") is False

    def test_unset_is_none(self, monkeypatch):
        monkeypatch.delenv("FP_FLAG", raising=False)
        assert get_bool_env("FP_FLAG") is None


# -------------------------------------------------------------------------
# load_consumer_config()
# -------------------------------------------------------------------------


class TestLoadConsumerConfig:
    """Tests for CLI > env > file defaults > built-in precedence."""

    def test_builtin_defaults(self):
        config = load_consumer_config({"packages": ["fixtures"]})

        assert config.output_dir == Path(".")
        assert config.package_manager is None
        assert config.force is False
        assert config.gitignore is False
        assert config.dry_run is False

    def test_file_defaults_used(self):
        defaults = ConsumerDefaults(
            packages=["schemas@^2.0.0"],
            output_dir="vendor",
            package_manager="pnpm",
            gitignore=True,
            filename_patterns=["**/*.json"],
        )

        config = load_consumer_config({}, defaults)

        assert config.packages == ["schemas@^2.0.0"]
        assert config.output_dir == Path("vendor")
        assert config.package_manager == PackageManager.PNPM
        assert config.gitignore is True
        assert config.filename_patterns == ["**/*.json"]

    def test_env_beats_file_defaults(self, monkeypatch):
        monkeypatch.setenv("FOLDER_PUBLISHER_OUTPUT_DIR", "from-env")
        monkeypatch.setenv("FOLDER_PUBLISHER_PACKAGE_MANAGER", "yarn")
        monkeypatch.setenv("FOLDER_PUBLISHER_GITIGNORE", "false")
        defaults = ConsumerDefaults(
            output_dir="from-file", package_manager="npm", gitignore=True
        )

        config = load_consumer_config({"packages": ["a"]}, defaults)

        assert config.output_dir == Path("from-env")
        assert config.package_manager == PackageManager.YARN
        assert config.gitignore is False

    def test_cli_beats_env(self, monkeypatch):
        monkeypatch.setenv("FOLDER_PUBLISHER_OUTPUT_DIR", "from-env")
        monkeypatch.setenv("FOLDER_PUBLISHER_FORCE", "false")

        config = load_consumer_config(
            {"packages": ["a"], "output_dir": "from-cli", "force": True}
        )

        assert config.output_dir == Path("from-cli")
        assert config.force is True

    def test_none_values_ignored(self):
        defaults = ConsumerDefaults(packages=["a"], output_dir="vendor")

        config = load_consumer_config(
            {"packages": None, "output_dir": None, "force": None}, defaults
        )

        assert config.packages == ["a"]
        assert config.output_dir == Path("vendor")

    def test_cwd_and_progress_passed_through(self, tmp_path):
        events = []

        config = load_consumer_config(
            {"packages": ["a"], "cwd": str(tmp_path), "on_progress": events.append}
        )

        assert config.cwd == tmp_path
        assert config.on_progress is not None
        assert config.resolved_output_dir == tmp_path / "."

    def test_invalid_manager_raises(self, monkeypatch):
        monkeypatch.setenv("FOLDER_PUBLISHER_PACKAGE_MANAGER", "bower")
        with pytest.raises(ValidationError):
            load_consumer_config({"packages": ["a"]})

    def test_from_package_prepends_publisher_specs(self, tmp_path):
        publisher = tmp_path / "node_modules" / "docs-pack"
        publisher.mkdir(parents=True)
        (publisher / "package.json").write_text(
            '{"name": "docs-pack", "npmdata": {"additionalPackages": ["extra@^1.0.0"]}}'
        )

        config = load_consumer_config(
            {
                "packages": ["extra@^1.0.0", "other"],
                "from_package": "node_modules/docs-pack",
                "cwd": str(tmp_path),
            }
        )

        assert config.packages == ["docs-pack", "extra@^1.0.0", "other"]

    def test_from_package_without_explicit_packages(self, tmp_path):
        (tmp_path / "package.json").write_text('{"name": "solo"}')

        config = load_consumer_config({"from_package": str(tmp_path)})

        assert config.packages == ["solo"]
