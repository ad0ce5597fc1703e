"""YAML settings source with include support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from firebisect.core.log import logger

DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"
PROJECT_FILE = Path("firebisect.yaml")


def user_config_file() -> Path:
    """Location of the per-user configuration file."""
    return (
        Path(user_config_dir("firebisect", appauthor=False))
        / "firebisect.yaml"
    )


def cli_includes(argv: list[str]) -> list[str]:
    """Collect the values of every `--include FILE` in argv."""
    includes = []
    args = iter(argv[1:])
    for arg in args:
        if arg == "--include":
            value = next(args, None)
            if value is not None:
                includes.append(value)
    return includes


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source that layers several files.

    Files are deep-merged, later ones winning:
        package defaults < user config < ./firebisect.yaml < --include

    Any file may name further files under an `include:` key; those are
    resolved relative to the including file and merged beneath it.
    """

    def __init__(self, settings_cls: type[BaseSettings], yaml_file=None):
        includes = cli_includes(sys.argv)
        if yaml_file is None and includes:
            yaml_file = includes
        elif yaml_file is not None and includes:
            base = [yaml_file] if isinstance(
                yaml_file, (str, os.PathLike)
            ) else list(yaml_file)
            yaml_file = base + includes
        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = True):
        """Load and deep-merge every configuration layer that exists.

        Args:
            files: Explicit file(s) given by the caller or --include
            deep_merge: Ignored; layers are always deep-merged

        Returns:
            Merged configuration dictionary
        """
        candidates = [DEFAULTS_FILE, user_config_file(), PROJECT_FILE]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            candidates.extend(Path(f).expanduser() for f in files)

        result = {}
        for path in candidates:
            if path.is_file():
                logger.debug("Loading configuration", file=str(path))
                result = self._deep_merge(
                    result, self._load_file_recursive(path, set())
                )
            else:
                logger.spew("Configuration file not found", file=str(path))
        return result

    def _load_file_recursive(self, filepath: Path, visited: set[Path]) -> dict:
        """Load one YAML file with its include: chain resolved.

        Raises:
            ValueError: If a file includes itself, directly or not
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        for inc in includes:
            inc_path = Path(inc).expanduser()
            if not inc_path.is_absolute():
                inc_path = filepath.parent / inc_path
            data = self._deep_merge(
                self._load_file_recursive(inc_path, visited.copy()), data
            )

        return data

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Return base with override merged in; nested dicts merge."""
        result = base.copy()
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
