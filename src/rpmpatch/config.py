"""Configuration loading for overlay runs."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .overlay.paths import DEFAULT_SOURCES_DIR, DEFAULT_SPECS_DIR
from .overlay.scope import DEFAULT_COMMON_REF

DEFAULT_CONFIG_NAME = "config.yaml"

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "patches": {
        "upstream_prefix": "",
        "common_ref": DEFAULT_COMMON_REF,
        "marker": "ROCKY",
    },
    "layout": {
        "specs_dir": DEFAULT_SPECS_DIR,
        "sources_dir": DEFAULT_SOURCES_DIR,
    },
    "package": {
        "name": "",
        "push_branch": "",
        "worktree": ".",
    },
    "commit": {
        "enabled": False,
        "message": "Apply patch overlay",
    },
}


class ConfigError(ValueError):
    """Raised when the configuration file is missing or malformed."""


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load YAML configuration from disk and return it as a dictionary."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config: {error}") from error

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping at the top level.")
    return data


def _merged(config: Mapping[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(DEFAULT_CONFIG_TEMPLATE)
    for section, defaults in merged.items():
        value = config.get(section)
        if value is None:
            continue
        if not isinstance(value, Mapping):
            raise ConfigError(f"Config section '{section}' must be a mapping.")
        for key, item in value.items():
            if key not in defaults:
                raise ConfigError(f"Unknown config key '{section}.{key}'.")
            if item is not None:
                defaults[key] = item
    return merged


@dataclass(slots=True)
class OverlaySettings:
    """Resolved settings for a single overlay run."""

    upstream_prefix: str = ""
    common_ref: str = DEFAULT_COMMON_REF
    marker: str = "ROCKY"
    specs_dir: str = DEFAULT_SPECS_DIR
    sources_dir: str = DEFAULT_SOURCES_DIR
    package: str = ""
    push_branch: str = ""
    worktree: Path = Path(".")
    commit: bool = False
    commit_message: str = "Apply patch overlay"

    @classmethod
    def from_config(cls, config: Mapping[str, Any], *, base_dir: Path | None = None) -> "OverlaySettings":
        """Instantiate settings from a configuration mapping.

        Relative ``package.worktree`` paths are resolved against ``base_dir``
        (normally the directory holding the config file).
        """
        merged = _merged(config)
        worktree = Path(str(merged["package"]["worktree"]))
        if not worktree.is_absolute() and base_dir is not None:
            worktree = (base_dir / worktree).resolve()
        return cls(
            upstream_prefix=str(merged["patches"]["upstream_prefix"]),
            common_ref=str(merged["patches"]["common_ref"]),
            marker=str(merged["patches"]["marker"]),
            specs_dir=str(merged["layout"]["specs_dir"]),
            sources_dir=str(merged["layout"]["sources_dir"]),
            package=str(merged["package"]["name"]),
            push_branch=str(merged["package"]["push_branch"]),
            worktree=worktree,
            commit=bool(merged["commit"]["enabled"]),
            commit_message=str(merged["commit"]["message"]),
        )

    @classmethod
    def from_file(cls, config_path: Path) -> "OverlaySettings":
        return cls.from_config(load_config(config_path), base_dir=config_path.resolve().parent)


__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_CONFIG_TEMPLATE",
    "OverlaySettings",
    "load_config",
]
