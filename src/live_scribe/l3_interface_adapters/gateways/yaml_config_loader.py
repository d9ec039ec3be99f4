"""Gateway: YAML configuration loader — finds, parses and merges user settings."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from live_scribe.l3_interface_adapters.gateways import paths


class YamlConfigLoader:
    """Finds, parses and merges the YAML config. Validation is left to the caller."""

    def load_raw(
        self,
        config_path: str | None = None,
        overrides: dict | None = None,
    ) -> dict:
        """Merged data before validation; infra sections survive untouched.

        Raises FileNotFoundError for a missing explicit file and ValueError for
        a file that is not a YAML mapping.
        """
        path = locate_config(config_path)
        data = _read_mapping(path) if path is not None else {}
        if overrides:
            deep_merge(data, overrides)
        return data


def locate_config(config_path: str | None = None) -> Path | None:
    """Explicit path, then ``$LIVE_SCRIBE_CONFIG``, then the first existing default."""
    explicit = config_path or os.environ.get(paths.CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f'Config file not found: {path}')
        return path
    return next((p for p in paths.DEFAULT_CONFIG_PATHS if p.is_file()), None)


def _read_mapping(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text(encoding='utf-8'))
    except yaml.YAMLError as exc:
        raise ValueError(f'Invalid YAML in {path}: {exc}') from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f'Config file {path} must contain a mapping, not {type(data).__name__}')
    return data


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (mutates base)."""
    for key, value in override.items():
        current = base.get(key)
        base[key] = deep_merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return base
