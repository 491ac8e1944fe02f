"""Access to the resolver defaults stored in defaults.yaml.

The file next to this module is used unless MATERIAL_RESOLVER_DEFAULTS_PATH
names another one. The parsed file is cached per path; call
``reload_defaults()`` after editing the file or changing the variable.

This module imports nothing else from the config package.

Usage:
    from material_resolver.config.yaml_loader import get_default
    policy = get_default('temperature.policy', 'exact')
"""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

DEFAULTS_ENV_VAR = "MATERIAL_RESOLVER_DEFAULTS_PATH"
BUNDLED_DEFAULTS = Path(__file__).with_name("defaults.yaml")


def defaults_path() -> Path:
    """Location of the defaults file currently in effect.

    An override that points at a missing file is ignored, so a stale
    environment never hides the bundled defaults.
    """
    override = os.environ.get(DEFAULTS_ENV_VAR)
    if override:
        candidate = Path(override).expanduser()
        if candidate.is_file():
            return candidate
    if not BUNDLED_DEFAULTS.is_file():
        raise FileNotFoundError(
            f"No defaults file at {BUNDLED_DEFAULTS}; point {DEFAULTS_ENV_VAR} at one"
        )
    return BUNDLED_DEFAULTS


@lru_cache(maxsize=None)
def _parse(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as stream:
        data = yaml.safe_load(stream)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def get_defaults() -> dict[str, Any]:
    """Deep copy of the parsed defaults file."""
    return copy.deepcopy(_parse(defaults_path()))


def get_default(key_path: str, default: Any = None) -> Any:
    """Value at a dotted key such as 'composition.duplicate_policy'.

    Returns ``default`` when any part of the path is absent or null.
    """
    node: Any = _parse(defaults_path())
    for part in key_path.split("."):
        node = node.get(part) if isinstance(node, dict) else None
        if node is None:
            return default
    return node


def reload_defaults() -> None:
    """Forget every parsed defaults file; the next access reads from disk."""
    _parse.cache_clear()
