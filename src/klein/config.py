"""Engine configuration loading.

Settings are read from a YAML file. The first of these that exists wins:
- An explicit path passed to load_config()
- The file named by the KLEIN_CONFIG environment variable
- The user config file (~/.config/klein/config.yaml)

With none present the built-in defaults apply.

Example config.yaml:
    max_loop_iterations: 100000
    trace: false
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

__all__ = [
    "KLEIN_CONFIG",
    "EngineConfig",
    "load_config",
    "config_search_paths",
    "clear_cache",
]

# Environment variable naming a config file
KLEIN_CONFIG = "KLEIN_CONFIG"

_USER_CONFIG = Path("~/.config/klein/config.yaml")


@dataclass(frozen=True)
class EngineConfig:
    """Tunable engine settings.

    max_loop_iterations: upper bound on iterations of any single for/while
        loop, or None for no bound.
    trace: log every executed statement and scope change at DEBUG level.
    """
    max_loop_iterations: Optional[int] = None
    trace: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")

        limit = data.get("max_loop_iterations")
        if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool) or limit < 0):
            raise ValueError("max_loop_iterations must be a non-negative integer or null")
        trace = data.get("trace", False)
        if not isinstance(trace, bool):
            raise ValueError("trace must be true or false")
        return cls(max_loop_iterations=limit, trace=trace)


def clear_cache() -> None:
    """Forget previously loaded config files.

    Call this if you modify a config file and want to reload it.
    """
    _load_file.cache_clear()


def config_search_paths() -> list[Path]:
    """Return candidate config files in priority order (explicit path excluded)."""
    paths = []
    env_path = os.environ.get(KLEIN_CONFIG)
    if env_path:
        paths.append(Path(env_path).expanduser())
    paths.append(_USER_CONFIG.expanduser())
    return paths


@lru_cache(maxsize=None)
def _load_file(path: Path) -> EngineConfig:
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: malformed YAML: {e}")

    if data is None:
        return EngineConfig()
    if not isinstance(data, dict):
        raise ValueError(f"{path}: config must be a mapping")
    return EngineConfig.from_dict(data)


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load the engine configuration.

    Args:
        path: Explicit config file. It must exist.

    Returns:
        EngineConfig from the first config file found, or the defaults.

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the file is not valid YAML, or holds unknown keys
            or bad values
    """
    if path is not None:
        explicit = Path(path).expanduser()
        if not explicit.is_file():
            raise FileNotFoundError(f"config file not found: {explicit}")
        return _load_file(explicit.resolve())

    for candidate in config_search_paths():
        if candidate.is_file():
            return _load_file(candidate.resolve())
    return EngineConfig()
