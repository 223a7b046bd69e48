"""Load ~/.dexy.config (TOML) with env-var overrides."""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dexy.errors import FatalError

_DEFAULT: dict[str, Any] = {
    "scan": {
        "workers": 0,  # 0 = os.cpu_count()
        "hash_workers": 0,  # 0 = same as workers
        "chunk_size_mb": 8,
        "poll_interval_ms": 100,
        "include_hidden": False,
        "ignore_empty": False,
        "load_file_attributes": False,
    },
    "output": {
        "dir": "./",
        "name": "dexy",
        "indent": None,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def config_path() -> Path:
    # Resolution order:
    #   1. DEXY_CONFIG_PATH env var
    #   2. ~/.dexy.config
    if "DEXY_CONFIG_PATH" in os.environ:
        return Path(os.environ["DEXY_CONFIG_PATH"])
    return Path.home() / ".dexy.config"


def load_config() -> dict[str, Any]:
    cfg = dict(_DEFAULT)
    for section in cfg:
        cfg[section] = dict(cfg[section])

    path = config_path()
    if path.exists():
        try:
            with open(path, "rb") as f:
                user_cfg = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise FatalError(f"cannot load config ({e})", str(path)) from e
        cfg = _deep_merge(cfg, user_cfg)

    # Env var overrides
    if workers := os.environ.get("DEXY_WORKERS"):
        try:
            cfg["scan"]["workers"] = int(workers)
        except ValueError as e:
            raise FatalError(f"DEXY_WORKERS must be an integer, got {workers!r}") from e
    if out_dir := os.environ.get("DEXY_OUTPUT_DIR"):
        cfg["output"]["dir"] = out_dir

    return cfg


# Module-level singleton, loaded once per process
_config: dict[str, Any] | None = None


def get_config() -> dict[str, Any]:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    global _config
    _config = None


def get_scan_config() -> dict[str, Any]:
    return get_config()["scan"]


def get_output_config() -> dict[str, Any]:
    return get_config()["output"]


def default_worker_count() -> int:
    """Host parallelism; never less than one."""
    return os.cpu_count() or 1
