from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from buildkit.merge import merge_values

CONFIG_ENV_VAR = "CARTRIDGE_BUILD_CONFIG"
BASE_CONFIG_NAME = "config.yaml"
LOCAL_CONFIG_NAME = "config.local.yaml"
REPO_ROOT_MARKERS: tuple[str, ...] = ("pyproject.toml", ".git")


def find_repo_root(start: str | os.PathLike[str] | None = None) -> str:
    """Closest directory at or above `start` holding a `pyproject.toml` or `.git`."""

    start_path = Path(start or os.getcwd()).resolve()
    if start_path.is_file():
        start_path = start_path.parent

    for candidate in (start_path, *start_path.parents):
        if any((candidate / marker).exists() for marker in REPO_ROOT_MARKERS):
            return str(candidate)

    raise FileNotFoundError(
        f"Cannot locate repo root above {start_path} (markers: {', '.join(REPO_ROOT_MARKERS)})"
    )


def load_yaml_mapping(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def _explicit_path(config_path: str | None, env_var: str | None) -> tuple[str | None, str]:
    if config_path is not None:
        return (str(config_path).strip() or None), "explicit"
    if env_var:
        return (os.environ.get(env_var, "").strip() or None), "env"
    return None, "env"


def load_config(
    *,
    config_path: str | None = None,
    config_dir: str | None = None,
    env_var: str | None = CONFIG_ENV_VAR,
    start_dir: str | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Load the build configuration from YAML.

    Resolution order:
    1. `config_path`, else the file named by `env_var`: that single file.
    2. `<config_dir>/config.yaml` (default `<repo_root>/config`), with
       `config.local.yaml` next to it merged on top when present.

    Returns (cfg, meta); meta records the mode, the loaded paths and the repo
    root (None when an explicit file or `config_dir` was used).
    """

    explicit, mode = _explicit_path(config_path, env_var)
    if explicit:
        expanded = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit)))
        cfg = load_yaml_mapping(expanded)
        return cfg, {"mode": mode, "paths": [expanded], "env_var": env_var, "repo_root": None}

    repo_root = None
    if config_dir is None:
        repo_root = find_repo_root(start_dir)
        config_dir = os.path.join(repo_root, "config")

    base_path = os.path.abspath(os.path.join(config_dir, BASE_CONFIG_NAME))
    if not os.path.exists(base_path):
        raise FileNotFoundError(f"Missing base config file: {base_path}")

    cfg = load_yaml_mapping(base_path)
    loaded = [base_path]

    local_path = os.path.abspath(os.path.join(config_dir, LOCAL_CONFIG_NAME))
    if os.path.exists(local_path):
        cfg = merge_values(cfg, load_yaml_mapping(local_path), strategies={}, path="")
        loaded.append(local_path)

    meta = {
        "mode": "base+local" if len(loaded) > 1 else "base",
        "paths": loaded,
        "env_var": env_var,
        "repo_root": repo_root,
    }
    return cfg, meta
