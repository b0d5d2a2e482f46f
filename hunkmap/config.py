"""Load hunkmap configuration from pyproject.toml and optional .hunkmap.toml."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import HunkmapAPIError


@dataclass
class HunkmapConfig:
    """Runtime configuration for hunkmap."""

    # Base URL of the GitLab instance, without the /api/v4 suffix
    gitlab_url: str = "https://gitlab.com"
    # Environment variable holding the GitLab private token
    token_env: str = "GITLAB_TOKEN"
    # HTTP timeout in seconds for each API call
    timeout: float = 30.0
    # Read every hunk of a file diff instead of only the first header
    all_hunks: bool = False


def _read_toml(path: Path) -> dict:
    """Read a TOML file; return empty dict if missing or unparseable."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError, UnicodeDecodeError):
        return {}


def _apply(cfg: HunkmapConfig, d: dict) -> None:
    """Overlay dict values onto cfg, ignoring unknown keys."""
    valid = set(cfg.__dataclass_fields__)
    for key, val in d.items():
        if key in valid:
            setattr(cfg, key, val)


def load_config(project_root: Optional[Path] = None) -> HunkmapConfig:
    """Load config from pyproject.toml [tool.hunkmap], then .hunkmap.toml."""
    if project_root is None:
        project_root = Path.cwd()
    cfg = HunkmapConfig()
    pyproject = _read_toml(project_root / "pyproject.toml")
    _apply(cfg, pyproject.get("tool", {}).get("hunkmap", {}))
    local = _read_toml(project_root / ".hunkmap.toml")
    _apply(cfg, local)
    return cfg


def get_token(cfg: HunkmapConfig) -> str:
    """Return the GitLab token from the environment variable named in *cfg*.

    Raises HunkmapAPIError if it is not set.
    """
    token = os.environ.get(cfg.token_env)
    if not token:
        raise HunkmapAPIError(f"hunkmap: {cfg.token_env} is not set.")
    return token
