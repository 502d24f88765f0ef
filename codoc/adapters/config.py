from __future__ import annotations

"""
config.py – Project configuration (`.codoc.yml`) with environment overrides.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..core.blocks import DEFAULT_EXCERPT_LINES
from ..core.render import TrackerLinks
from ..core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".codoc.yml"
DEFAULT_CACHE_DIR = ".codoc"
DEFAULT_WORKERS = 4


@dataclass
class CodocConfig:
    project_root: Path
    exclude: List[str] = field(default_factory=list)
    extensions: List[str] = field(default_factory=list)
    req_url: str = TrackerLinks.req_url
    bug_url: str = TrackerLinks.bug_url
    cache_dir: str = DEFAULT_CACHE_DIR
    workers: int = DEFAULT_WORKERS
    excerpt_lines: int = DEFAULT_EXCERPT_LINES

    @property
    def links(self) -> TrackerLinks:
        return TrackerLinks(req_url=self.req_url, bug_url=self.bug_url)

    @property
    def cache_path(self) -> Path:
        return self.project_root / self.cache_dir


def _str_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return list(value)


def _int_value(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"'{key}' must be a non-negative integer")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s='%s', defaulting to %s", name, raw, default)
        return default


def read_config_file(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def load_config(project_root: Path, config_path: Optional[Path] = None) -> CodocConfig:
    """
    Build the configuration for `project_root`.

    Reads `config_path` (or `<root>/.codoc.yml` when it exists), then applies
    CODOC_* environment overrides.
    """
    root = Path(project_root).expanduser().resolve()
    path = config_path if config_path is not None else root / CONFIG_FILENAME

    data: Dict[str, Any] = {}
    if config_path is not None or path.exists():
        data = read_config_file(path)
        logger.debug("Loaded config from %s", path)

    tracker = data.get("tracker") or {}
    if not isinstance(tracker, dict):
        raise ConfigError("'tracker' must be a mapping")

    cfg = CodocConfig(
        project_root=root,
        exclude=_str_list(data, "exclude"),
        extensions=_str_list(data, "extensions"),
        req_url=str(tracker.get("req_url") or TrackerLinks.req_url),
        bug_url=str(tracker.get("bug_url") or TrackerLinks.bug_url),
        cache_dir=str(data.get("cache_dir") or DEFAULT_CACHE_DIR),
        workers=_int_value(data, "workers", DEFAULT_WORKERS),
        excerpt_lines=_int_value(data, "excerpt_lines", DEFAULT_EXCERPT_LINES),
    )

    # Environment wins over the file.
    cfg.req_url = os.environ.get("CODOC_REQ_URL") or cfg.req_url
    cfg.bug_url = os.environ.get("CODOC_BUG_URL") or cfg.bug_url
    cfg.cache_dir = os.environ.get("CODOC_CACHE_DIR") or cfg.cache_dir
    cfg.workers = _env_int("CODOC_WORKERS", cfg.workers)

    if "{id}" not in cfg.req_url or "{id}" not in cfg.bug_url:
        raise ConfigError("Tracker URL templates must contain '{id}'")

    return cfg
