from __future__ import annotations

"""
workspace.py – One project root wired to its config, excludes, scanner and cache.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..core.aggregate import DocScanner, ScanStats
from ..core.errors import CodocError
from ..core.models import DocResult
from .cache import ScanCache
from .config import CodocConfig, load_config
from .discovery import changed_files, discover_files
from .excludes import ExcludeMatcher

logger = logging.getLogger(__name__)


def resolve_scan_path(root: Path, relpath: str) -> Path:
    """
    Resolve a caller-supplied path relative to the project root.
    Absolute paths, NUL bytes, '..' segments and symlink escapes are refused.
    """
    if not isinstance(relpath, str) or not relpath.strip():
        raise CodocError("Scan path must be a non-empty string")
    if Path(relpath).is_absolute() or "\0" in relpath:
        raise CodocError(f"Scan path must be relative to the project root: {relpath!r}")
    if ".." in relpath.replace("\\", "/").split("/"):
        raise CodocError(f"Scan path leaves the project root: {relpath!r}")

    root_abs = root.resolve()
    try:
        resolved = (root_abs / relpath).resolve()
        resolved.relative_to(root_abs)
    except (ValueError, RuntimeError, OSError) as e:
        raise CodocError(f"Scan path leaves the project root: {relpath!r}") from e
    return resolved


class Workspace:
    def __init__(self, config: CodocConfig):
        self.config = config
        self.root = config.project_root
        self.excludes = ExcludeMatcher(self.root, config.exclude)
        self.cache = ScanCache(config.cache_path)
        self.result: Optional[DocResult] = None
        self.timestamp: Optional[str] = None
        self.stats = ScanStats()

    @classmethod
    def open(cls, project_root: Path, config_path: Optional[Path] = None) -> "Workspace":
        return cls(load_config(project_root, config_path))

    def scanner(self) -> DocScanner:
        return DocScanner(
            str(self.root),
            exclude=self.excludes.is_excluded,
            workers=self.config.workers,
            excerpt_lines=self.config.excerpt_lines,
            extra_extensions=self.config.extensions,
        )

    def candidate_files(self, paths: Optional[Iterable[str]] = None, since: Optional[str] = None) -> List[str]:
        if since:
            return changed_files(self.root, since)
        if paths:
            return [str(resolve_scan_path(self.root, p)) for p in paths]
        return discover_files(self.root, self.config.extensions)

    def scan(
        self,
        paths: Optional[Iterable[str]] = None,
        since: Optional[str] = None,
        use_cache: bool = True,
    ) -> DocResult:
        """Fresh scan; the previous result is replaced, not extended."""
        scanner = self.scanner()
        result = scanner.scan(self.candidate_files(paths, since))
        self.result = result
        self.stats = scanner.stats
        if use_cache:
            self.timestamp = self.cache.save(result)
        else:
            self.timestamp = None
        return result

    def load_cached(self) -> Optional[Tuple[str, DocResult]]:
        cached = self.cache.load()
        if cached is None:
            logger.info("No cached scan result for %s", self.root)
        else:
            self.timestamp, self.result = cached
        return cached
