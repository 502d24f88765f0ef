from __future__ import annotations

"""
excludes.py – Glob-style exclusion of candidate files.
"""

import fnmatch
import os
from pathlib import Path
from typing import Iterable, List, Optional

DEFAULT_EXCLUDES = [
    "**/node_modules/**",
    "**/vendor/**",
    "**/dist/**",
    "**/out/**",
    "**/.git/**",
]


class ExcludeMatcher:
    def __init__(self, project_root: Path, patterns: Optional[Iterable[str]] = None, use_defaults: bool = True):
        self.project_root = Path(project_root)
        globs: List[str] = list(DEFAULT_EXCLUDES) if use_defaults else []
        globs.extend(patterns or [])
        self.globs = globs
        self._absolute = [g for g in globs if g.startswith("/")]
        self._patterns = self._build_patterns([g for g in globs if not g.startswith("/")])

    @staticmethod
    def _build_patterns(globs: List[str]) -> List[str]:
        patterns: List[str] = []
        seen = set()
        for glob in globs:
            normalized = str(glob).replace("\\", "/")
            candidates = [normalized]

            # "**/node_modules" also excludes everything below it, and vice versa.
            if normalized.endswith("/**"):
                candidates.append(normalized[:-3])
            else:
                candidates.append(f"{normalized}/**")

            # fnmatch('node_modules/x', '**/node_modules/**') is False: add the root-level form.
            if normalized.startswith("**/"):
                candidates.extend(c[3:] for c in list(candidates))

            for candidate in candidates:
                if candidate and candidate not in seen:
                    seen.add(candidate)
                    patterns.append(candidate)
        return patterns

    def relative(self, path: str) -> Optional[str]:
        try:
            return Path(os.path.relpath(path, self.project_root)).as_posix()
        except ValueError:
            return None

    def is_excluded(self, path: str) -> bool:
        abs_posix = Path(path).as_posix()
        for pattern in self._absolute:
            if fnmatch.fnmatch(abs_posix, pattern):
                return True

        rel = self.relative(path)
        if rel is None or rel.startswith("../"):
            return False
        for pattern in self._patterns:
            if fnmatch.fnmatch(rel, pattern):
                return True
        return False

    def __call__(self, path: str) -> bool:
        return self.is_excluded(path)
