from __future__ import annotations

"""
discovery.py – Candidate file lists for a scan: full tree walk or git diff.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Iterable, List

from ..core.errors import CodocError
from ..core.language import is_code_file

logger = logging.getLogger(__name__)

# Directories never worth descending into.
SKIP_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".vscode",
    "node_modules",
    "vendor",
    ".venv",
    "venv",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    "dist",
    "build",
    "out",
    "target",
}


def discover_files(project_root: Path, extensions: Iterable[str] = ()) -> List[str]:
    """All code files below `project_root` as absolute paths, sorted."""
    root = Path(project_root).resolve()
    extra = frozenset(e.lower() if e.startswith(".") else "." + e.lower() for e in extensions)
    files: List[str] = []

    for dirpath, dirnames, filenames in os.walk(str(root)):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]
        for fn in filenames:
            if is_code_file(fn, extra):
                files.append(os.path.join(dirpath, fn))

    files.sort()
    return files


def changed_files(project_root: Path, ref: str) -> List[str]:
    """Files changed relative to `ref` (`git diff --name-only <ref>`), as absolute paths."""
    root = Path(project_root).resolve()
    if not ref or ref.startswith("-"):
        raise CodocError(f"Invalid git ref: {ref!r}")

    try:
        out = subprocess.check_output(
            ["git", "diff", "--name-only", ref],
            cwd=str(root),
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise CodocError("git executable not found") from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or b"").decode("utf-8", errors="replace").strip()
        raise CodocError(f"git diff failed: {detail}") from e

    files = [
        str((root / line.strip()).resolve())
        for line in out.decode("utf-8", errors="replace").splitlines()
        if line.strip()
    ]
    logger.info("git diff %s: %d changed files", ref, len(files))
    return files
