from __future__ import annotations
# -*- coding: utf-8 -*-

"""
language.py – Extension tables and code-excerpt language detection.
"""

import os
from typing import FrozenSet

# Extension -> fence label for code excerpts.
LANG_MAP = {
    ".py": "python",
    ".js": "javascript",
    ".ts": "typescript",
    ".jsx": "javascript",
    ".tsx": "typescript",
    ".vue": "javascript",
    ".php": "php",
    ".go": "go",
    ".java": "java",
    ".lua": "lua",
    ".rb": "ruby",
    ".c": "c",
    ".cpp": "cpp",
    ".h": "c",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".sql": "sql",
    ".sh": "bash",
    ".json": "json",
    ".xml": "xml",
    ".md": "markdown",
}

# Extensions scanned for doc blocks. Wider than LANG_MAP: includes languages
# whose excerpts fall back to content heuristics.
CODE_EXTENSIONS: FrozenSet[str] = frozenset({
    ".js", ".ts", ".jsx", ".tsx", ".vue",
    ".py", ".pyw",
    ".java", ".class", ".kt",
    ".c", ".cpp", ".h", ".hpp",
    ".cs",
    ".go",
    ".php",
    ".rb",
    ".swift",
    ".rs",
    ".lua",
    ".sh", ".bash",
    ".sql",
})

DEFAULT_LANGUAGE = "text"
SAMPLE_LIMIT = 100


def lang_for(ext: str) -> str:
    ext = ext.lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return LANG_MAP.get(ext, "")


def is_code_file(path: str, extra_extensions: FrozenSet[str] = frozenset()) -> bool:
    ext = os.path.splitext(path)[1].lower()
    return ext in CODE_EXTENSIONS or ext in extra_extensions


def detect_language(file_path: str, code_sample: str) -> str:
    """
    Best-effort label for a code excerpt.

    The extension table wins; otherwise only the first 100 characters of the
    sample are inspected for telltale substrings.
    """
    lang = lang_for(os.path.splitext(str(file_path))[1])
    if lang:
        return lang

    code = (code_sample or "")[:SAMPLE_LIMIT].lower()

    if "function" in code and ("{" in code or "=>" in code):
        return "javascript"
    if "def " in code and ":" in code:
        return "python"
    if "<template>" in code or "<script>" in code:
        return "vue"
    if "package " in code and "func " in code:
        return "go"
    if "public class" in code or "private class" in code:
        return "java"
    if "local " in code and "end" in code:
        return "lua"
    if "<?php" in code:
        return "php"

    return DEFAULT_LANGUAGE
