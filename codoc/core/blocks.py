from __future__ import annotations
# -*- coding: utf-8 -*-

"""
blocks.py – Recognizers for tagged comment blocks.

One recognizer per registered block type. A block looks like

    // @summary(CLOUD-123) Cart cache            (identifiable grammar)
    //  - why: offline access
    // @endSummary

    * @decision Use REST instead of gRPC           (standard grammar)
    *  - req: CLOUD-166
    * @endDecision

Start and end markers must open a line (after optional indentation) with a
`//` or `*` comment token. The body is matched non-greedily, so the first end
marker closes the block and an unterminated block yields no match.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from .fields import clean_comment_content, extract_title, parse_domains, parse_req_ids
from .language import detect_language
from .models import DocItem, DocResult, add_to_result
from .tags import IDENTIFIABLE, PLACEHOLDER_ID, REGISTRY, TagEntry, TagRegistry

DEFAULT_EXCERPT_LINES = 15

_LINE_START = r"^[ \t]*(?://|\*)[ \t]*"
_TITLE = r"(?:[ \t]+(?P<title>[^\n]*?))?[ \t]*\r?\n"
_BODY = r"(?P<body>[\s\S]*?)"
_LINE_SPLIT = re.compile(r"\r?\n")


@dataclass(frozen=True)
class Recognizer:
    entry: TagEntry
    pattern: "re.Pattern[str]"

    @property
    def block_type(self) -> str:
        return self.entry.block_type

    def finditer(self, text: str) -> Iterator["re.Match[str]"]:
        # A fresh iterator per call; nothing is carried between files.
        return self.pattern.finditer(text)


def build_recognizer(entry: TagEntry) -> Recognizer:
    tag = re.escape(entry.block_type)
    alias = re.escape(entry.end_alias)

    if entry.grammar == IDENTIFIABLE:
        start = _LINE_START + "@" + tag + r"\((?P<id>[^)\n]*)\)" + _TITLE
    else:
        start = _LINE_START + "@" + tag + _TITLE

    end = _LINE_START + "@end(?:" + tag + "|" + alias + r")(?![A-Za-z0-9_])"
    return Recognizer(entry=entry, pattern=re.compile(start + _BODY + end, re.MULTILINE))


def build_recognizers(registry: TagRegistry = REGISTRY) -> List[Recognizer]:
    return [build_recognizer(entry) for entry in registry.ordered()]


def split_lines(text: str) -> List[str]:
    return _LINE_SPLIT.split(text)


def relative_path(file_path: str, project_root: Optional[str]) -> str:
    if not project_root:
        return Path(file_path).as_posix()
    try:
        return Path(os.path.relpath(file_path, project_root)).as_posix()
    except ValueError:
        # Different drive on Windows; keep the path as given.
        return Path(file_path).as_posix()


def code_sample(lines: Sequence[str], end_line: int, max_lines: int = DEFAULT_EXCERPT_LINES) -> str:
    """
    Up to `max_lines` non-blank lines following the 1-based `end_line`.
    Blank lines are skipped and do not count against the budget.
    """
    picked: List[str] = []
    for line in lines[end_line:]:
        if len(picked) >= max_lines:
            break
        if line.strip():
            picked.append(line.rstrip())
    return "\n".join(picked)


def parse_match(
    recognizer: Recognizer,
    match: "re.Match[str]",
    text: str,
    lines: Sequence[str],
    file_path: str,
    project_root: Optional[str],
    excerpt_lines: int = DEFAULT_EXCERPT_LINES,
) -> Tuple[str, DocItem]:
    """Turn one regex match into (primary requirement ID, DocItem)."""
    entry = recognizer.entry

    line = text.count("\n", 0, match.start()) + 1
    end_line = text.count("\n", 0, match.end()) + 1

    body = clean_comment_content(match.group("body") or "")
    captured_title = (match.group("title") or "").strip()

    if entry.grammar == IDENTIFIABLE:
        default_id = (match.group("id") or "").strip() or PLACEHOLDER_ID
        title = captured_title or extract_title(body)
    else:
        default_id = PLACEHOLDER_ID
        title = captured_title

    req_id, req_ids = parse_req_ids(body, default_id)

    item = DocItem(
        file=relative_path(file_path, project_root),
        line=line,
        title=title,
        content=body.strip(),
        req=req_ids if req_ids else req_id,
        domain=parse_domains(body),
    )

    trailing = code_sample(lines, end_line, excerpt_lines) if excerpt_lines > 0 else ""
    if trailing:
        item.check_code = match.group(0) + "\n" + trailing
        item.check_code_language = detect_language(file_path, trailing)

    return req_id, item


def parse_content(
    text: str,
    file_path: str = "test.ts",
    project_root: Optional[str] = None,
    recognizers: Optional[Sequence[Recognizer]] = None,
    excerpt_lines: int = DEFAULT_EXCERPT_LINES,
) -> DocResult:
    """
    Run every recognizer over `text` and return a per-file partial result.
    Recognizer order is registry order, matches are taken left to right.
    """
    result: DocResult = {}
    if not text:
        return result

    if recognizers is None:
        recognizers = build_recognizers()
    lines = split_lines(text)

    for recognizer in recognizers:
        for match in recognizer.finditer(text):
            req_id, item = parse_match(recognizer, match, text, lines, file_path, project_root, excerpt_lines)
            add_to_result(result, req_id, recognizer.block_type, item)

    return result
