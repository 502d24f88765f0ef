from __future__ import annotations
# -*- coding: utf-8 -*-

"""
aggregate.py – Cross-file scan and the result filters built on top of it.

Files are parsed independently (thread pool, one partial result per file) and
folded in sorted path order, so the same file set always yields the same
result. Requirement keys are sorted before the result is handed out.
"""

import concurrent.futures
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .blocks import DEFAULT_EXCERPT_LINES, Recognizer, build_recognizers, parse_content
from .language import is_code_file
from .models import DocItem, DocResult, count_items, merge_results

logger = logging.getLogger(__name__)

# utf-8-sig also decodes plain UTF-8 and drops a leading BOM, which would
# otherwise keep a start tag on line 1 from matching.
FALLBACK_ENCODINGS = ("utf-8-sig", "gb18030", "latin-1")
BINARY_SNIFF_BYTES = 4096
DEFAULT_WORKERS = 4

ExcludeFn = Callable[[str], bool]


def is_probably_binary(data: bytes) -> bool:
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def read_source_text(path: str, encodings: Sequence[str] = FALLBACK_ENCODINGS) -> Optional[str]:
    """
    Read a source file as text. Returns None for anything that is not a
    readable, decodable regular text file.
    """
    p = Path(path)
    try:
        if not p.is_file():
            return None
        data = p.read_bytes()
    except OSError as e:
        logger.warning("Could not read %s: %s", path, e)
        return None

    if is_probably_binary(data):
        logger.debug("Skipping binary file %s", path)
        return None

    for encoding in encodings:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
        except LookupError:
            logger.debug("Unknown encoding %s", encoding)
            continue

    logger.warning("Could not decode %s with any of %s", path, ", ".join(encodings))
    return None


def sort_key(req_id: str) -> Tuple[str, str]:
    # Case-insensitive like the editor's localeCompare ordering; the raw key
    # breaks ties so "A-1" and "a-1" still get a fixed order.
    return (req_id.casefold(), req_id)


def sort_result(result: DocResult) -> DocResult:
    return {req_id: result[req_id] for req_id in sorted(result, key=sort_key)}


@dataclass
class ScanStats:
    candidates: int = 0
    excluded: int = 0
    scanned: int = 0
    skipped: int = 0
    requirements: int = 0
    items: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class DocScanner:
    """
    Scans candidate files of one project for doc blocks.

    Every call to `scan` starts from an empty result; pass `accumulate=True`
    to fold into the result of the previous call instead.
    """

    def __init__(
        self,
        project_root: str,
        exclude: Optional[ExcludeFn] = None,
        workers: int = DEFAULT_WORKERS,
        excerpt_lines: int = DEFAULT_EXCERPT_LINES,
        extra_extensions: Iterable[str] = (),
    ):
        self.project_root = str(project_root)
        self.exclude = exclude
        self.workers = max(1, int(workers or 1))
        self.excerpt_lines = excerpt_lines
        self.extra_extensions: FrozenSet[str] = frozenset(
            e.lower() if e.startswith(".") else "." + e.lower() for e in extra_extensions
        )
        self.recognizers: List[Recognizer] = build_recognizers()
        self.result: DocResult = {}
        self.stats = ScanStats()

    def _is_candidate(self, path: str) -> bool:
        if not os.path.isabs(path):
            return False
        if not is_code_file(path, self.extra_extensions):
            return False
        try:
            return os.path.isfile(path)
        except OSError:
            return False

    def select_candidates(self, file_paths: Iterable[str]) -> List[str]:
        seen = set()
        candidates: List[str] = []
        for raw in file_paths:
            path = str(raw)
            if path in seen:
                continue
            seen.add(path)
            if self._is_candidate(path):
                candidates.append(path)

        self.stats.candidates = len(candidates)
        if self.exclude is not None:
            kept = [p for p in candidates if not self.exclude(p)]
            self.stats.excluded = len(candidates) - len(kept)
            candidates = kept

        return sorted(candidates)

    def parse_file(self, path: str) -> Optional[DocResult]:
        """Partial result for one file, or None when the file was skipped."""
        text = read_source_text(path)
        if text is None:
            return None
        try:
            return parse_content(
                text,
                file_path=path,
                project_root=self.project_root,
                recognizers=self.recognizers,
                excerpt_lines=self.excerpt_lines,
            )
        except Exception:
            logger.warning("Failed to parse %s", path, exc_info=True)
            return None

    def scan(self, file_paths: Iterable[str], accumulate: bool = False) -> DocResult:
        if not accumulate:
            self.reset()

        files = self.select_candidates(file_paths)

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as pool:
            # map() keeps input order, so the fold below is deterministic.
            partials = list(pool.map(self.parse_file, files))

        merged: DocResult = dict(self.result)
        for path, partial in zip(files, partials):
            if partial is None:
                self.stats.skipped += 1
                continue
            self.stats.scanned += 1
            merge_results(merged, partial)

        self.result = sort_result(merged)
        self.stats.requirements = len(self.result)
        self.stats.items = count_items(self.result)

        logger.info(
            "Scan complete: %d candidates, %d excluded, %d scanned, %d skipped, %d requirements",
            self.stats.candidates,
            self.stats.excluded,
            self.stats.scanned,
            self.stats.skipped,
            self.stats.requirements,
        )
        return self.result

    def reset(self) -> None:
        self.result = {}
        self.stats = ScanStats()


def scan(file_paths: Iterable[str], project_root: str, **options) -> DocResult:
    return DocScanner(project_root, **options).scan(file_paths)


# --- Filters ---

def apply_filters(result: DocResult, req_ids: Optional[Iterable[str]]) -> DocResult:
    """Subset of `result` whose requirement IDs are in `req_ids`; no IDs keeps everything."""
    wanted = set(req_ids or ())
    if not wanted:
        return dict(result)
    return {req_id: sections for req_id, sections in result.items() if req_id in wanted}


def filter_block_types(result: DocResult, block_types: Optional[Iterable[str]]) -> DocResult:
    wanted = set(block_types or ())
    if not wanted:
        return dict(result)
    filtered: DocResult = {}
    for req_id, sections in result.items():
        kept = {bt: items for bt, items in sections.items() if bt in wanted and items}
        if kept:
            filtered[req_id] = kept
    return filtered


def item_matches_text(item: DocItem, text: str) -> bool:
    needle = text.lower()
    return needle in (item.title or "").lower() or needle in (item.content or "").lower()


def filter_text(result: DocResult, text: Optional[str]) -> DocResult:
    if not text:
        return dict(result)
    filtered: DocResult = {}
    for req_id, sections in result.items():
        kept: Dict[str, List[DocItem]] = {}
        for block_type, items in sections.items():
            matching = [item for item in items if item_matches_text(item, text)]
            if matching:
                kept[block_type] = matching
        if kept:
            filtered[req_id] = kept
    return filtered


# --- Indexes ---

def describe_requirements(result: DocResult) -> List[Tuple[str, str]]:
    """(req_id, description) pairs; the first summary title wins, else the first titled item."""
    rows: List[Tuple[str, str]] = []
    for req_id, sections in result.items():
        description = ""
        summaries = sections.get("summary") or []
        if summaries:
            description = f"@summary - {summaries[0].title}"
        else:
            for block_type, items in sections.items():
                if items and items[0].title:
                    description = f"@{block_type} - {items[0].title}"
                    break
        rows.append((req_id, description))
    return rows


def index_by_type(result: DocResult) -> Dict[str, List[Tuple[str, DocItem]]]:
    index: Dict[str, List[Tuple[str, DocItem]]] = {}
    for req_id, sections in result.items():
        for block_type, items in sections.items():
            index.setdefault(block_type, []).extend((req_id, item) for item in items)
    return {bt: index[bt] for bt in sorted(index)}


def index_by_domain(result: DocResult) -> Dict[str, List[Tuple[str, str, DocItem]]]:
    index: Dict[str, List[Tuple[str, str, DocItem]]] = {}
    for req_id, sections in result.items():
        for block_type, items in sections.items():
            for item in items:
                for domain in item.domains:
                    index.setdefault(domain, []).append((req_id, block_type, item))
    return {d: index[d] for d in sorted(index)}
