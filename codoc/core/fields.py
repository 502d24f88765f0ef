from __future__ import annotations
# -*- coding: utf-8 -*-

"""
fields.py – `- key: value` extraction from block bodies.

Block bodies arrive here already de-commented (see `clean_comment_content`).
Two keys are reserved: `req` (requirement IDs) and `domain` (free-form tags).
"""

import re
from typing import Dict, List, Tuple

from .tags import PLACEHOLDER_ID

# Leading comment token of a physical line: `//` or `*` plus surrounding blanks.
_COMMENT_PREFIX = re.compile(r"^\s*(?://|\*)\s*")

# Optional comment token in front of a field or end marker inside raw text.
_OPT_MARKER = r"(?:(?://|\*)[ \t]*)?"
_KEY = r"[A-Za-z0-9_]+"

_FIELD_RE = re.compile(
    r"^[ \t]*" + _OPT_MARKER + r"-[ \t]+(" + _KEY + r")[:：][ \t]*"
    r"(.*?)"
    r"(?=^[ \t]*" + _OPT_MARKER + r"-[ \t]+" + _KEY + r"[:：]"
    r"|^[ \t]*" + _OPT_MARKER + r"@end"
    r"|\*/"
    r"|\Z)",
    re.MULTILINE | re.DOTALL,
)

_REQ_ID_RE = re.compile(r"[A-Z]+-\d+", re.IGNORECASE)
_LIST_SPLIT_RE = re.compile(r"[,，]")

RESERVED_KEYS = ("req", "domain")


def clean_comment_content(content: str) -> str:
    """Strip the leading `//` or `*` token (and the blanks around it) from every line."""
    if not content:
        return ""
    lines = re.split(r"\r?\n", content)
    return "\n".join(_COMMENT_PREFIX.sub("", line, count=1) for line in lines)


def _normalize_value(raw: str) -> str:
    value = raw.strip()
    if "\n" not in value:
        return value
    # Each continuation line is trimmed on its own so nested list markers survive.
    return "\n".join(line.strip() for line in value.split("\n")).strip()


def extract_fields(content: str) -> Dict[str, str]:
    """
    Parse `- key: value` lines into an ordered mapping.

    A value runs until the next field line, an `@end` marker, a `*/` or the end
    of the text, so values may span several lines. Keys are lower-cased; a later
    duplicate overwrites the earlier value. Keys with empty values are dropped.
    """
    if not content:
        return {}

    fields: Dict[str, str] = {}
    for match in _FIELD_RE.finditer(content.replace("\r\n", "\n")):
        key = match.group(1).strip().lower()
        if not key:
            continue
        value = _normalize_value(match.group(2) or "")
        if not value:
            continue
        fields[key] = value
    return fields


def _first_line(value: str) -> str:
    return value.split("\n", 1)[0]


def _split_list(value: str) -> List[str]:
    return [part.strip() for part in _LIST_SPLIT_RE.split(value) if part.strip()]


def parse_req_ids(content: str, default_id: str = PLACEHOLDER_ID) -> Tuple[str, List[str]]:
    """
    Returns (primary_id, id_list) from the `req:` field.

    Formatted IDs (`LETTERS-DIGITS`) win; otherwise the raw value is split on
    commas. Without a usable `req:` field `default_id` becomes the primary ID,
    and it is listed as well unless it is the placeholder.
    """
    primary = default_id
    ids: List[str] = []

    # Only the first line counts; continuation lines are prose.
    value = _first_line(extract_fields(content).get("req") or "")
    if value:
        ids = _REQ_ID_RE.findall(value) or _split_list(value)
        if ids:
            primary = ids[0]

    if not ids and primary != PLACEHOLDER_ID:
        ids.append(primary)

    return primary, ids


def parse_domains(content: str) -> List[str]:
    value = _first_line(extract_fields(content).get("domain") or "")
    if not value:
        return []
    return _split_list(value)


def extract_title(content: str) -> str:
    """Title fallback: first non-blank body line, without comment or list marker."""
    for line in (content or "").splitlines():
        text = _COMMENT_PREFIX.sub("", line, count=1).strip()
        if text.startswith("- "):
            text = text[2:].strip()
        if text:
            return text
    return ""
