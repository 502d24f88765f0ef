from __future__ import annotations
# -*- coding: utf-8 -*-

"""
render.py – Markdown and JSON output for an aggregated result.

Markdown layout per requirement:

    ## Requirement [REQ-1](link)         (or "## Defect Fix" for fix sections)
    ### <block title>
    #### <sn>. <item title>
    > `Related`: ...
    > `Domain`: ...
    - **Why**: ...
    - **Location**: `file:line`
    **Code**: fenced excerpt
    ---
"""

import json
import re
from dataclasses import dataclass
from typing import List, Sequence

from .fields import extract_fields, RESERVED_KEYS
from .models import DocItem, DocResult, result_to_dict
from .tags import block_title

PRIORITY_SECTIONS = ("summary", "testFocus", "decision", "feature")
PRIORITY_FIELDS = ("context", "why", "how", "risk", "usecase", "businessrule", "checkmethod")

FIELD_DISPLAY_NAMES = {
    "context": "Context",
    "why": "Why",
    "how": "How",
    "risk": "Risk",
    "usecase": "Usecase",
    "businessrule": "BusinessRule",
    "checkmethod": "CheckMethod",
    "notice": "Notice",
}

EXCERPT_MARKER = "// ...existing code..."

_TRACKER_ID_RE = re.compile(r"^[A-Z]+-\d+$", re.IGNORECASE)


@dataclass(frozen=True)
class TrackerLinks:
    """URL templates for requirement and defect links; `{id}` is substituted."""

    req_url: str = "https://devops.aliyun.com/projex/req/{id}"
    bug_url: str = "https://devops.aliyun.com/projex/bug/{id}"

    def req(self, req_id: str) -> str:
        return self.req_url.replace("{id}", req_id)

    def bug(self, req_id: str) -> str:
        return self.bug_url.replace("{id}", req_id)


def is_tracker_id(value: str) -> bool:
    return bool(_TRACKER_ID_RE.match(value or ""))


def field_display_name(key: str) -> str:
    return FIELD_DISPLAY_NAMES.get(key, key)


def dedent_code(code: str) -> List[str]:
    """
    Strip the indentation shared by all non-blank lines. Blank lines come
    back empty. Applying it twice gives the same lines as applying it once.
    """
    lines = code.split("\n")
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    common = min(indents) if indents else 0
    return [line[common:] if line.strip() else "" for line in lines]


def _related_links(item: DocItem, current_req_id: str, links: TrackerLinks) -> List[str]:
    out: List[str] = []
    for req in item.req_ids:
        if req == current_req_id:
            continue
        if is_tracker_id(req):
            url = links.bug(req) if "BUG-" in req else links.req(req)
            out.append(f"[{req}]({url})")
        else:
            out.append(req)
    return out


def _field_lines(key: str, value: str) -> List[str]:
    name = field_display_name(key)
    if "\n" not in value:
        return [f"- **{name}**: {value}"]

    value_lines = value.split("\n")
    out = [f"- **{name}**: {value_lines[0]}"]
    for line in value_lines[1:]:
        line = line.strip()
        if line:
            out.append(f"  {line}")
    return out


def _code_lines(item: DocItem) -> List[str]:
    lang = item.check_code_language or "text"
    out = ["**Code**:\n", f"```{lang}"]
    if lang == "php":
        out.append("<?php")
    out.append(EXCERPT_MARKER)
    out.extend(dedent_code(item.check_code or ""))
    out.append("")
    out.append(EXCERPT_MARKER)
    out.append("```\n")
    return out


def render_item(item: DocItem, current_req_id: str, links: TrackerLinks) -> List[str]:
    lines: List[str] = []

    if item.title:
        if item.sn:
            lines.append(f"#### {item.sn}. {item.title}\n")
        else:
            lines.append(f"#### {item.title}\n")

    lines.append(f"> `Related`: {', '.join(_related_links(item, current_req_id, links))}")
    lines.append("")
    lines.append(f"> `Domain`: {', '.join(item.domains)}")
    lines.append("\n")

    fields = extract_fields(item.content or "")
    for key in PRIORITY_FIELDS:
        if fields.get(key):
            lines.extend(_field_lines(key, fields[key]))
    for key, value in fields.items():
        if key in PRIORITY_FIELDS or key in RESERVED_KEYS:
            continue
        lines.extend(_field_lines(key, value))

    lines.append(f"- **Location**: `{item.file}:{item.line}`\n")

    if item.check_code:
        lines.extend(_code_lines(item))

    lines.append("---\n")
    return lines


def _render_section(lines: List[str], req_id: str, block_type: str, items: Sequence[DocItem], links: TrackerLinks) -> None:
    lines.append(f"### {block_title(block_type)}\n")
    for n, item in enumerate(items, start=1):
        item.sn = n
        lines.extend(render_item(item, req_id, links))


def render_markdown(result: DocResult, links: TrackerLinks = TrackerLinks()) -> str:
    lines: List[str] = []

    for req_id, sections in result.items():
        if is_tracker_id(req_id) and "fix" in sections:
            lines.append(f"## Defect Fix [{req_id}]({links.bug(req_id)})\n")
        else:
            lines.append(f"## Requirement [{req_id}]({links.req(req_id)})\n")

        rendered = set()
        for block_type in PRIORITY_SECTIONS:
            items = sections.get(block_type)
            if items:
                _render_section(lines, req_id, block_type, items, links)
                rendered.add(block_type)

        for block_type, items in sections.items():
            if block_type in rendered or not items:
                continue
            _render_section(lines, req_id, block_type, items, links)

    return "\n".join(lines)


def render_json(result: DocResult) -> str:
    return json.dumps(result_to_dict(result), indent=2, ensure_ascii=False)