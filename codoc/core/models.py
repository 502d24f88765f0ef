from __future__ import annotations
# -*- coding: utf-8 -*-

"""
models.py – DocItem and the aggregated result (req ID -> block type -> items).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

ReqValue = Union[str, List[str]]
DocResult = Dict[str, Dict[str, List["DocItem"]]]


def as_list(value: Optional[ReqValue]) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


@dataclass
class DocItem:
    file: str
    line: int
    title: str
    content: str
    req: ReqValue = ""
    domain: ReqValue = field(default_factory=list)
    check_code: Optional[str] = None
    check_code_language: Optional[str] = None
    sn: Optional[int] = None

    @property
    def req_ids(self) -> List[str]:
        return as_list(self.req)

    @property
    def domains(self) -> List[str]:
        return as_list(self.domain)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.sn is not None:
            data["sn"] = self.sn
        data.update({
            "file": self.file,
            "line": self.line,
            "title": self.title,
            "content": self.content,
            "req": self.req,
            "domain": self.domain,
        })
        if self.check_code is not None:
            data["check_code"] = self.check_code
            data["check_code_language"] = self.check_code_language
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocItem":
        return cls(
            file=str(data.get("file") or ""),
            line=int(data.get("line") or 1),
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            req=data.get("req") or "",
            domain=data.get("domain") or [],
            check_code=data.get("check_code"),
            check_code_language=data.get("check_code_language"),
            sn=data.get("sn"),
        )


def add_to_result(result: DocResult, req_id: str, block_type: str, item: DocItem) -> None:
    result.setdefault(req_id, {}).setdefault(block_type, []).append(item)


def merge_results(target: DocResult, partial: DocResult) -> DocResult:
    """Append-only fold of `partial` into `target`."""
    for req_id, sections in partial.items():
        for block_type, items in sections.items():
            for item in items:
                add_to_result(target, req_id, block_type, item)
    return target


def count_items(result: DocResult) -> int:
    return sum(len(items) for sections in result.values() for items in sections.values())


def result_to_dict(result: DocResult) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    return {
        req_id: {block_type: [item.to_dict() for item in items] for block_type, items in sections.items()}
        for req_id, sections in result.items()
    }


def result_from_dict(data: Dict[str, Any]) -> DocResult:
    result: DocResult = {}
    for req_id, sections in (data or {}).items():
        if not isinstance(sections, dict):
            continue
        for block_type, items in sections.items():
            for raw in items or []:
                if isinstance(raw, dict):
                    add_to_result(result, str(req_id), str(block_type), DocItem.from_dict(raw))
    return result
