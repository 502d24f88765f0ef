from __future__ import annotations
# -*- coding: utf-8 -*-

"""
tags.py – Block-type registry.

Maps every known block type to its display title and to the grammar its
start tag uses. Built once at import time, read-only afterwards.
"""

from dataclasses import dataclass
from typing import Dict, List, Literal, Tuple

Grammar = Literal["identifiable", "standard"]

IDENTIFIABLE: Grammar = "identifiable"
STANDARD: Grammar = "standard"

# Requirement ID used when a standard block carries no `req:` field.
PLACEHOLDER_ID = "???"


@dataclass(frozen=True)
class TagEntry:
    block_type: str
    title: str
    grammar: Grammar

    @property
    def end_alias(self) -> str:
        """`testFocus` -> `TestFocus`, accepted after `@end` as well as the raw tag."""
        return self.block_type[:1].upper() + self.block_type[1:]


class TagRegistry:
    def __init__(self, entries: List[TagEntry]):
        self._entries: Dict[str, TagEntry] = {}
        for entry in entries:
            self._entries[entry.block_type] = entry

    def __contains__(self, block_type: str) -> bool:
        return block_type in self._entries

    def __iter__(self):
        return iter(self._entries.values())

    def get(self, block_type: str) -> TagEntry | None:
        return self._entries.get(block_type)

    def title(self, block_type: str) -> str:
        entry = self._entries.get(block_type)
        return entry.title if entry else block_type

    def identifiable_types(self) -> List[str]:
        return [e.block_type for e in self._entries.values() if e.grammar == IDENTIFIABLE]

    def standard_types(self) -> List[str]:
        return [e.block_type for e in self._entries.values() if e.grammar == STANDARD]

    def ordered(self) -> List[TagEntry]:
        """Recognizer order: identifiable types first, then standard types."""
        ident = [e for e in self._entries.values() if e.grammar == IDENTIFIABLE]
        std = [e for e in self._entries.values() if e.grammar == STANDARD]
        return ident + std


_DEFAULT_TAGS: Tuple[Tuple[str, str, Grammar], ...] = (
    ("summary", "📝 Summary", IDENTIFIABLE),
    ("fix", "🐛 Bug Fix", IDENTIFIABLE),
    ("decision", "🔍 Decision", STANDARD),
    ("testFocus", "🧪 Test Focus", STANDARD),
    ("feature", "✨ Feature", STANDARD),
    ("notice", "❕ Notice", STANDARD),
    ("comment", "💬 Comment", STANDARD),
    ("deployment", "🚀 Deployment", STANDARD),
    ("performance", "⚡ Performance", STANDARD),
    ("security", "🔒 Security", STANDARD),
    ("deprecated", "⚠️ Deprecated", STANDARD),
)

REGISTRY = TagRegistry([TagEntry(name, title, grammar) for name, title, grammar in _DEFAULT_TAGS])


def block_title(block_type: str) -> str:
    return REGISTRY.title(block_type)
