from __future__ import annotations
from typing import Dict, List, Optional

from pydantic import BaseModel


class ScanRequest(BaseModel):
    paths: Optional[List[str]] = None  # Relative to the project root; None = whole tree
    since: Optional[str] = None  # Git ref; scan only files changed since it
    use_cache: bool = True


class ScanSummary(BaseModel):
    timestamp: Optional[str] = None
    requirements: int
    items: int
    stats: Dict[str, int] = {}
    req_ids: List[str] = []


class RequirementRow(BaseModel):
    req_id: str
    description: str


class CacheStatus(BaseModel):
    exists: bool
    path: str
    timestamp: Optional[str] = None
    requirements: Optional[int] = None
