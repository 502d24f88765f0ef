from __future__ import annotations

"""
cache.py – Scan-result cache: `{"timestamp": ..., "result": ...}` as JSON.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import jsonschema

from ..core.errors import CacheError
from ..core.models import DocResult, result_from_dict, result_to_dict

logger = logging.getLogger(__name__)

CACHE_FILENAME = "scan-cache.json"

_ITEM_SCHEMA = {
    "type": "object",
    "required": ["file", "line", "title", "content"],
    "properties": {
        "file": {"type": "string", "minLength": 1},
        "line": {"type": "integer", "minimum": 1},
        "title": {"type": "string"},
        "content": {"type": "string"},
        "req": {"type": ["string", "array"], "items": {"type": "string"}},
        "domain": {"type": ["string", "array"], "items": {"type": "string"}},
        "check_code": {"type": "string"},
        "check_code_language": {"type": ["string", "null"]},
        "sn": {"type": "integer"},
    },
}

ENVELOPE_SCHEMA = {
    "type": "object",
    "required": ["timestamp", "result"],
    "properties": {
        "timestamp": {"type": "string", "minLength": 1},
        "result": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": {"type": "array", "minItems": 1, "items": _ITEM_SCHEMA},
            },
        },
    },
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ScanCache:
    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self.cache_file = self.cache_dir / CACHE_FILENAME
        self._lock = threading.RLock()

    def save(self, result: DocResult, timestamp: Optional[datetime] = None) -> str:
        """Write the envelope atomically; returns the stored timestamp."""
        stamp = timestamp.isoformat() if timestamp else _now_iso()
        envelope = {"timestamp": stamp, "result": result_to_dict(result)}

        with self._lock:
            try:
                self.cache_dir.mkdir(parents=True, exist_ok=True)
                tmp_file = self.cache_file.with_suffix(".tmp")
                tmp_file.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
                tmp_file.replace(self.cache_file)
            except OSError as e:
                raise CacheError(f"Could not write cache {self.cache_file}: {e}") from e

        logger.info("Scan result cached to %s", self.cache_file)
        return stamp

    def _read_envelope(self) -> Optional[Dict[str, Any]]:
        if not self.cache_file.exists():
            logger.debug("No cache at %s", self.cache_file)
            return None
        try:
            data = json.loads(self.cache_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Failed to read cache %s: %s", self.cache_file, e)
            return None
        try:
            jsonschema.validate(instance=data, schema=ENVELOPE_SCHEMA)
        except jsonschema.ValidationError as e:
            logger.error("Cache %s has an invalid format: %s", self.cache_file, e.message)
            return None
        return data

    def load(self) -> Optional[Tuple[str, DocResult]]:
        with self._lock:
            data = self._read_envelope()
        if data is None:
            return None
        logger.info("Loaded scan result from %s (%s)", self.cache_file, data["timestamp"])
        return data["timestamp"], result_from_dict(data["result"])

    def clear(self) -> bool:
        with self._lock:
            if not self.cache_file.exists():
                return True
            try:
                self.cache_file.unlink()
            except OSError as e:
                logger.error("Failed to remove cache %s: %s", self.cache_file, e)
                return False
        logger.info("Cleared cache %s", self.cache_file)
        return True

    def status(self) -> Dict[str, Any]:
        with self._lock:
            data = self._read_envelope()
        if data is None:
            return {"exists": False, "path": str(self.cache_file)}
        return {
            "exists": True,
            "path": str(self.cache_file),
            "timestamp": data["timestamp"],
            "requirements": len(data["result"]),
        }
