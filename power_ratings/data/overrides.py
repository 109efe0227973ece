"""Operator-curated team name overrides.

An override maps one feed spelling directly onto a canonical roster name
and bypasses automated matching. Entries are created and edited by an
operator only; the engine reads them and never writes them.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class TeamOverride:
    source_name: str
    canonical_name: str
    source: str = "manual"
    notes: Optional[str] = None
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "source_name": self.source_name,
            "canonical_name": self.canonical_name,
            "source": self.source,
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TeamOverride":
        canonical = data.get("canonical_name") or data.get("kenpom_name") or data.get("canonicalName")
        source_name = data.get("source_name") or data.get("sourceName")
        if not source_name or not canonical:
            raise ValueError(f"override entry needs source_name and canonical_name: {data}")
        return cls(
            source_name=source_name,
            canonical_name=canonical,
            source=data.get("source") or "manual",
            notes=data.get("notes"),
            created_at=data.get("created_at") or _now(),
            updated_at=data.get("updated_at") or _now(),
        )


class OverrideTable:
    """Case-insensitive ``source_name -> canonical_name`` table, optionally backed by a JSON file."""

    def __init__(self, entries: Optional[List[TeamOverride]] = None, path: Optional[str] = None):
        self._lock = threading.Lock()
        self._entries: Dict[str, TeamOverride] = {}
        self.path = Path(path) if path else None
        for entry in entries or []:
            self._entries[self._key(entry.source_name)] = entry

    @staticmethod
    def _key(source_name: str) -> str:
        return " ".join(str(source_name).lower().split())

    @classmethod
    def from_mapping(cls, mapping: Dict[str, str]) -> "OverrideTable":
        return cls([TeamOverride(source_name=k, canonical_name=v) for k, v in mapping.items()])

    @classmethod
    def load(cls, path: str) -> "OverrideTable":
        """Load from a JSON file; a missing file is an empty table bound to that path."""
        p = Path(path)
        if not p.exists():
            return cls(path=path)
        with open(p, "r") as f:
            payload = json.load(f)
        rows = payload.get("overrides", []) if isinstance(payload, dict) else payload
        return cls([TeamOverride.from_dict(r) for r in rows], path=path)

    def save(self, path: Optional[str] = None) -> None:
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("No path given for override table")
        with self._lock:
            rows = [e.to_dict() for e in sorted(self._entries.values(), key=lambda e: e.source_name.lower())]
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w") as f:
            json.dump({"overrides": rows}, f, indent=2)

    def lookup(self, raw_name: str) -> Optional[str]:
        entry = self._entries.get(self._key(raw_name))
        return entry.canonical_name if entry else None

    def get(self, source_name: str) -> Optional[TeamOverride]:
        return self._entries.get(self._key(source_name))

    def upsert(self, source_name: str, canonical_name: str, source: str = "manual", notes: Optional[str] = None) -> TeamOverride:
        key = self._key(source_name)
        with self._lock:
            existing = self._entries.get(key)
            if existing:
                entry = replace(
                    existing,
                    source_name=source_name,
                    canonical_name=canonical_name,
                    source=source or existing.source,
                    notes=notes if notes is not None else existing.notes,
                    updated_at=_now(),
                )
            else:
                entry = TeamOverride(source_name=source_name, canonical_name=canonical_name, source=source, notes=notes)
            self._entries[key] = entry
        return entry

    def update(self, source_name: str, canonical_name: Optional[str] = None, notes: Optional[str] = None) -> bool:
        """Edit an existing entry; empty values leave fields untouched."""
        key = self._key(source_name)
        with self._lock:
            existing = self._entries.get(key)
            if existing is None:
                return False
            self._entries[key] = replace(
                existing,
                canonical_name=canonical_name or existing.canonical_name,
                notes=notes or existing.notes,
                updated_at=_now(),
            )
        return True

    def delete(self, source_name: str) -> bool:
        with self._lock:
            return self._entries.pop(self._key(source_name), None) is not None

    def entries(self) -> List[TeamOverride]:
        return sorted(self._entries.values(), key=lambda e: e.source_name.lower())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, source_name: str) -> bool:
        return self._key(source_name) in self._entries
