"""Loads roster, game and odds payloads from local JSON files or HTTP endpoints."""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import requests

from ..exceptions import DataRequirementError
from ..models.game import GameToProcess
from .validators import (
    ROSTER_NAME_FIELDS,
    ROSTER_RATING_FIELDS,
    validate_games_payload,
    validate_odds_payload,
    validate_roster_payload,
)

logger = logging.getLogger(__name__)


def _is_url(source: str) -> bool:
    return str(source).startswith(("http://", "https://"))


class DataLoader:
    """Reads feed payloads with optional response caching for remote sources."""

    def __init__(self, cache_dir: Optional[str] = None, strict_validation: bool = True):
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        self.cache_dir = Path(cache_dir) if cache_dir else None
        if self.cache_dir:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.strict_validation = strict_validation

    def load_json(self, source: str):
        """
        Load a JSON document from a file path or URL.

        Args:
            source: Local path or http(s) URL

        Returns:
            Decoded JSON payload
        """
        if not _is_url(source):
            with open(source, "r") as f:
                return json.load(f)

        cached = self._load_cache(source)
        if cached is not None:
            return cached

        response = self.session.get(source, timeout=45)
        response.raise_for_status()
        payload = response.json()
        self._save_cache(source, payload)
        return payload

    def load_roster(self, source: str) -> List[Dict]:
        """
        Load a preseason roster snapshot.

        Returns:
            List of ``{"team_name", "rating_seed", "conference"}`` rows
        """
        payload = self.load_json(source)
        if isinstance(payload, list):
            payload = {"teams": payload}
        elif isinstance(payload, dict) and "teams" not in payload and isinstance(payload.get("data"), list):
            payload = {"teams": payload["data"]}
        self._check("roster", validate_roster_payload(payload))
        return normalize_roster_rows(payload.get("teams", []))

    def load_games(self, source: str) -> List[GameToProcess]:
        payload = self.load_json(source)
        if isinstance(payload, list):
            payload = {"games": payload}
        self._check("games", validate_games_payload(payload))

        games: List[GameToProcess] = []
        for row in payload.get("games", []):
            try:
                games.append(GameToProcess.from_dict(row))
            except (TypeError, ValueError) as e:
                if self.strict_validation:
                    raise DataRequirementError(f"Invalid game row {row!r}: {e}") from e
                logger.warning(f"Dropping invalid game row: {e}")
        return games

    def load_odds_games(self, source: str) -> List[Dict]:
        payload = self.load_json(source)
        if isinstance(payload, list):
            payload = {"games": payload}
        self._check("odds", validate_odds_payload(payload))
        games = payload.get("games", payload.get("data", []))
        return [g for g in games if isinstance(g, dict)]

    @staticmethod
    def save_json(payload, file_path: str) -> None:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)

    def _check(self, label: str, errors: List[str]) -> None:
        if not errors:
            return
        if self.strict_validation:
            raise DataRequirementError(f"{label} payload failed validation: {'; '.join(errors[:10])}")
        for err in errors:
            logger.warning(f"{label} payload: {err}")

    def _cache_path(self, source: str) -> Optional[Path]:
        if not self.cache_dir:
            return None
        digest = hashlib.sha1(source.encode("utf-8")).hexdigest()[:16]
        return self.cache_dir / f"feed_{digest}.json"

    def _load_cache(self, source: str):
        path = self._cache_path(source)
        if path is None or not path.exists():
            return None
        try:
            with open(path, "r") as f:
                return json.load(f)
        except json.JSONDecodeError:
            return None

    def _save_cache(self, source: str, payload) -> None:
        path = self._cache_path(source)
        if path is None:
            return
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)


def normalize_roster_rows(rows: List[Dict]) -> List[Dict]:
    """Map the various roster spellings (ratings API, snake_case, camelCase) onto one row shape."""
    out: List[Dict] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        name = next((row[f] for f in ROSTER_NAME_FIELDS if row.get(f) not in (None, "")), None)
        seed = next((row[f] for f in ROSTER_RATING_FIELDS if row.get(f) not in (None, "")), None)
        if name is None or seed is None:
            continue
        try:
            seed_value = float(seed)
        except (TypeError, ValueError):
            continue
        out.append(
            {
                "team_name": str(name).strip(),
                "rating_seed": seed_value,
                "conference": row.get("conference") or row.get("ConfShort"),
            }
        )
    return out
