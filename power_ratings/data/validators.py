"""Schema validators for roster, game and odds payloads."""

from __future__ import annotations

from typing import Dict, List, Optional

from ..models.game import parse_neutral_flag

ROSTER_NAME_FIELDS = ("team_name", "teamName", "TeamName", "name")
ROSTER_RATING_FIELDS = ("rating_seed", "ratingSeed", "rating", "AdjEM")


def _to_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _first_present(row: Dict, fields) -> Optional[str]:
    for f in fields:
        if row.get(f) not in (None, ""):
            return f
    return None


def validate_roster_payload(payload: Dict) -> List[str]:
    errors: List[str] = []
    teams = payload.get("teams")
    if not isinstance(teams, list) or not teams:
        return ["roster payload must include non-empty 'teams' list"]

    seen = set()
    for idx, row in enumerate(teams):
        if not isinstance(row, dict):
            errors.append(f"teams[{idx}] must be an object")
            continue
        name_field = _first_present(row, ROSTER_NAME_FIELDS)
        rating_field = _first_present(row, ROSTER_RATING_FIELDS)
        if name_field is None:
            errors.append(f"teams[{idx}] missing team name")
            continue
        if rating_field is None or _to_float(row.get(rating_field)) is None:
            errors.append(f"teams[{idx}] missing/invalid numeric rating seed")
        name = str(row[name_field]).strip()
        if name in seen:
            errors.append(f"teams[{idx}] duplicate team name '{name}'")
        seen.add(name)
    return errors


def validate_games_payload(payload: Dict) -> List[str]:
    errors: List[str] = []
    games = payload.get("games")
    if not isinstance(games, list):
        return ["games payload must include a 'games' list"]

    for idx, row in enumerate(games):
        if not isinstance(row, dict):
            errors.append(f"games[{idx}] must be an object")
            continue
        game_id = row.get("game_id") or row.get("gameId") or row.get("id")
        home = row.get("home_team") or row.get("homeTeamRawName") or row.get("homeTeam")
        away = row.get("away_team") or row.get("awayTeamRawName") or row.get("awayTeam")
        when = row.get("date") or row.get("game_date") or row.get("commence_time")
        if not game_id:
            errors.append(f"games[{idx}] missing game id")
        if not home:
            errors.append(f"games[{idx}] missing home team")
        if not away:
            errors.append(f"games[{idx}] missing away team")
        if not when:
            errors.append(f"games[{idx}] missing date")

        spread = row.get("closing_spread", row.get("closingSpread"))
        if spread is not None and _to_float(spread) is None:
            errors.append(f"games[{idx}] closing spread must be numeric or null")

        neutral = next(
            (row[k] for k in ("is_neutral_site", "isNeutralSite", "neutral_site") if row.get(k) is not None),
            None,
        )
        try:
            parse_neutral_flag(neutral)
        except ValueError:
            errors.append(f"games[{idx}] neutral-site flag must be true, false or null")
    return errors


def validate_odds_payload(payload: Dict) -> List[str]:
    """Checks the odds-feed shape: games with home/away names and a bookmakers list."""
    errors: List[str] = []
    games = payload.get("games", payload.get("data"))
    if not isinstance(games, list):
        return ["odds payload must include a 'games' (or 'data') list"]

    for idx, row in enumerate(games):
        if not isinstance(row, dict):
            errors.append(f"games[{idx}] must be an object")
            continue
        for key in ("id", "home_team", "away_team"):
            if not row.get(key):
                errors.append(f"games[{idx}] missing '{key}'")
        books = row.get("bookmakers", [])
        if not isinstance(books, list):
            errors.append(f"games[{idx}] bookmakers must be a list")
    return errors
