"""Feed loading, validation and team name resolution."""

from .loader import DataLoader
from .overrides import OverrideTable, TeamOverride
from .team_name_resolver import MatchResult, TeamNameResolver, resolve_team_name

__all__ = [
    "DataLoader",
    "OverrideTable",
    "TeamOverride",
    "MatchResult",
    "TeamNameResolver",
    "resolve_team_name",
]
